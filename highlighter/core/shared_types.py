import contextlib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Generic, List, Optional, TypeVar

from highlighter.core.common.enums import BatchOutcome

T = TypeVar("T")


@dataclass(frozen=True)
class TimeRange:
    """
    Value Object representing a valid span of time.
    Enforces that start_time is strictly before end_time.
    """
    start_seconds: float
    end_seconds: float

    def __post_init__(self):
        if self.start_seconds < 0 or self.end_seconds < 0:
            raise ValueError("Timestamps cannot be negative.")
        if self.start_seconds >= self.end_seconds:
            raise ValueError(f"Start time ({self.start_seconds}) must be before end time ({self.end_seconds}).")

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds

    @classmethod
    def around(cls, marker_seconds: float, before: float, after: float) -> "TimeRange":
        """
        Window of before+after seconds around a marker.
        The start is clamped at 0; the duration stays nominal even when clamped.
        """
        if before < 0 or after < 0:
            raise ValueError(f"Clip windows cannot be negative: before={before}, after={after}")
        start = max(0.0, marker_seconds - before)
        return cls(start_seconds=start, end_seconds=start + before + after)


@dataclass(frozen=True)
class MediaFile:
    """
    Entity representing a media file on the filesystem.
    Encapsulates path validation and directory creation.
    """
    path: Path
    validate_exists: bool = True

    def __post_init__(self):
        if str(self.path).strip() in (".", ""):
            raise ValueError("File path cannot be empty.")
        if self.validate_exists:
            if not self.path.exists():
                raise FileNotFoundError(f"Media file not found: {self.path}")
            if not self.path.is_file():
                raise ValueError(f"Path is not a file: {self.path}")

    def exists(self) -> bool:
        return self.path.exists()

    def ensure_parent_dir(self) -> None:
        """Creates the directory structure for this file if it doesn't exist."""
        self.path.parent.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class ItemOutcome(Generic[T]):
    """Result of one item (one marker, one clip) inside a batch."""
    index: int
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """
    Two-level result of a best-effort batch.
    Per-item failures never raise; the caller reads `outcome` to decide.
    """
    outcome: BatchOutcome
    items: List[ItemOutcome[T]] = field(default_factory=list)
    artifact: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_items(cls, items: List[ItemOutcome[T]]) -> "BatchResult[T]":
        succeeded = sum(1 for item in items if item.ok)
        if succeeded == 0:
            outcome = BatchOutcome.FAILED
        elif succeeded == len(items):
            outcome = BatchOutcome.SUCCESS
        else:
            outcome = BatchOutcome.PARTIAL
        return cls(outcome=outcome, items=list(items))

    @classmethod
    def failed(cls, message: str, items: Optional[List[ItemOutcome[T]]] = None) -> "BatchResult[T]":
        return cls(outcome=BatchOutcome.FAILED, items=list(items or []), message=message)

    def with_outcome(self, outcome: BatchOutcome, **changes) -> "BatchResult[T]":
        return replace(self, outcome=outcome, **changes)

    @property
    def values(self) -> List[T]:
        return [item.value for item in self.items if item.ok]

    @property
    def failures(self) -> List[ItemOutcome[T]]:
        return [item for item in self.items if not item.ok]

    @property
    def advanced(self) -> bool:
        return self.outcome in (BatchOutcome.SUCCESS, BatchOutcome.PARTIAL)


def remove_quietly(*paths: Optional[Path]) -> None:
    """Best-effort removal of local temporaries. Never raises."""
    for path in paths:
        if path is None:
            continue
        with contextlib.suppress(OSError):
            path.unlink(missing_ok=True)
