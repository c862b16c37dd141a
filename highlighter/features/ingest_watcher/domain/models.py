from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(frozen=True)
class StabilityPolicy:
    """
    Debounce rule for "the writer has finished flushing".
    """
    debounce_window_seconds: float = 5.0
    poll_interval_seconds: float = 1.0
    required_stable_samples: int = 3

    def __post_init__(self):
        if self.poll_interval_seconds <= 0:
            raise ValueError(f"Poll interval must be positive: {self.poll_interval_seconds}")
        if self.required_stable_samples < 1:
            raise ValueError(f"Need at least one stable sample: {self.required_stable_samples}")


@dataclass(frozen=True)
class WatchRequest:
    """
    What to watch and which files count as recordings.
    """
    root_path: Path
    extensions: List[str] = field(default_factory=lambda: [".mp4", ".mkv"])
    min_file_size_mb: float = 10.0
    recursive: bool = True

    def __post_init__(self):
        if not self.root_path.exists():
            raise FileNotFoundError(f"Watch folder not found: {self.root_path}")
        if not self.root_path.is_dir():
            raise NotADirectoryError(f"Watch folder is not a directory: {self.root_path}")

    def accepts(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions


@dataclass
class WatchSummary:
    """
    Running totals, reported when the watcher stops.
    """
    files_seen: int = 0
    files_uploaded: int = 0
    files_skipped: int = 0
    errors: List[str] = field(default_factory=list)
