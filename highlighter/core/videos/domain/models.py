import secrets
import string
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from highlighter.core.common.enums import Stage

_ID_ALPHABET = string.digits + string.ascii_lowercase

_id_lock = threading.Lock()
_last_id_ms = 0


def new_video_id(now_ms: Optional[int] = None) -> str:
    """
    Time-ordered, collision-resistant identifier: <epoch millis>_<9 base-36 chars>.
    Clock-derived ids never repeat a millisecond within one process, so they
    sort in creation order.
    """
    global _last_id_ms
    if now_ms is None:
        with _id_lock:
            millis = max(int(time.time() * 1000), _last_id_ms + 1)
            _last_id_ms = millis
    else:
        millis = now_ms
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{millis}_{suffix}"


@dataclass(frozen=True)
class Clip:
    """
    One derived highlight clip. Lives only inside its parent VideoRecord.
    """
    marker_time: float
    clip_index: int
    gcs_path: str
    file_name: str
    duration: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "markerTime": self.marker_time,
            "clipIndex": self.clip_index,
            "gcsPath": self.gcs_path,
            "fileName": self.file_name,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Clip":
        return cls(
            marker_time=float(data["markerTime"]),
            clip_index=int(data["clipIndex"]),
            gcs_path=data["gcsPath"],
            file_name=data["fileName"],
            duration=float(data["duration"]),
        )


@dataclass(frozen=True)
class VideoRecord:
    """
    Read-only snapshot of one persisted video.
    Mutations only happen through VideoStateMachine.advance_stage.
    """
    video_id: str
    file_name: str
    gcs_path: str
    file_size: int
    uploaded_at: Optional[datetime] = None
    markers: Tuple[float, ...] = ()
    has_markers: bool = False
    status: str = Stage.UPLOADED.value
    uploaded_by: str = "obs-watcher"
    clips_extracted: bool = False
    clips_extracted_at: Optional[datetime] = None
    clips: Tuple[Clip, ...] = ()
    clips_combined: bool = False
    clips_combined_at: Optional[datetime] = None
    combined_video: Optional[str] = None

    @property
    def clips_count(self) -> int:
        return len(self.clips)

    @property
    def stage(self) -> Stage:
        """Furthest completed stage."""
        if self.clips_combined:
            return Stage.COMPILATION
        if self.clips_extracted:
            return Stage.EXTRACTION
        return Stage.UPLOADED

    def to_document(self) -> Dict[str, Any]:
        """The camelCase document form of the record."""
        document: Dict[str, Any] = {
            "videoId": self.video_id,
            "fileName": self.file_name,
            "gcsPath": self.gcs_path,
            "uploadedAt": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "status": self.status,
            "metadata": {"fileSize": self.file_size, "uploadedBy": self.uploaded_by},
            "clipsExtracted": self.clips_extracted,
            "clipsCombined": self.clips_combined,
        }
        if self.has_markers:
            document["markers"] = list(self.markers)
            document["hasMarkers"] = True
        if self.clips_extracted:
            document["clips"] = [clip.to_dict() for clip in self.clips]
            document["clipsCount"] = self.clips_count
            document["clipsExtractedAt"] = _iso(self.clips_extracted_at)
        if self.clips_combined:
            document["combinedVideo"] = self.combined_video
            document["clipsCombinedAt"] = _iso(self.clips_combined_at)
        return document


@dataclass(frozen=True)
class StageResult:
    """
    Output payload of one stage, written in the same update as the stage flag.
    """
    stage: Stage
    clips: List[Clip] = field(default_factory=list)
    combined_video: Optional[str] = None

    def __post_init__(self):
        if self.stage == Stage.EXTRACTION and not self.clips:
            raise ValueError("An extraction result needs at least one clip")
        if self.stage == Stage.COMPILATION and not self.combined_video:
            raise ValueError("A compilation result needs the combined video locator")
        if self.stage == Stage.UPLOADED:
            raise ValueError("The upload stage is reached by creating the record, not by a transition")

    @classmethod
    def extracted(cls, clips: List[Clip]) -> "StageResult":
        return cls(stage=Stage.EXTRACTION, clips=list(clips))

    @classmethod
    def combined(cls, locator: str) -> "StageResult":
        return cls(stage=Stage.COMPILATION, combined_video=locator)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
