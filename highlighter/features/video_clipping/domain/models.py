from dataclasses import dataclass

from highlighter.core.shared_types import MediaFile, TimeRange


@dataclass(frozen=True)
class ClipRequest:
    source_video: MediaFile
    output_video: MediaFile
    time_range: TimeRange


def clip_file_name(stem: str, clip_index: int, marker_seconds: float) -> str:
    """e.g. session_clip_2_50.0s.mp4"""
    return f"{stem}_clip_{clip_index}_{marker_seconds:.1f}s.mp4"
