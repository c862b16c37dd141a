import logging
from typing import Optional

from highlighter.core.ffmpeg import run_ffmpeg
from ..domain.interfaces import IClipGenerator
from ..domain.models import ClipRequest

logger = logging.getLogger(__name__)


class FFmpegClipAdapter(IClipGenerator):
    """
    IClipGenerator backed by FFmpeg stream copy.
    No re-encode: cuts land on keyframes, which is fine for highlights.
    """

    def __init__(self, binary: str = "ffmpeg", timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    def create_clip(self, request: ClipRequest) -> None:
        # 1. Ensure the directory for the output file exists
        request.output_video.ensure_parent_dir()

        # 2. Construct the FFmpeg Command
        # -y: Overwrite output files without asking
        # -ss after -i: seek in the decoded timeline
        # -c copy: stream copy, no re-encode
        # -avoid_negative_ts make_zero: clip timestamps start at 0
        cmd = [
            self.binary,
            "-y",
            "-i", str(request.source_video.path),
            "-ss", str(request.time_range.start_seconds),
            "-t", str(request.time_range.duration),
            "-c", "copy",
            "-avoid_negative_ts", "make_zero",
            str(request.output_video.path)
        ]

        # 3. Execute
        run_ffmpeg(cmd, "Video clipping", timeout=self.timeout)
