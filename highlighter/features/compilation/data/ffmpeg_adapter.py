import logging
from pathlib import Path
from typing import Iterable, Optional

from highlighter.core.ffmpeg import run_ffmpeg
from ..domain.interfaces import IClipConcatenator
from ..domain.models import ConcatRequest

logger = logging.getLogger(__name__)


def render_playlist(paths: Iterable[Path]) -> str:
    """
    Concat demuxer playlist, one `file '<path>'` line per input.
    Single quotes inside a path are closed, escaped and reopened.
    """
    lines = []
    for path in paths:
        quoted = str(path.resolve()).replace("'", "'\\''")
        lines.append(f"file '{quoted}'")
    return "\n".join(lines) + "\n"


class FFmpegConcatAdapter(IClipConcatenator):
    """
    IClipConcatenator backed by the FFmpeg concat demuxer with stream copy.
    """

    def __init__(self, binary: str = "ffmpeg", timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    def concat(self, request: ConcatRequest) -> None:
        # 1. Playlist
        request.playlist.parent.mkdir(parents=True, exist_ok=True)
        request.playlist.write_text(render_playlist(item.path for item in request.inputs))
        request.output.ensure_parent_dir()

        # 2. Command
        # -safe 0: allow absolute paths in the playlist
        cmd = [
            self.binary,
            "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", str(request.playlist),
            "-c", "copy",
            str(request.output.path)
        ]

        logger.info(f"Concatenating {len(request.inputs)} clip(s) into {request.output.path.name}")

        # 3. Execute
        run_ffmpeg(cmd, "Clip concatenation", timeout=self.timeout)
