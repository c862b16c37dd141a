import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from .errors import InitializationError

logger = logging.getLogger(__name__)


def ensure_ffmpeg(binary: str) -> str:
    """
    Resolves the ffmpeg binary or raises InitializationError.
    Stage processors call this once, before touching storage or the database.
    """
    resolved = shutil.which(binary)
    if resolved is None and Path(binary).is_file():
        resolved = binary
    if resolved is None:
        raise InitializationError(
            f"ffmpeg not found (looked for '{binary}'). Install it or set FFMPEG_BINARY_PATH."
        )
    return resolved


def run_ffmpeg(cmd: List[str], action: str, timeout: Optional[float] = None) -> None:
    """
    Runs one ffmpeg invocation to completion.

    Raises:
        RuntimeError: non-zero exit, missing binary, or the optional deadline expired.
    """
    logger.info(f"Executing FFmpeg {action}: {' '.join(cmd)}")

    try:
        # capture_output=True allows us to log stderr if it fails
        subprocess.run(
            cmd,
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout
        )
    except subprocess.CalledProcessError as e:
        error_message = e.stderr.strip() if e.stderr else "Unknown FFmpeg error"
        logger.error(f"FFmpeg {action} Failed. STDERR: {error_message}")
        raise RuntimeError(f"{action} failed: {error_message}") from e
    except subprocess.TimeoutExpired as e:
        logger.error(f"FFmpeg {action} timed out after {timeout}s")
        raise RuntimeError(f"{action} timed out after {timeout}s") from e
    except OSError as e:
        logger.error(f"FFmpeg {action} could not start: {e}")
        raise RuntimeError(f"{action} failed: could not run '{cmd[0]}': {e}") from e
