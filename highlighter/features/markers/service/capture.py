import logging
from typing import Any, Dict

from highlighter.core.errors import RecorderUnavailableError
from ..data.marker_file import MarkerFile
from ..domain.models import MarkerResult
from ..domain.resolver import resolve_elapsed_seconds
from .recorder import RecorderConnection

logger = logging.getLogger(__name__)


class MarkerCaptureService:
    """
    Turns an operator trigger into one line in the marker file.
    """

    def __init__(self, recorder: RecorderConnection, marker_file: MarkerFile):
        self.recorder = recorder
        self.marker_file = marker_file

    def capture(self) -> MarkerResult:
        if not self.recorder.connected:
            return MarkerResult.rejected("Not connected to OBS WebSocket")

        # 1. Ask the recorder directly; the cached flag may be stale
        try:
            status = self.recorder.record_status()
        except RecorderUnavailableError as e:
            logger.error(f"Error checking recording status: {e}")
            return MarkerResult.rejected("Could not check recording status. Make sure OBS is running.")

        if not status.get("outputActive"):
            return MarkerResult.rejected("Not recording. Start recording in OBS first.")

        # 2. Normalize the elapsed time
        seconds = resolve_elapsed_seconds(status)
        if seconds is None:
            logger.warning(f"Could not resolve recording time from status: {status}")
            return MarkerResult.rejected("Could not get recording time. Make sure recording is active in OBS.")

        # 3. Persist
        try:
            self.marker_file.append(seconds)
        except OSError as e:
            logger.error(f"Error saving marker: {e}")
            return MarkerResult.rejected("Failed to save marker to file")

        logger.info(f"Marker saved: {seconds:.2f}s")
        return MarkerResult.saved(seconds)

    def status(self) -> Dict[str, Any]:
        return {
            "connected": self.recorder.connected,
            "recording": self.recorder.recording,
            "markerFile": str(self.marker_file.path),
        }
