import logging
from typing import Any, Callable, Dict, Optional

import obsws_python as obs

from ..domain.interfaces import IRecorderClient

logger = logging.getLogger(__name__)

# obsws-python exposes response fields in snake_case; the resolver works on
# the recorder's own camelCase names.
_RECORD_STATUS_FIELDS = {
    "output_active": "outputActive",
    "output_paused": "outputPaused",
    "output_timecode": "outputTimecode",
    "output_duration": "outputDuration",
    "output_bytes": "outputBytes",
}


class ObsRecorderClient(IRecorderClient):
    """
    OBS WebSocket (v5) request client. Connects on construction.
    """

    def __init__(self, host: str, port: int, password: str = "", timeout: float = 3.0):
        self.host = host
        self.port = port
        self._client = obs.ReqClient(host=host, port=port, password=password or "", timeout=timeout)
        logger.info(f"Connected to OBS WebSocket at {host}:{port}")

    def get_record_status(self) -> Dict[str, Any]:
        response = self._client.get_record_status()
        return {
            raw_name: getattr(response, attr, None)
            for attr, raw_name in _RECORD_STATUS_FIELDS.items()
        }

    def disconnect(self) -> None:
        self._client.disconnect()


class ObsRecordStateListener:
    """
    Subscribes to RecordStateChanged and forwards the new active flag.
    """

    def __init__(self,
                 host: str,
                 port: int,
                 password: str,
                 on_change: Callable[[bool], None],
                 timeout: float = 3.0):
        self._on_change = on_change
        self._client: Optional[obs.EventClient] = obs.EventClient(
            host=host, port=port, password=password or "", timeout=timeout
        )
        # obsws-python dispatches on the callback's function name
        self._client.callback.register(self.on_record_state_changed)

    def on_record_state_changed(self, data) -> None:
        active = bool(getattr(data, "output_active", False))
        logger.info("Recording started" if active else "Recording stopped")
        self._on_change(active)

    def disconnect(self) -> None:
        if self._client is not None:
            self._client.disconnect()
            self._client = None
