import logging
import threading
from typing import Any, Callable, Dict, Optional

from highlighter.core.errors import RecorderUnavailableError
from ..domain.interfaces import IRecorderClient

logger = logging.getLogger(__name__)

ListenerFactory = Callable[[Callable[[bool], None]], Any]


class RecorderConnection:
    """
    Owns the live recorder connection and keeps it alive.

    A supervisor thread reconnects on a fixed delay, forever, and probes the
    connection while it is up. Callers never block on reconnection: while it
    is pending `connected` is False and record_status() raises
    RecorderUnavailableError.
    """

    def __init__(self,
                 client_factory: Callable[[], IRecorderClient],
                 reconnect_delay: float = 5.0,
                 listener_factory: Optional[ListenerFactory] = None):
        self._client_factory = client_factory
        self._listener_factory = listener_factory
        self.reconnect_delay = reconnect_delay

        self._lock = threading.Lock()
        self._client: Optional[IRecorderClient] = None
        self._listener: Any = None
        self._recording = False

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._client is not None

    @property
    def recording(self) -> bool:
        """Last known recording state (events, probes and marker calls keep it fresh)."""
        with self._lock:
            return self._recording

    def _set_recording(self, active: bool) -> None:
        with self._lock:
            self._recording = active

    # --- Connection ---

    def connect_once(self) -> bool:
        try:
            client = self._client_factory()
        except Exception as e:
            logger.error(f"Failed to connect to OBS WebSocket: {e}. Retrying in {self.reconnect_delay:g}s")
            return False

        with self._lock:
            self._client = client

        try:
            status = self.record_status()
        except RecorderUnavailableError:
            return False
        if status.get("outputActive"):
            logger.info("Recording is active")

        if self._listener_factory is not None:
            try:
                listener = self._listener_factory(self._set_recording)
            except Exception as e:
                # Recording state is still refreshed by probes and marker calls
                logger.warning(f"Could not subscribe to recording events: {e}")
            else:
                with self._lock:
                    self._listener = listener
        return True

    def record_status(self) -> Dict[str, Any]:
        """
        Live status straight from the recorder.

        Raises:
            RecorderUnavailableError: not connected, or the request failed (the
                connection is dropped and the supervisor reconnects).
        """
        with self._lock:
            client = self._client
        if client is None:
            raise RecorderUnavailableError("Not connected to OBS WebSocket")

        try:
            status = client.get_record_status()
        except Exception as e:
            logger.warning(f"OBS WebSocket disconnected ({e}). Reconnecting in {self.reconnect_delay:g}s")
            self._drop(client)
            raise RecorderUnavailableError(str(e)) from e

        self._set_recording(bool(status.get("outputActive")))
        return status

    def _drop(self, client: IRecorderClient) -> None:
        with self._lock:
            if self._client is not client:
                return
            self._client = None
            listener, self._listener = self._listener, None
        self._close_quietly(client)
        self._close_quietly(listener)

    @staticmethod
    def _close_quietly(handle: Any) -> None:
        if handle is None:
            return
        try:
            handle.disconnect()
        except Exception as e:
            logger.debug(f"Ignoring error while closing recorder handle: {e}")

    # --- Supervisor ---

    def run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            if not self.connected:
                self.connect_once()
            else:
                try:
                    self.record_status()
                except RecorderUnavailableError:
                    pass  # already logged; reconnect on the next tick
            stop_event.wait(self.reconnect_delay)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run, args=(self._stop_event,), name="recorder-supervisor", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self.reconnect_delay + 1)
            self._thread = None
        with self._lock:
            client, self._client = self._client, None
            listener, self._listener = self._listener, None
        self._close_quietly(client)
        self._close_quietly(listener)
