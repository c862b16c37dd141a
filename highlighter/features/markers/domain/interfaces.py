from abc import ABC, abstractmethod
from typing import Any, Dict


class IRecorderClient(ABC):
    """
    Contract for a live connection to the recorder.
    Abstracts the OBS WebSocket client from the marker logic.
    """

    @abstractmethod
    def get_record_status(self) -> Dict[str, Any]:
        """
        Returns the raw record status with the recorder's own field names
        (outputActive, outputTimecode, outputDuration, ...).

        Raises:
            Exception: any transport failure; the caller treats it as a lost connection.
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass
