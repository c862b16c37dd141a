from abc import ABC, abstractmethod
from .models import ClipRequest


class IClipGenerator(ABC):
    """
    Contract for the clipping tool.
    Abstracts away the underlying tool (FFmpeg) from the extraction handler.
    """

    @abstractmethod
    def create_clip(self, request: ClipRequest) -> None:
        """
        Writes the sub-range of the source to the output file.

        Raises:
            RuntimeError: If the underlying clipping process fails.
        """
        pass
