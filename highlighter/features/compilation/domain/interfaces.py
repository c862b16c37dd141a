from abc import ABC, abstractmethod
from .models import ConcatRequest


class IClipConcatenator(ABC):
    """
    Contract for joining clips into one video.
    """

    @abstractmethod
    def concat(self, request: ConcatRequest) -> None:
        """
        Raises:
            RuntimeError: If the underlying process fails.
        """
        pass
