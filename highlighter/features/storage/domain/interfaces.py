from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from .models import StorageLocator


class IObjectStore(ABC):
    """
    Contract for durable object storage (one bucket).
    """

    scheme: str

    @abstractmethod
    def upload(self,
               local_path: Path,
               object_path: str,
               content_type: str = "video/mp4",
               metadata: Optional[Dict[str, str]] = None) -> StorageLocator:
        """
        Uploads a local file to <bucket>/<object_path>.
        Returns the locator of the stored object.
        """
        pass

    @abstractmethod
    def download(self, locator: StorageLocator, local_path: Path) -> None:
        """
        Downloads the object to local_path, overwriting it.

        Raises:
            InvalidLocatorError: the locator belongs to another backend.
        """
        pass
