from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Tuple


class IFileWalker(ABC):
    """
    Contract for listing the watch folder.
    """
    @abstractmethod
    def walk(self, root: Path, recursive: bool) -> Iterator[Tuple[Path, int]]:
        """
        Yields (path, size_in_bytes) for every candidate file.
        Should handle filtering of system/hidden files and permission errors internally.
        """
        pass
