import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Set, Union


def normalize_path(path: Union[str, Path]) -> str:
    return os.path.normcase(os.path.abspath(str(path)))


class InFlightRegistry:
    """
    Paths currently being processed by this process.

    Only deduplicates repeated triggers for the same file inside one watcher;
    it is not a cross-process lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._paths: Set[str] = set()

    @contextmanager
    def claim(self, path: Union[str, Path]) -> Iterator[bool]:
        """
        Yields True if this caller now owns the path, False if someone else
        already does. An owned path is released on every exit path.
        """
        key = normalize_path(path)
        with self._lock:
            acquired = key not in self._paths
            if acquired:
                self._paths.add(key)
        try:
            yield acquired
        finally:
            if acquired:
                with self._lock:
                    self._paths.discard(key)

    def __contains__(self, path: Union[str, Path]) -> bool:
        with self._lock:
            return normalize_path(path) in self._paths

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)
