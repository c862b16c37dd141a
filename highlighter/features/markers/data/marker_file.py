import fcntl
import logging
import math
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, List

logger = logging.getLogger(__name__)


def parse_markers(content: str) -> List[float]:
    """
    One float of seconds per line. Blank, non-numeric and non-finite lines
    are dropped without comment.
    """
    markers = []
    for line in content.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            value = float(line)
        except ValueError:
            continue
        if math.isfinite(value):
            markers.append(value)
    return markers


class MarkerFile:
    """
    The pending-marker side channel: appended to by marker capture, read and
    then consumed by the ingest watcher once a recording has been registered.

    The marker server and the watcher run as separate processes, so every
    access holds an exclusive flock on the file.
    """

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self, mode: str) -> Iterator[IO[str]]:
        with self._lock:
            with open(self.path, mode, encoding="utf-8") as fh:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
                try:
                    yield fh
                finally:
                    fh.flush()
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    def append(self, seconds: float) -> None:
        """
        Raises:
            OSError: the file could not be written.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._locked("a") as fh:
            fh.write(f"{seconds:.2f}\n")

    def peek(self) -> List[float]:
        """
        Current pending markers, without consuming them.
        A missing file means no markers; an unreadable one is logged and
        treated the same way so the upload can still go ahead.
        """
        if not self.path.exists():
            return []
        try:
            with self._locked("r") as fh:
                content = fh.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Could not read marker file {self.path}: {e}")
            return []
        return parse_markers(content)

    def consume(self, count: int) -> List[float]:
        """
        Removes the first `count` pending markers and returns them. Markers
        appended after the caller's peek() stay pending.

        Raises:
            OSError: the file could not be rewritten.
        """
        if count <= 0 or not self.path.exists():
            return []
        with self._locked("r+") as fh:
            markers = parse_markers(fh.read())
            fh.seek(0)
            fh.truncate()
            fh.writelines(f"{m:.2f}\n" for m in markers[count:])
        return markers[:count]
