import logging
import os
from pathlib import Path
from typing import Iterator, Tuple

from ..domain.interfaces import IFileWalker
from .ignore_rules import IgnoreRules

logger = logging.getLogger(__name__)


class LocalFileWalker(IFileWalker):
    """
    Concrete implementation using os.walk. Unreadable folders are skipped with
    a warning instead of aborting the scan.
    """

    def walk(self, root: Path, recursive: bool) -> Iterator[Tuple[Path, int]]:
        if recursive:
            for dirpath, dirnames, filenames in os.walk(root, onerror=self._on_error):
                # Modifying 'dirnames' in place tells os.walk to skip ignored folders
                dirnames[:] = [d for d in dirnames if not IgnoreRules.should_ignore(Path(d))]

                for filename in filenames:
                    entry = self._entry(Path(dirpath) / filename)
                    if entry:
                        yield entry
        else:
            for item in root.iterdir():
                entry = self._entry(item)
                if entry:
                    yield entry

    def _entry(self, path: Path):
        if IgnoreRules.should_ignore(path):
            return None
        try:
            if not path.is_file():
                return None
            return path, path.stat().st_size
        except OSError:
            # Vanished between listing and stat, or no permission
            return None

    @staticmethod
    def _on_error(error: OSError) -> None:
        logger.warning(f"Permission denied for: {getattr(error, 'filename', error)} (ignoring)")
