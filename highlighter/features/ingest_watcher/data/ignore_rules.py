from pathlib import Path


class IgnoreRules:
    """
    Central logic for what the watcher should never look at.
    """

    # Exact folder/file names to ignore
    IGNORED_NAMES = {
        ".DS_Store", "Thumbs.db", "desktop.ini", "TV",
    }

    # Partial writes and sidecars some recorders leave next to the video
    IGNORED_EXTENSIONS = {
        ".tmp", ".part", ".crdownload", ".log",
    }

    @classmethod
    def should_ignore(cls, path: Path) -> bool:
        """
        Returns True if the file/folder should be skipped.
        """
        # 1. Exact name matches
        if path.name in cls.IGNORED_NAMES:
            return True

        # 2. Hidden files and folders
        if path.name.startswith("."):
            return True

        # 3. Temp extensions
        if path.suffix.lower() in cls.IGNORED_EXTENSIONS:
            return True

        return False
