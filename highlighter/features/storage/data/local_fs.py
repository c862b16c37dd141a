import json
import shutil
from pathlib import Path
from typing import Dict, Optional

from highlighter.core.errors import InvalidLocatorError
from ..domain.interfaces import IObjectStore
from ..domain.models import StorageLocator


class LocalObjectStore(IObjectStore):
    """
    Directory-backed object store: <root>/<bucket>/<object_path>.
    Used for local runs and tests. Locators use the local:// scheme.
    """

    scheme = "local"

    def __init__(self, root: Path, bucket_name: str):
        self.root = root
        self.bucket_name = bucket_name

    def object_file(self, locator: StorageLocator) -> Path:
        return self.root / locator.bucket / locator.path

    def upload(self,
               local_path: Path,
               object_path: str,
               content_type: str = "video/mp4",
               metadata: Optional[Dict[str, str]] = None) -> StorageLocator:
        locator = StorageLocator(scheme=self.scheme, bucket=self.bucket_name, path=object_path)
        destination = self.object_file(locator)
        destination.parent.mkdir(parents=True, exist_ok=True)

        # Copy, not move: the caller owns the local file and cleans it up
        shutil.copy2(str(local_path), str(destination))

        sidecar = {"contentType": content_type, "metadata": metadata or {}}
        destination.with_name(destination.name + ".meta.json").write_text(json.dumps(sidecar))
        return locator

    def download(self, locator: StorageLocator, local_path: Path) -> None:
        if locator.scheme != self.scheme:
            raise InvalidLocatorError(f"Not a local storage locator: {locator}")

        source = self.object_file(locator)
        if not source.is_file():
            raise FileNotFoundError(f"Object not found: {locator}")

        local_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(str(source), str(local_path))
