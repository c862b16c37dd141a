import re
from dataclasses import dataclass
from pathlib import PurePosixPath

from highlighter.core.errors import InvalidLocatorError

_LOCATOR_RE = re.compile(r"^([a-z][a-z0-9+.-]*)://([^/]+)/(.+)$")

# Object layout inside the bucket
SOURCE_PREFIX = "videos"
CLIPS_PREFIX = "clips"
FINALS_PREFIX = "finals"


@dataclass(frozen=True)
class StorageLocator:
    """
    Value Object for <scheme>://<bucket>/<path>.
    """
    scheme: str
    bucket: str
    path: str

    def __str__(self) -> str:
        return f"{self.scheme}://{self.bucket}/{self.path}"

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @classmethod
    def parse(cls, value: str) -> "StorageLocator":
        match = _LOCATOR_RE.match(value or "")
        if not match:
            raise InvalidLocatorError(f"Invalid storage path: {value!r}")
        scheme, bucket, path = match.groups()
        return cls(scheme=scheme, bucket=bucket, path=path)


def source_object_path(file_name: str) -> str:
    return f"{SOURCE_PREFIX}/{file_name}"


def clip_object_path(video_id: str, clip_file_name: str) -> str:
    return f"{CLIPS_PREFIX}/{video_id}/{clip_file_name}"


def final_object_path(video_id: str, combined_file_name: str) -> str:
    return f"{FINALS_PREFIX}/{video_id}/{combined_file_name}"
