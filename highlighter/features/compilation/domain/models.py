from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from highlighter.core.shared_types import MediaFile


@dataclass(frozen=True)
class ConcatRequest:
    """
    Inputs are joined in the given order, without re-encoding.
    """
    inputs: Tuple[MediaFile, ...]
    output: MediaFile
    playlist: Path

    def __post_init__(self):
        if not self.inputs:
            raise ValueError("Nothing to concatenate.")


def combined_file_name(stem: str) -> str:
    return f"{stem}_highlights.mp4"
