# File: highlighter/core/common/enums.py

from enum import Enum, unique


@unique
class Stage(str, Enum):
    """
    Pipeline stages in their strict order.
    UPLOADED is implicit: a record exists only once its source is uploaded.
    """
    UPLOADED = "uploaded"
    EXTRACTION = "clipsExtracted"
    COMPILATION = "clipsCombined"


@unique
class BatchOutcome(str, Enum):
    SUCCESS = "success"      # every item succeeded, stage advanced
    PARTIAL = "partial"      # some items failed, stage advanced anyway
    FAILED = "failed"        # nothing usable, stage left untouched
    CONFLICT = "conflict"    # work done, but another run advanced the stage first
