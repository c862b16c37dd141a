from pathlib import Path
from typing import Optional

from highlighter.core.common.enums import Stage
from highlighter.core.context import PipelineContext
from highlighter.core.shared_types import BatchResult

from ..domain.interfaces import IClipConcatenator
from .job_handler import CompilationHandler


def combine_clips(ctx: PipelineContext,
                  video_id: Optional[str] = None,
                  concatenator: Optional[IClipConcatenator] = None) -> Optional[BatchResult[Path]]:
    """
    Public Service API: run the compilation stage for one video.
    Without an id, the most recently uploaded pending video is used.
    Returns None when there is nothing to do.
    """
    record = ctx.videos.find_next_eligible(Stage.COMPILATION, video_id)
    if record is None:
        return None
    return CompilationHandler(ctx, concatenator).handle(record)
