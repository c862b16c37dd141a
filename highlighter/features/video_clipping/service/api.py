from typing import Optional

from highlighter.core.common.enums import Stage
from highlighter.core.context import PipelineContext
from highlighter.core.shared_types import BatchResult
from highlighter.core.videos.domain.models import Clip

from ..domain.interfaces import IClipGenerator
from .job_handler import ClipExtractionHandler


def extract_clips(ctx: PipelineContext,
                  video_id: Optional[str] = None,
                  clip_generator: Optional[IClipGenerator] = None) -> Optional[BatchResult[Clip]]:
    """
    Public Service API: run the extraction stage for one video.

    Args:
        ctx: Pipeline context.
        video_id: Explicit video; when omitted the oldest pending one is used.
        clip_generator: Override for the clipping tool.

    Returns:
        None when there is nothing to do, else the batch result.
    """
    record = ctx.videos.find_next_eligible(Stage.EXTRACTION, video_id)
    if record is None:
        return None
    return ClipExtractionHandler(ctx, clip_generator).handle(record)
