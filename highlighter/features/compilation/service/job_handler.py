import logging
from pathlib import Path
from typing import List, Optional

from highlighter.core.common.enums import BatchOutcome
from highlighter.core.context import PipelineContext
from highlighter.core.errors import StageConflictError
from highlighter.core.shared_types import BatchResult, ItemOutcome, MediaFile, remove_quietly
from highlighter.core.videos.domain.models import StageResult, VideoRecord
from highlighter.features.storage.domain.models import StorageLocator, final_object_path

from ..data.ffmpeg_adapter import FFmpegConcatAdapter
from ..domain.interfaces import IClipConcatenator
from ..domain.models import ConcatRequest, combined_file_name

logger = logging.getLogger(__name__)


class CompilationHandler:
    """
    Worker for the clipsCombined stage.

    Downloads the record's clips in stored order, joins them once and uploads
    the result. `artifact` on the returned result is the combined locator.
    """

    def __init__(self, ctx: PipelineContext, concatenator: Optional[IClipConcatenator] = None):
        self.ctx = ctx
        self.concatenator = concatenator or FFmpegConcatAdapter(
            binary=ctx.ffmpeg_binary or ctx.settings.FFMPEG_BINARY,
            timeout=ctx.settings.FFMPEG_TIMEOUT_SECONDS,
        )

    def handle(self, record: VideoRecord) -> BatchResult[Path]:
        scratch = Path(self.ctx.settings.SCRATCH_DIR)
        output_name = combined_file_name(Path(record.file_name).stem)
        output = scratch / output_name
        playlist = scratch / f"{record.video_id}_concat.txt"
        local_clips: List[Path] = []

        logger.info(f"Combining {record.clips_count} clip(s) for video {record.video_id}")

        try:
            # 1. Fetch clips (a failed download drops that clip)
            items: List[ItemOutcome[Path]] = []
            for clip in record.clips:
                local_clip = scratch / clip.file_name
                # A failed download can leave a partial file behind
                local_clips.append(local_clip)
                try:
                    self.ctx.store.download(StorageLocator.parse(clip.gcs_path), local_clip)
                except Exception as e:
                    logger.error(f"Failed to download clip {clip.clip_index} for video {record.video_id}: {e}")
                    items.append(ItemOutcome(index=clip.clip_index, ok=False, error=str(e)))
                    continue
                items.append(ItemOutcome(index=clip.clip_index, ok=True, value=local_clip))

            downloads = BatchResult.from_items(items)
            if downloads.outcome == BatchOutcome.FAILED:
                logger.error(f"No clips downloaded for video {record.video_id}; stage not advanced")
                return BatchResult.failed("No clips could be downloaded", items)

            # 2. Join
            request = ConcatRequest(
                inputs=tuple(MediaFile(path) for path in downloads.values),
                output=MediaFile(output, validate_exists=False),
                playlist=playlist,
            )
            try:
                self.concatenator.concat(request)
            except RuntimeError as e:
                logger.error(f"Concatenation failed for video {record.video_id}: {e}")
                return BatchResult.failed(f"Concatenation failed: {e}", items)

            # 3. Upload the final video
            try:
                locator = str(self.ctx.store.upload(output, final_object_path(record.video_id, output_name)))
            except Exception as e:
                logger.exception(f"Failed to upload combined video for {record.video_id}")
                return BatchResult.failed(f"Upload failed: {e}", items)

            # 4. Advance
            try:
                self.ctx.videos.advance_stage(record.video_id, StageResult.combined(locator))
            except StageConflictError as e:
                logger.warning(str(e))
                return downloads.with_outcome(BatchOutcome.CONFLICT, artifact=locator, message=str(e))

            logger.info(f"Combined video for {record.video_id}: {locator}")
            return downloads.with_outcome(downloads.outcome, artifact=locator)
        finally:
            remove_quietly(*local_clips, playlist, output)
