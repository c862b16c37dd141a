import logging
from pathlib import Path
from typing import List, Optional

from highlighter.core.common.enums import BatchOutcome
from highlighter.core.context import PipelineContext
from highlighter.core.errors import StageConflictError
from highlighter.core.shared_types import BatchResult, ItemOutcome, MediaFile, TimeRange, remove_quietly
from highlighter.core.videos.domain.models import Clip, StageResult, VideoRecord
from highlighter.features.storage.domain.models import StorageLocator, clip_object_path

from ..data.ffmpeg_adapter import FFmpegClipAdapter
from ..domain.interfaces import IClipGenerator
from ..domain.models import ClipRequest, clip_file_name

logger = logging.getLogger(__name__)


class ClipExtractionHandler:
    """
    Worker for the clipsExtracted stage: one clip per marker, best effort.
    """

    def __init__(self, ctx: PipelineContext, clip_generator: Optional[IClipGenerator] = None):
        self.ctx = ctx
        self.clip_generator = clip_generator or FFmpegClipAdapter(
            binary=ctx.ffmpeg_binary or ctx.settings.FFMPEG_BINARY,
            timeout=ctx.settings.FFMPEG_TIMEOUT_SECONDS,
        )

    def handle(self, record: VideoRecord) -> BatchResult[Clip]:
        settings = self.ctx.settings
        scratch = Path(settings.SCRATCH_DIR)
        local_source = scratch / record.file_name

        logger.info(f"Extracting {len(record.markers)} clip(s) for video {record.video_id} ({record.file_name})")

        try:
            # 1. Fetch the source into scratch
            try:
                self.ctx.store.download(StorageLocator.parse(record.gcs_path), local_source)
            except Exception as e:
                logger.exception(f"Failed to download source for video {record.video_id}")
                return BatchResult.failed(f"Source download failed: {e}")

            # 2. One clip per marker, in stored order
            items: List[ItemOutcome[Clip]] = [
                self._extract_one(record, local_source, index, marker)
                for index, marker in enumerate(record.markers, start=1)
            ]
        finally:
            remove_quietly(local_source)

        result = BatchResult.from_items(items)
        if result.outcome == BatchOutcome.FAILED:
            logger.error(f"No clips extracted for video {record.video_id}; stage not advanced")
            return result.with_outcome(BatchOutcome.FAILED, message="No clips were extracted")

        # 3. Advance with the clips that made it
        try:
            self.ctx.videos.advance_stage(record.video_id, StageResult.extracted(result.values))
        except StageConflictError as e:
            logger.warning(str(e))
            return result.with_outcome(BatchOutcome.CONFLICT, message=str(e))

        logger.info(
            f"Extracted {len(result.values)}/{len(items)} clip(s) for video {record.video_id}"
        )
        return result

    def _extract_one(self,
                     record: VideoRecord,
                     local_source: Path,
                     index: int,
                     marker: float) -> ItemOutcome[Clip]:
        settings = self.ctx.settings
        name = clip_file_name(Path(record.file_name).stem, index, marker)
        local_clip = Path(settings.SCRATCH_DIR) / name

        try:
            time_range = TimeRange.around(marker, settings.CLIP_BEFORE_SECONDS, settings.CLIP_AFTER_SECONDS)
            request = ClipRequest(
                source_video=MediaFile(local_source, validate_exists=True),
                output_video=MediaFile(local_clip, validate_exists=False),
                time_range=time_range,
            )
            self.clip_generator.create_clip(request)

            locator = self.ctx.store.upload(local_clip, clip_object_path(record.video_id, name))
            clip = Clip(
                marker_time=marker,
                clip_index=index,
                gcs_path=str(locator),
                file_name=name,
                duration=time_range.duration,
            )
            logger.info(f"Clip {index} for video {record.video_id} at {marker:.1f}s -> {locator}")
            return ItemOutcome(index=index, ok=True, value=clip)
        except Exception as e:
            logger.error(f"Failed to extract clip {index} (marker {marker}s) for video {record.video_id}: {e}")
            return ItemOutcome(index=index, ok=False, error=str(e))
        finally:
            remove_quietly(local_clip)
