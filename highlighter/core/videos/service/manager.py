import logging
from typing import List, Optional

from highlighter.core.common.enums import Stage
from highlighter.core.errors import StageConflictError
from ..domain.interfaces import IVideoRepository
from ..domain.models import StageResult, VideoRecord, new_video_id

logger = logging.getLogger(__name__)


class VideoStateMachine:
    """
    Public API for the per-video stage progression.

    uploaded -> clipsExtracted -> clipsCombined. Every stage is a gate that
    opens once; selection and transition are two round-trips, and the
    transition is conditional so a concurrent run cannot apply it twice.
    """

    def __init__(self, repo: IVideoRepository, candidate_window: int = 10):
        self.repo = repo
        self.candidate_window = candidate_window

    def register_upload(self,
                        file_name: str,
                        gcs_path: str,
                        file_size: int,
                        markers: Optional[List[float]] = None) -> VideoRecord:
        """Creates the record for a freshly uploaded source. This is Stage 0."""
        markers = list(markers or [])
        record = VideoRecord(
            video_id=new_video_id(),
            file_name=file_name,
            gcs_path=gcs_path,
            file_size=file_size,
            markers=tuple(markers),
            has_markers=bool(markers),
        )
        created = self.repo.create(record)
        logger.info(f"Video record created: {created.video_id} ({file_name}, {len(markers)} marker(s))")
        return created

    @staticmethod
    def is_eligible(record: VideoRecord, stage: Stage) -> bool:
        if stage == Stage.EXTRACTION:
            return record.has_markers and len(record.markers) > 0 and not record.clips_extracted
        if stage == Stage.COMPILATION:
            return record.clips_extracted and len(record.clips) > 0 and not record.clips_combined
        return False

    def find_next_eligible(self, stage: Stage, video_id: Optional[str] = None) -> Optional[VideoRecord]:
        """
        Picks the next unit of work for a stage.

        With an explicit id: that record, if it is eligible.
        Without: EXTRACTION takes the first pending record in listing order
        (oldest first); COMPILATION takes the most recently uploaded one.
        """
        if video_id:
            record = self.repo.get(video_id)
            if record is None:
                logger.info(f"Video {video_id} not found")
                return None
            if not self.is_eligible(record, stage):
                logger.info(f"Video {video_id} is not eligible for {stage.value}")
                return None
            return record

        candidates = [
            record for record in self.repo.list_candidates(stage, self.candidate_window)
            if self.is_eligible(record, stage)
        ]
        if not candidates:
            return None

        if stage == Stage.COMPILATION:
            # Ties on uploaded_at fall back to the time-ordered id
            return max(candidates, key=lambda r: (r.uploaded_at, r.video_id))
        return candidates[0]

    def advance_stage(self, video_id: str, result: StageResult) -> VideoRecord:
        """
        Applies one stage transition atomically.

        Raises:
            StageConflictError: the flag was already set (another run won).
        """
        if not self.repo.mark_stage_complete(video_id, result):
            raise StageConflictError(video_id, result.stage.value)

        logger.info(f"Video {video_id} advanced to {result.stage.value}")
        return self.repo.get(video_id)
