from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import sessionmaker

from highlighter.core.common.enums import Stage
from .sql_models import VideoModel
from ..domain.interfaces import IVideoRepository
from ..domain.models import Clip, StageResult, VideoRecord


class SqlVideoRepository(IVideoRepository):

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def create(self, record: VideoRecord) -> VideoRecord:
        with self.session_factory() as db:
            try:
                model = VideoModel(
                    id=record.video_id,
                    file_name=record.file_name,
                    gcs_path=record.gcs_path,
                    file_size=record.file_size,
                    uploaded_by=record.uploaded_by,
                    status=record.status,
                    markers=list(record.markers),
                    has_markers=record.has_markers,
                )
                db.add(model)
                db.commit()
                db.refresh(model)  # picks up the server-assigned uploaded_at
                return _to_record(model)
            except Exception:
                db.rollback()
                raise

    def get(self, video_id: str) -> Optional[VideoRecord]:
        with self.session_factory() as db:
            model = db.get(VideoModel, video_id)
            return _to_record(model) if model else None

    def list_candidates(self, stage: Stage, limit: int) -> List[VideoRecord]:
        with self.session_factory() as db:
            query = db.query(VideoModel)

            if stage == Stage.EXTRACTION:
                # FIFO: whatever has waited longest goes first
                query = (
                    query.filter(VideoModel.has_markers.is_(True), VideoModel.clips_extracted.is_(False))
                    .order_by(VideoModel.uploaded_at.asc(), VideoModel.id.asc())
                )
            elif stage == Stage.COMPILATION:
                # Newest first: the operator is most likely waiting on the latest recording
                query = (
                    query.filter(VideoModel.clips_extracted.is_(True), VideoModel.clips_combined.is_(False))
                    .order_by(VideoModel.uploaded_at.desc(), VideoModel.id.desc())
                )
            else:
                raise ValueError(f"No candidate listing for stage: {stage}")

            return [_to_record(model) for model in query.limit(limit).all()]

    def mark_stage_complete(self, video_id: str, result: StageResult) -> bool:
        """
        Conditional update: WHERE id = :id AND <flag> IS false.
        rowcount tells whether this call won.
        """
        if result.stage == Stage.EXTRACTION:
            stmt = (
                update(VideoModel)
                .where(VideoModel.id == video_id, VideoModel.clips_extracted.is_(False))
                .values(
                    clips=[clip.to_dict() for clip in result.clips],
                    clips_count=len(result.clips),
                    clips_extracted=True,
                    clips_extracted_at=func.now(),
                    status=Stage.EXTRACTION.value,
                )
            )
        elif result.stage == Stage.COMPILATION:
            stmt = (
                update(VideoModel)
                .where(
                    VideoModel.id == video_id,
                    VideoModel.clips_extracted.is_(True),
                    VideoModel.clips_combined.is_(False),
                )
                .values(
                    combined_video=result.combined_video,
                    clips_combined=True,
                    clips_combined_at=func.now(),
                    status=Stage.COMPILATION.value,
                )
            )
        else:
            raise ValueError(f"No transition for stage: {result.stage}")

        with self.session_factory() as db:
            try:
                outcome = db.execute(stmt.execution_options(synchronize_session=False))
                db.commit()
                return outcome.rowcount == 1
            except Exception:
                db.rollback()
                raise


def _to_record(model: VideoModel) -> VideoRecord:
    return VideoRecord(
        video_id=model.id,
        file_name=model.file_name,
        gcs_path=model.gcs_path,
        file_size=model.file_size,
        uploaded_at=model.uploaded_at,
        markers=tuple(float(m) for m in (model.markers or [])),
        has_markers=bool(model.has_markers),
        status=model.status,
        uploaded_by=model.uploaded_by,
        clips_extracted=bool(model.clips_extracted),
        clips_extracted_at=model.clips_extracted_at,
        clips=tuple(Clip.from_dict(c) for c in (model.clips or [])),
        clips_combined=bool(model.clips_combined),
        clips_combined_at=model.clips_combined_at,
        combined_video=model.combined_video,
    )
