from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, func

from highlighter.core.database.base import Base


class VideoModel(Base):
    """
    One ingested recording and its stage flags.

    Stage flags only ever go False -> True; the repository enforces this with
    conditional updates.
    """
    __tablename__ = "videos"

    id = Column(String(64), primary_key=True)
    file_name = Column(String, nullable=False)
    gcs_path = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    uploaded_by = Column(String, nullable=False, default="obs-watcher")
    status = Column(String, nullable=False, default="uploaded")

    # Server-assigned
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    # Raw marker offsets in capture order
    markers = Column(JSON, nullable=False, default=list)
    has_markers = Column(Boolean, nullable=False, default=False, index=True)

    # Stage 1
    clips_extracted = Column(Boolean, nullable=False, default=False, index=True)
    clips_extracted_at = Column(DateTime(timezone=True), nullable=True)
    clips_count = Column(Integer, nullable=False, default=0)
    clips = Column(JSON, nullable=False, default=list)

    # Stage 2
    clips_combined = Column(Boolean, nullable=False, default=False, index=True)
    clips_combined_at = Column(DateTime(timezone=True), nullable=True)
    combined_video = Column(String, nullable=True)
