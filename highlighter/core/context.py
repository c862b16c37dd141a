# File: highlighter/core/context.py

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from highlighter.core.config.settings import Settings
from highlighter.core.database.connection import create_schema, create_session_factory
from highlighter.core.errors import InitializationError
from highlighter.core.ffmpeg import ensure_ffmpeg
from highlighter.core.videos.data.repository import SqlVideoRepository
from highlighter.core.videos.service.manager import VideoStateMachine
from highlighter.features.storage.domain.interfaces import IObjectStore
from highlighter.features.storage.service.api import build_object_store

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """
    Every connection handle a stage processor needs, built once per process
    and passed explicitly to the handlers. `close()` is the only teardown.
    """
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    store: IObjectStore
    videos: VideoStateMachine
    ffmpeg_binary: Optional[str] = None

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> "PipelineContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_context(settings: Settings,
                  store: Optional[IObjectStore] = None,
                  require_ffmpeg: bool = True) -> PipelineContext:
    """
    Initialization order:
    1. scratch / data directories
    2. ffmpeg (stage processors only)
    3. object store
    4. database engine + schema

    Raises:
        InitializationError: any step failed. Nothing has been written.
    """
    # 1. Directories (create-if-absent)
    try:
        settings.ensure_dirs()
    except OSError as e:
        raise InitializationError(f"Failed to create working directories: {e}") from e

    # 2. External tool
    ffmpeg_binary = ensure_ffmpeg(settings.FFMPEG_BINARY) if require_ffmpeg else None

    # 3. Storage
    store = store or build_object_store(settings)

    # 4. Database
    engine, session_factory = create_session_factory(settings.DATABASE_URL)
    try:
        create_schema(engine)
    except SQLAlchemyError as e:
        engine.dispose()
        raise InitializationError(f"Database initialization failed: {e}") from e

    videos = VideoStateMachine(SqlVideoRepository(session_factory), candidate_window=settings.CANDIDATE_WINDOW)
    logger.info("Pipeline context ready")

    return PipelineContext(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        store=store,
        videos=videos,
        ffmpeg_binary=ffmpeg_binary,
    )
