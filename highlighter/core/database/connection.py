# File: highlighter/core/database/connection.py

from typing import Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .base import Base


def create_session_factory(database_url: str) -> Tuple[Engine, sessionmaker]:
    """
    Builds the engine and session factory for one process.
    The caller owns both and is responsible for disposing the engine.
    """
    # check_same_thread=False is needed only for SQLite (the watcher writes from worker threads)
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}

    engine = create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        connect_args=connect_args
    )

    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return engine, session_factory


def create_schema(engine: Engine) -> None:
    """Creates any missing tables. Safe to call on every start."""
    # Import models so they register on Base.metadata
    import highlighter.core.videos.data.sql_models  # noqa: F401

    Base.metadata.create_all(bind=engine)
