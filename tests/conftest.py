# File: tests/conftest.py

import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

import pytest
from sqlalchemy_utils import database_exists, create_database

# 1. Add project root to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

# 2. Import Settings and the context builder
from highlighter.core.config.settings import Settings
from highlighter.core.context import build_context
from highlighter.core.videos.domain.models import VideoRecord
from highlighter.features.compilation.domain.interfaces import IClipConcatenator
from highlighter.features.compilation.domain.models import ConcatRequest
from highlighter.features.storage.domain.models import source_object_path
from highlighter.features.video_clipping.domain.interfaces import IClipGenerator
from highlighter.features.video_clipping.domain.models import ClipRequest


@pytest.fixture(scope="session", autouse=True)
def global_setup():
    """Keeps third-party noise out of the test output."""
    logging.getLogger("werkzeug").setLevel(logging.ERROR)
    logging.getLogger("urllib3").setLevel(logging.ERROR)
    yield


@pytest.fixture
def settings(tmp_path) -> Settings:
    """
    Everything local: SQLite file, directory-backed storage, scratch and
    watch folders under tmp_path, fast stability polling.
    """
    watch_dir = tmp_path / "watch"
    watch_dir.mkdir()
    return Settings(
        DATA_DIR=tmp_path / "data",
        SCRATCH_DIR=tmp_path / "scratch",
        WATCH_FOLDER=watch_dir,
        MIN_FILE_SIZE_MB=0,
        STABILITY_WAIT_MS=500,
        STABILITY_POLL_MS=10,
        STABILITY_REQUIRED_SAMPLES=3,
        WATCH_POLL_SECONDS=0.05,
        STORAGE_BACKEND="local",
        LOCAL_STORAGE_ROOT=tmp_path / "storage",
        GCS_BUCKET="test-bucket",
        MARKER_FILE=tmp_path / "data" / "markers.txt",
        SQLALCHEMY_URL=f"sqlite:///{tmp_path / 'highlighter_test.db'}",
        CLIP_BEFORE_SECONDS=15,
        CLIP_AFTER_SECONDS=15,
    )


@pytest.fixture
def ctx(settings):
    """
    A fresh pipeline context per test (own SQLite file, own bucket dir).
    ffmpeg is not required; handlers get fake tools unless a test opts in.
    """
    if not database_exists(settings.DATABASE_URL):
        create_database(settings.DATABASE_URL)

    context = build_context(settings, require_ffmpeg=False)
    yield context
    context.close()


@pytest.fixture
def upload_source(ctx, tmp_path) -> Callable[..., VideoRecord]:
    """
    Factory: puts a fake recording in storage and registers it as Stage 0.
    """
    def _upload(markers: Optional[List[float]] = None, file_name: str = "session.mkv") -> VideoRecord:
        local = tmp_path / "uploads" / file_name
        local.parent.mkdir(parents=True, exist_ok=True)
        local.write_bytes(b"recording:" + file_name.encode())

        locator = ctx.store.upload(local, source_object_path(file_name))
        return ctx.videos.register_upload(
            file_name=file_name,
            gcs_path=str(locator),
            file_size=local.stat().st_size,
            markers=markers,
        )

    return _upload


# --- Fake media tools ---

class FakeClipGenerator(IClipGenerator):
    """
    Writes a small text file describing the requested cut.
    Fails for any marker whose clip start is listed in `fail_starts`.
    """

    def __init__(self, fail_starts=()):
        self.fail_starts = set(fail_starts)
        self.requests: List[ClipRequest] = []

    def create_clip(self, request: ClipRequest) -> None:
        self.requests.append(request)
        if request.time_range.start_seconds in self.fail_starts:
            raise RuntimeError(f"Video clipping failed: simulated error at {request.time_range.start_seconds}s")
        request.output_video.ensure_parent_dir()
        request.output_video.path.write_text(
            f"{request.time_range.start_seconds}:{request.time_range.duration}\n"
        )


class FakeConcatenator(IClipConcatenator):
    """Joins the input files byte-wise, in order."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.requests: List[ConcatRequest] = []

    def concat(self, request: ConcatRequest) -> None:
        self.requests.append(request)
        if self.fail:
            raise RuntimeError("Clip concatenation failed: simulated error")
        request.output.ensure_parent_dir()
        request.output.path.write_bytes(b"".join(item.path.read_bytes() for item in request.inputs))


@pytest.fixture
def clip_generator() -> FakeClipGenerator:
    return FakeClipGenerator()


@pytest.fixture
def concatenator() -> FakeConcatenator:
    return FakeConcatenator()
