# File: highlighter/core/config/settings.py

import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


class Settings:
    # --- Paths ---
    # highlighter/core/config/settings.py -> config -> core -> highlighter -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    SCRATCH_DIR: Path = Path(os.getenv("SCRATCH_DIR", str(Path(tempfile.gettempdir()) / "highlighter")))

    # --- Ingest Watcher ---
    WATCH_FOLDER: Path = Path(os.getenv("WATCH_FOLDER", str(Path.home() / "Movies"))).expanduser()
    WATCH_EXTENSIONS: List[str] = _env_list("WATCH_EXTENSIONS", ".mp4,.mkv")
    MIN_FILE_SIZE_MB: float = float(os.getenv("MIN_FILE_SIZE_MB", "10"))
    STABILITY_WAIT_MS: int = int(os.getenv("STABILITY_WAIT_MS", "5000"))
    STABILITY_POLL_MS: int = int(os.getenv("STABILITY_POLL_MS", "1000"))
    STABILITY_REQUIRED_SAMPLES: int = int(os.getenv("STABILITY_REQUIRED_SAMPLES", "3"))
    WATCH_POLL_SECONDS: float = float(os.getenv("WATCH_POLL_SECONDS", "2"))
    WATCH_MAX_WORKERS: int = int(os.getenv("WATCH_MAX_WORKERS", "2"))

    # --- Markers ---
    MARKER_FILE: Path = Path(os.getenv("MARKER_FILE", str(DATA_DIR / "markers.txt"))).expanduser()
    OBS_HOST: str = os.getenv("OBS_HOST", "127.0.0.1")
    OBS_PORT: int = int(os.getenv("OBS_PORT", "4455"))
    OBS_PASSWORD: str = os.getenv("OBS_PASSWORD", "")
    OBS_RECONNECT_SECONDS: float = float(os.getenv("OBS_RECONNECT_SECONDS", "5"))
    HTTP_HOST: str = os.getenv("HTTP_HOST", "127.0.0.1")
    HTTP_PORT: int = int(os.getenv("HTTP_PORT", "3000"))

    # --- Clip Windows ---
    CLIP_BEFORE_SECONDS: float = float(os.getenv("CLIP_BEFORE_SECONDS", "15"))
    CLIP_AFTER_SECONDS: float = float(os.getenv("CLIP_AFTER_SECONDS", "15"))

    # --- Stage Selection ---
    CANDIDATE_WINDOW: int = int(os.getenv("CANDIDATE_WINDOW", "10"))

    # --- Object Storage ---
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "gcs").lower()
    GCS_BUCKET: str = os.getenv("GCS_BUCKET", "obs-pipeline-videos")
    GCP_PROJECT_ID: Optional[str] = os.getenv("GCP_PROJECT_ID") or None
    CREDENTIALS_PATH: Path = Path(os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "./service-account-key.json"))
    LOCAL_STORAGE_ROOT: Path = Path(os.getenv("LOCAL_STORAGE_ROOT", str(DATA_DIR / "storage")))

    # --- Database ---
    SQLALCHEMY_URL: Optional[str] = os.getenv("DATABASE_URL") or None
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "password")
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "highlighter_db")

    # --- External Tools ---
    # Auto-detect ffmpeg or use env var
    FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY_PATH", shutil.which("ffmpeg") or "ffmpeg")
    FFMPEG_TIMEOUT_SECONDS: Optional[float] = _env_optional_float("FFMPEG_TIMEOUT_SECONDS")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def __init__(self, **overrides):
        for key, value in overrides.items():
            if not hasattr(type(self), key) or isinstance(getattr(type(self), key), property):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def DATABASE_URL(self) -> str:
        # An explicit URL always wins; SQLite only when requested.
        if self.SQLALCHEMY_URL:
            return self.SQLALCHEMY_URL

        if os.getenv("USE_SQLITE", "false").lower() == "true":
            return f"sqlite:///{self.DATA_DIR / 'highlighter.db'}"

        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    def ensure_dirs(self):
        """Creates the scratch and data directories if they don't exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.SCRATCH_DIR.mkdir(parents=True, exist_ok=True)
        if self.STORAGE_BACKEND == "local":
            self.LOCAL_STORAGE_ROOT.mkdir(parents=True, exist_ok=True)


settings = Settings()
