from highlighter.core.config.settings import Settings
from highlighter.core.errors import InitializationError
from ..data.gcs_store import GCSObjectStore
from ..data.local_fs import LocalObjectStore
from ..domain.interfaces import IObjectStore


def build_object_store(settings: Settings) -> IObjectStore:
    """
    Factory for the configured storage backend.

    Raises:
        InitializationError: unknown backend or unusable credentials.
    """
    backend = settings.STORAGE_BACKEND
    if backend == "gcs":
        return GCSObjectStore.from_credentials(
            bucket_name=settings.GCS_BUCKET,
            credentials_path=settings.CREDENTIALS_PATH,
            project_id=settings.GCP_PROJECT_ID,
        )
    if backend == "local":
        settings.LOCAL_STORAGE_ROOT.mkdir(parents=True, exist_ok=True)
        return LocalObjectStore(root=settings.LOCAL_STORAGE_ROOT, bucket_name=settings.GCS_BUCKET)

    raise InitializationError(f"Unknown STORAGE_BACKEND: {backend!r} (expected 'gcs' or 'local')")
