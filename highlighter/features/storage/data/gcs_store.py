import logging
from pathlib import Path
from typing import Dict, Optional

from google.auth.exceptions import DefaultCredentialsError
from google.cloud import storage as gcs_storage

from highlighter.core.errors import InitializationError, InvalidLocatorError
from ..domain.interfaces import IObjectStore
from ..domain.models import StorageLocator

logger = logging.getLogger(__name__)


class GCSObjectStore(IObjectStore):
    """
    Google Cloud Storage backend. Locators use the gs:// scheme.
    """

    scheme = "gs"

    def __init__(self, client: gcs_storage.Client, bucket_name: str):
        self.client = client
        self.bucket_name = bucket_name
        self.bucket = client.bucket(bucket_name)

    @classmethod
    def from_credentials(cls, bucket_name: str, credentials_path: Path, project_id: Optional[str] = None) -> "GCSObjectStore":
        """
        Builds the client from a service-account key file.

        Raises:
            InitializationError: key file missing or unusable.
        """
        if not credentials_path.is_file():
            raise InitializationError(
                f"Service account key not found: {credentials_path}. Set GOOGLE_APPLICATION_CREDENTIALS."
            )
        try:
            client = gcs_storage.Client.from_service_account_json(str(credentials_path), project=project_id)
        except (ValueError, OSError, DefaultCredentialsError) as e:
            raise InitializationError(f"GCS initialization failed: {e}") from e

        logger.info(f"Google Cloud Storage initialized (bucket: {bucket_name})")
        return cls(client, bucket_name)

    def upload(self,
               local_path: Path,
               object_path: str,
               content_type: str = "video/mp4",
               metadata: Optional[Dict[str, str]] = None) -> StorageLocator:
        blob = self.bucket.blob(object_path)
        if metadata:
            blob.metadata = metadata

        logger.info(f"Uploading {local_path.name} to gs://{self.bucket_name}/{object_path}")
        blob.upload_from_filename(str(local_path), content_type=content_type)
        return StorageLocator(scheme=self.scheme, bucket=self.bucket_name, path=object_path)

    def download(self, locator: StorageLocator, local_path: Path) -> None:
        if locator.scheme != self.scheme:
            raise InvalidLocatorError(f"Not a GCS locator: {locator}")

        local_path.parent.mkdir(parents=True, exist_ok=True)
        blob = self.client.bucket(locator.bucket).blob(locator.path)
        blob.download_to_filename(str(local_path))
