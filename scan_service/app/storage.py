from typing import Optional
from botocore.exceptions import BotoCoreError, ClientError
from .exceptions import StorageConfigError, StorageError
from .logger import get_logger

logger = get_logger(__name__)


class ScanStorage:
    """Upload/download/delete of scan files by storage path."""

    def __init__(self, client, bucket: Optional[str]):
        self.client = client
        self.bucket = bucket

    def _require_bucket(self):
        if not self.bucket:
            raise StorageConfigError()

    def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        self._require_bucket()
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=path, Body=content, **extra)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Upload failed for {path}: {str(e)}")
            raise StorageError(f"Failed to upload file: {str(e)}") from e
        return path

    def download(self, path: str) -> bytes:
        self._require_bucket()
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=path)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Download failed for {path}: {str(e)}")
            raise StorageError(f"Failed to download file: {str(e)}") from e

    def delete(self, path: str) -> None:
        self._require_bucket()
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Delete failed for {path}: {str(e)}")
            raise StorageError(f"Failed to delete file: {str(e)}") from e
