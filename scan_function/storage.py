import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .exceptions import StorageError
from .logger import get_logger

logger = get_logger(__name__)


class S3Storage:
    """Read-only view of the scans bucket."""

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3Storage":
        boto3_kwargs = {"region_name": settings.aws_region}
        if settings.localstack_endpoint:
            boto3_kwargs["endpoint_url"] = settings.localstack_endpoint
        return cls(boto3.client("s3", **boto3_kwargs), settings.s3_bucket)

    def download(self, path: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=path)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"File download error for {path}: {str(e)}")
            raise StorageError(f"Failed to download file: {str(e)}") from e
