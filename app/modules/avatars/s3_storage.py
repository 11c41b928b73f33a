import boto3
from botocore.exceptions import ClientError
from app.config import settings
from app.core.errors import UploadError, error_message
from typing import Optional
from urllib.parse import quote
import logging

logger = logging.getLogger(__name__)


class S3AvatarStorage:
    def __init__(self, s3_client=None):
        if not settings.s3_bucket_name:
            raise ValueError("S3 bucket name must be configured for avatar storage")
        if s3_client is None:
            if not all([settings.aws_access_key_id, settings.aws_secret_access_key]):
                raise ValueError("AWS S3 credentials must be configured for avatar storage")
            s3_client = boto3.client(
                's3',
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region
            )
        self.s3_client = s3_client
        self.bucket_name = settings.s3_bucket_name
        self.public_base_url = (
            settings.s3_public_base_url
            or f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com"
        ).rstrip("/")

    def _exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def upload(self, path: str, content: bytes, content_type: Optional[str] = None, overwrite: bool = True) -> None:
        """Upload avatar bytes to S3 at `path`.

        With `overwrite` off an existing key is refused, matching the Supabase
        backend's `upsert` flag; screens always upload with it on.
        """
        try:
            if not overwrite and self._exists(path):
                raise UploadError(f"The resource already exists: {path}")
            kwargs = {
                "Bucket": self.bucket_name,
                "Key": path,
                "Body": content,
                "CacheControl": f"max-age={settings.avatar_cache_control}",
            }
            if content_type:
                kwargs["ContentType"] = content_type
            self.s3_client.put_object(**kwargs)
            logger.info(f"Uploaded avatar to S3: s3://{self.bucket_name}/{path}")
        except ClientError as e:
            logger.error(f"Failed to upload avatar to S3: {str(e)}")
            raise UploadError(error_message(e)) from e

    def resolve_public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{quote(path)}"
