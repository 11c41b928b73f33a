"""Avatar Blob Store: Supabase Storage by default, S3 when configured."""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from supabase import Client

from app.config import settings
from app.core.errors import UploadError, UrlResolutionError, error_message

logger = logging.getLogger(__name__)


@dataclass
class AvatarFile:
    filename: str
    content: bytes
    content_type: Optional[str] = None


def file_extension(filename: str) -> str:
    """Text after the last dot; a name without a dot is its own extension."""
    return filename.rsplit(".", 1)[-1]


def build_avatar_path(user_identity: str, filename: str) -> str:
    """`<user_identity>/<random token>.<ext>`; a fresh token per upload."""
    return f"{user_identity}/{uuid.uuid4().hex}.{file_extension(filename)}"


class SupabaseAvatarStorage:
    def __init__(self, supabase: Client, bucket: Optional[str] = None):
        self.supabase = supabase
        self.bucket_name = bucket or settings.avatars_bucket

    def upload(self, path: str, content: bytes, content_type: Optional[str] = None, overwrite: bool = True) -> None:
        file_options = {
            "cache-control": settings.avatar_cache_control,
            "upsert": "true" if overwrite else "false",
        }
        if content_type:
            file_options["content-type"] = content_type
        try:
            self.supabase.storage.from_(self.bucket_name).upload(
                path,
                content,
                file_options=file_options
            )
            logger.info(f"Uploaded avatar to Supabase Storage: {self.bucket_name}/{path}")
        except Exception as e:
            logger.error(f"Supabase Storage upload failed: {error_message(e)}")
            raise UploadError(error_message(e)) from e

    def resolve_public_url(self, path: str) -> str:
        try:
            public_url = self.supabase.storage.from_(self.bucket_name).get_public_url(path)
        except Exception as e:
            raise UrlResolutionError(error_message(e)) from e
        if not public_url:
            raise UrlResolutionError(f"No public URL for {path}")
        return public_url


def get_avatar_storage(supabase: Client):
    """Pick the configured avatar backend."""
    if settings.uses_s3_avatars:
        from app.modules.avatars.s3_storage import S3AvatarStorage
        return S3AvatarStorage()
    return SupabaseAvatarStorage(supabase)
