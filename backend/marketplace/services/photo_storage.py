"""Profile photo uploads to the hosted object storage bucket."""

import logging
import secrets
from pathlib import PurePosixPath
from uuid import UUID

import httpx

from marketplace.config import get_settings
from marketplace.exceptions import StorageError

logger = logging.getLogger(__name__)


def photo_object_name(user_id: UUID, original_filename: str) -> str:
    """Object key: ``<user id>-<random token>.<original extension>``."""
    extension = PurePosixPath(original_filename or "").suffix.lstrip(".").lower()
    token = secrets.token_hex(6)
    name = f"{user_id}-{token}"
    return f"{name}.{extension}" if extension else name


class PhotoStorage:
    """Upload-then-get-public-url against the storage REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        bucket: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.identity_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.identity_anon_key
        self.bucket = bucket or settings.storage_bucket
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    def public_url(self, object_name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{object_name}"

    async def upload_photo(
        self,
        access_token: str,
        user_id: UUID,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> str:
        """Upload a profile photo and return its public URL."""
        object_name = photo_object_name(user_id, filename)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/storage/v1/object/{self.bucket}/{object_name}",
                    content=content,
                    headers={
                        "apikey": self.api_key,
                        "Authorization": f"Bearer {access_token}",
                        "Content-Type": content_type or "application/octet-stream",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Photo upload failed for {object_name}: {e}")
            raise StorageError("Failed to upload profile photo") from e

        logger.info(f"Uploaded profile photo {object_name}")
        return self.public_url(object_name)


_photo_storage: PhotoStorage | None = None


def get_photo_storage() -> PhotoStorage:
    """FastAPI dependency returning the shared storage client."""
    global _photo_storage
    if _photo_storage is None:
        _photo_storage = PhotoStorage()
    return _photo_storage
