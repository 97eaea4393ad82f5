"""Car image storage with provider interface (GCS/S3)."""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from carhire.core.config import get_settings, StorageProvider
from carhire.core.errors import BackendError, ValidationError

logger = logging.getLogger(__name__)

settings = get_settings()


class StorageProviderInterface(ABC):
    """Abstract interface for storage providers."""

    @abstractmethod
    async def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        """Store ``content`` at ``object_path``."""
        pass

    @abstractmethod
    def public_url(self, object_path: str) -> str:
        """Public URL of a stored object."""
        pass


class GCSStorageProvider(StorageProviderInterface):
    """Google Cloud Storage provider."""

    def __init__(self, bucket_name: str, project_id: Optional[str] = None):
        self.bucket_name = bucket_name
        self.project_id = project_id
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from google.cloud import storage
            self._client = storage.Client(project=self.project_id)
        return self._client

    @property
    def bucket(self):
        return self.client.bucket(self.bucket_name)

    async def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        blob = self.bucket.blob(object_path)
        # SDK calls block; keep them off the event loop
        await asyncio.to_thread(blob.upload_from_string, content, content_type=mime_type)

    def public_url(self, object_path: str) -> str:
        return f"https://storage.googleapis.com/{self.bucket_name}/{object_path}"


class S3StorageProvider(StorageProviderInterface):
    """AWS S3 storage provider."""

    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self._client = None
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key

    @property
    def client(self):
        if self._client is None:
            import boto3
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
            )
        return self._client

    async def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket_name,
            Key=object_path,
            Body=content,
            ContentType=mime_type,
        )

    def public_url(self, object_path: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{object_path}"


class StorageService:
    """High-level storage service wrapping provider interface."""

    def __init__(
        self,
        provider: StorageProviderInterface,
        allowed_mime_types: Optional[set[str]] = None,
        max_upload_size_mb: Optional[int] = None,
    ):
        self.provider = provider
        self.allowed_mime_types = allowed_mime_types or settings.image_mime_types
        self.max_upload_size_mb = max_upload_size_mb or settings.max_upload_size_mb

    def generate_object_path(self, car_id: UUID, file_name: str) -> str:
        """Unique object path for a car image: ``{car_id}/{uuid}.{ext}``."""
        file_uuid = uuid.uuid4()
        ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
        return f"{car_id}/{file_uuid}.{ext}" if ext else f"{car_id}/{file_uuid}"

    async def upload_car_image(
        self,
        car_id: UUID,
        file_name: str,
        content: bytes,
        mime_type: str,
    ) -> str:
        """Validate and store a car image; returns its public URL."""
        if mime_type not in self.allowed_mime_types:
            raise ValidationError(f"Unsupported image type: {mime_type}")

        max_size = self.max_upload_size_mb * 1024 * 1024
        if len(content) > max_size:
            raise ValidationError(f"Image exceeds maximum size of {self.max_upload_size_mb}MB")
        if not content:
            raise ValidationError("Image file is empty")

        object_path = self.generate_object_path(car_id, file_name)
        try:
            await self.provider.upload_object(object_path, content, mime_type)
        except Exception as e:
            logger.error(f"[STORAGE] Upload failed for car {car_id}: {e}")
            raise BackendError("Failed to upload car image. Please try again.") from e

        logger.info(f"[STORAGE] Car image stored: {object_path}")
        return self.provider.public_url(object_path)


def get_storage_service() -> StorageService:
    """Factory function to get storage service based on config."""
    if settings.storage_provider == StorageProvider.GCS:
        provider = GCSStorageProvider(
            bucket_name=settings.bucket_name,
            project_id=settings.gcs_project_id,
        )
    else:
        provider = S3StorageProvider(
            bucket_name=settings.bucket_name,
            region=settings.aws_region or "us-east-1",
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )

    return StorageService(provider)
