"""
Object store gateways that accept one product image per call.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests
from supabase import Client

from core.config import Settings, ObjectStoreBackend, get_settings
from core.exceptions import UploadException
from models.image_item import RawFile
from services.base import BaseService


@dataclass(frozen=True)
class UploadReceipt:
    """What the store hands back for a stored image."""
    location: str


class ObjectStoreGateway(ABC):
    """Uploads raw image bytes and returns the stored image's identity."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def is_allowed_file(self, filename: str) -> bool:
        if not filename:
            return False
        return any(filename.lower().endswith(ext) for ext in self.settings.allowed_image_extensions)

    def check_file(self, file: RawFile) -> None:
        """
        Reject files the store would refuse anyway.

        Raises:
            UploadException: on empty, oversized or non-image files
        """
        if file.size == 0:
            raise UploadException("Empty file provided", filename=file.filename)
        if file.size > self.settings.max_file_size:
            raise UploadException(
                f"File size exceeds maximum allowed size of {self.settings.max_file_size} bytes",
                filename=file.filename
            )
        if not self.is_allowed_file(file.filename):
            raise UploadException("Only image files are supported", filename=file.filename)

    @abstractmethod
    async def upload(self, file: RawFile) -> UploadReceipt:
        """
        Store one file.

        Raises:
            UploadException: for any failure, whatever its cause
        """


class SupabaseObjectStoreGateway(ObjectStoreGateway, BaseService):
    """Stores images in a Supabase Storage bucket and returns their public URL."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[Client] = None):
        ObjectStoreGateway.__init__(self, settings)
        BaseService.__init__(self, client)

    def object_key(self, filename: str) -> str:
        file_extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'png'
        return f"products/{uuid.uuid4().hex}.{file_extension}"

    def _store(self, key: str, file: RawFile) -> str:
        bucket = self.db.storage.from_(self.settings.storage_bucket)
        bucket.upload(key, file.content, {"content-type": file.content_type})
        return bucket.get_public_url(key)

    async def upload(self, file: RawFile) -> UploadReceipt:
        self.check_file(file)
        key = self.object_key(file.filename)

        try:
            public_url = await self.run_sync(self._store, key, file)
        except Exception as e:
            self.logger.error(f"Failed to upload {file.filename} to storage: {e}")
            raise UploadException(f"Failed to upload file to storage: {e}", filename=file.filename) from e

        if not public_url:
            raise UploadException("Storage did not return a public URL", filename=file.filename)

        self.logger.info(f"Image uploaded successfully: {key}")
        return UploadReceipt(location=public_url)


class HttpObjectStoreGateway(ObjectStoreGateway, BaseService):
    """Posts images to the portal's multipart upload endpoint."""

    FIELD_NAME = "photo"

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        ObjectStoreGateway.__init__(self, settings)
        BaseService.__init__(self)
        if not self.settings.upload_endpoint_url:
            raise ValueError("UPLOAD_ENDPOINT_URL is required for the http object store")
        self.session = session or requests.Session()

    def _post(self, file: RawFile) -> dict:
        response = self.session.post(
            self.settings.upload_endpoint_url,
            files={self.FIELD_NAME: (file.filename, file.content, file.content_type)},
            timeout=self.settings.upload_timeout,
        )
        response.raise_for_status()
        return response.json()

    async def upload(self, file: RawFile) -> UploadReceipt:
        self.check_file(file)

        try:
            data = await self.run_sync(self._post, file)
        except (requests.RequestException, ValueError) as e:
            self.logger.error(f"Upload endpoint rejected {file.filename}: {e}")
            raise UploadException(f"Upload request failed: {e}", filename=file.filename) from e

        location = data.get("location") if isinstance(data, dict) else None
        if not location:
            raise UploadException("Upload response did not include a location", filename=file.filename)

        self.logger.info(f"Image uploaded successfully: {location}")
        return UploadReceipt(location=location)


def create_object_store_gateway(settings: Optional[Settings] = None) -> ObjectStoreGateway:
    """Build the gateway selected by OBJECT_STORE_BACKEND."""
    settings = settings or get_settings()
    if settings.object_store_backend == ObjectStoreBackend.HTTP:
        return HttpObjectStoreGateway(settings)
    return SupabaseObjectStoreGateway(settings)
