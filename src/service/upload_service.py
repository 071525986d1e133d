"""
Image upload service
Validation, blob naming, storage with retry on transient errors, URL signing
"""

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import List, Optional, Dict, Any, Iterable

from azure.core.exceptions import ServiceRequestError, ServiceResponseError

from src.core.errors import AppError, ErrorCode, ValidationError
from src.service.storage_adapter import StorageAdapter
from src.utils.resilience_retry import BackoffStrategy, RetryConfig, RetryExecutor

logger = logging.getLogger(__name__)

# (offset, signature) pairs that must all match for the declared type
MAGIC_NUMBERS = {
    "image/jpeg": [(0, b"\xff\xd8\xff")],
    "image/png": [(0, b"\x89PNG")],
    "image/webp": [(0, b"RIFF"), (8, b"WEBP")],
}

TYPE_LABELS = {"image/jpeg": "JPEG", "image/png": "PNG", "image/webp": "WebP"}

TRANSIENT_ERROR_MARKERS = (
    "ECONNREFUSED",
    "ETIMEDOUT",
    "ENOTFOUND",
    "ENETUNREACH",
    "Service Unavailable",
    "503",
)


def is_transient_error(exc: Exception) -> bool:
    """Connection, DNS, timeout and 503 failures are worth retrying"""
    if isinstance(
        exc,
        (ServiceRequestError, ServiceResponseError, ConnectionError, TimeoutError),
    ):
        return True
    if getattr(exc, "status_code", None) == 503:
        return True
    text = f"{type(exc).__name__}: {exc}"
    return any(marker in text for marker in TRANSIENT_ERROR_MARKERS)


class UploadService:
    """
    Image upload pipeline: validate, name, store with retries, sign for preview
    """

    def __init__(self, settings_obj, storage: StorageAdapter, sleep=None):
        self.settings = settings_obj
        self.storage = storage
        self.retry_executor = RetryExecutor(
            RetryConfig(
                max_attempts=settings_obj.upload_max_retries + 1,
                backoff_strategy=BackoffStrategy.SCHEDULE,
                delay_schedule=settings_obj.upload_retry_delays,
                retry_on_exception=is_transient_error,
            ),
            sleep=sleep,
        )

    def validate_file(self, filename: str, content_type: str, content: bytes) -> None:
        """
        Validate an uploaded image

        Args:
            filename: Original file name
            content_type: Declared MIME type
            content: File bytes

        Raises:
            ValidationError: 413 when too large, 400 for type, extension or content mismatches
        """
        max_size = self.settings.upload_max_file_size
        if len(content) > max_size:
            raise ValidationError(
                f"File exceeds maximum size of {max_size // (1024 * 1024)}MB",
                status_code=413,
            )

        allowed_types = self.settings.upload_allowed_mime_types
        if content_type not in allowed_types:
            raise ValidationError(
                f"File type not allowed. Allowed: {', '.join(allowed_types)}"
            )

        ext = self._extension(filename)
        allowed_exts = self.settings.upload_allowed_extensions
        if ext not in allowed_exts:
            raise ValidationError(
                f"File extension not allowed. Allowed: {', '.join(allowed_exts)}"
            )

        self.validate_file_integrity(content_type, content)

    def validate_file_integrity(self, content_type: str, content: bytes) -> None:
        if not content:
            raise ValidationError("File buffer is empty")

        for offset, signature in MAGIC_NUMBERS.get(content_type, []):
            if content[offset:offset + len(signature)] != signature:
                raise ValidationError(
                    f"File content doesn't match declared {TYPE_LABELS[content_type]} type"
                )

    @staticmethod
    def _extension(filename: str) -> str:
        return Path(filename or "").suffix.lower().lstrip(".")

    def generate_blob_name(self, user_id: int, filename: str) -> str:
        ext = self._extension(filename) or "jpg"
        timestamp = int(time.time() * 1000)
        return f"{user_id}-{timestamp}-{uuid.uuid4()}.{ext}"

    async def _store(self, blob_name: str, content: bytes, content_type: str) -> None:
        """
        Upload with retries on transient failures

        Once the retries are used up the partially written blob is removed, best effort
        """
        try:
            await self.retry_executor.execute_async(
                self.storage.upload_file, blob_name, content, content_type
            )
        except Exception as e:
            if is_transient_error(e) and self.settings.upload_enable_auto_cleanup:
                await self._cleanup(blob_name)
            raise

    async def _cleanup(self, blob_name: str) -> None:
        try:
            await self.storage.delete_file(blob_name)
            logger.info(f"Cleaned up blob: {blob_name}")
        except Exception as e:
            logger.error(f"Failed to cleanup blob {blob_name}: {e}")

    async def upload_single_image(
        self, user_id: int, filename: str, content_type: str, content: bytes
    ) -> Dict[str, Any]:
        """
        Validate and store one image

        Returns:
            {url, previewUrl, filename, size, mimeType}; url is the blob path to save on the post

        Raises:
            ValidationError: The file was rejected
            AppError: Storage failed after retries (500)
        """
        self.validate_file(filename, content_type, content)
        blob_name = self.generate_blob_name(user_id, filename)

        try:
            await self._store(blob_name, content, content_type)
        except Exception as e:
            logger.error(f"Upload of {filename} for user {user_id} failed: {e}")
            raise AppError(
                "Failed to upload image",
                code=ErrorCode.INTERNAL_ERROR,
                status_code=500,
                details=str(e),
            ) from e

        return {
            "url": blob_name,
            "previewUrl": self.storage.get_file_url(blob_name),
            "filename": filename,
            "size": len(content),
            "mimeType": content_type,
        }

    async def _upload_batch_item(
        self, user_id: int, filename: str, content_type: str, content: bytes
    ) -> Dict[str, Any]:
        item = {
            "filename": filename,
            "size": len(content),
            "mimeType": content_type,
        }
        try:
            self.validate_file(filename, content_type, content)
        except ValidationError as e:
            item.update(
                success=False,
                error={"code": str(e.code), "message": e.message},
            )
            return item

        blob_name = self.generate_blob_name(user_id, filename)
        try:
            await self._store(blob_name, content, content_type)
        except Exception as e:
            logger.error(f"Upload of {filename} for user {user_id} failed: {e}")
            item.update(
                success=False,
                error={
                    "code": "AZURE_UPLOAD_ERROR",
                    "message": "Failed to upload file",
                    "details": str(e),
                },
            )
            return item

        item.update(
            success=True,
            url=blob_name,
            previewUrl=self.storage.get_file_url(blob_name),
        )
        return item

    async def upload_multiple_images(
        self, user_id: int, files: List[tuple]
    ) -> List[Dict[str, Any]]:
        """
        Upload a batch concurrently

        Args:
            user_id: Uploader
            files: (filename, content_type, content) tuples

        Returns:
            One result item per file, in input order; failures do not abort the batch
        """
        max_files = self.settings.upload_max_files_per_batch
        if len(files) > max_files:
            raise ValidationError(f"Maximum {max_files} files per batch")

        return await asyncio.gather(
            *(
                self._upload_batch_item(user_id, filename, content_type, content)
                for filename, content_type, content in files
            )
        )

    def transform_single_image_url(
        self, image_url: Optional[str], expiry_minutes: Optional[int] = None
    ) -> str:
        if not image_url:
            return ""
        return self.storage.get_file_url(image_url, expiry_minutes)

    def transform_image_urls(
        self, images: Optional[Iterable[Dict[str, Any]]], expiry_minutes: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return [
            {**image, "imageUrl": self.transform_single_image_url(image["imageUrl"], expiry_minutes)}
            for image in images or []
        ]

    def transform_user_profile_url(
        self, user: Optional[Dict[str, Any]], expiry_minutes: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        if not user or not user.get("profilePictureUrl"):
            return user
        return {
            **user,
            "profilePictureUrl": self.transform_single_image_url(
                user["profilePictureUrl"], expiry_minutes
            ),
        }
