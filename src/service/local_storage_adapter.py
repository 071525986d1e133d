"""
Local filesystem storage adapter
Description: Keeps images on disk for development and tests; the app serves
the directory under local_upload_url_prefix
"""

import logging
from pathlib import Path
from typing import Optional, Dict, Any

import aiofiles

from src.service.storage_adapter import StorageAdapter

logger = logging.getLogger(__name__)


class LocalStorageAdapter(StorageAdapter):
    """
    Local filesystem storage adapter

    Read URLs are plain static paths, expiry_minutes is ignored
    """

    def __init__(self, settings):
        self.settings = settings
        self.base_dir = Path(settings.local_upload_dir)
        self.url_prefix = settings.local_upload_url_prefix.rstrip("/")

    def _resolve_path(self, file_path: str) -> Path:
        """
        Map a blob name onto the upload directory

        Raises:
            ValueError: The name escapes the upload directory
        """
        full_path = (self.base_dir / file_path.lstrip("/")).resolve()
        if self.base_dir.resolve() not in full_path.parents:
            raise ValueError(f"Invalid storage path: {file_path}")
        return full_path

    async def upload_file(
        self,
        file_path: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        full_path = self._resolve_path(file_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(full_path, "wb") as f:
            await f.write(content)

        logger.info(f"File saved to local storage: {full_path}")
        return {"key": file_path, "size": len(content)}

    async def delete_file(self, file_path: str) -> bool:
        full_path = self._resolve_path(file_path)

        if full_path.exists():
            full_path.unlink()
            logger.info(f"File deleted from local storage: {full_path}")
            return True

        return False

    async def file_exists(self, file_path: str) -> bool:
        return self._resolve_path(file_path).exists()

    def get_file_url(self, file_path: str, expiry_minutes: Optional[int] = None) -> str:
        if not file_path:
            return ""
        if file_path.startswith(("http://", "https://")):
            return file_path
        return f"{self.url_prefix}/{file_path.lstrip('/')}"
