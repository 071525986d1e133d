"""
Storage adapter interface
Description: Common contract for blob storage backends holding listing images
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any


class StorageAdapter(ABC):
    """
    Storage adapter base class
    Upload and delete objects, and hand out time-limited read URLs
    """

    @abstractmethod
    async def upload_file(
        self,
        file_path: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Upload an object

        Args:
            file_path: Object name inside the container
            content: Object bytes
            content_type: MIME type stored with the object

        Returns:
            Dict with:
            - key: object name
            - size: object size
        """

    @abstractmethod
    async def delete_file(self, file_path: str) -> bool:
        """
        Delete an object

        Args:
            file_path: Object name inside the container

        Returns:
            Whether the object was deleted
        """

    @abstractmethod
    async def file_exists(self, file_path: str) -> bool:
        """
        Check whether an object exists

        Args:
            file_path: Object name inside the container
        """

    @abstractmethod
    def get_file_url(self, file_path: str, expiry_minutes: Optional[int] = None) -> str:
        """
        Build a read URL for an object

        Args:
            file_path: Object name, or a full object URL
            expiry_minutes: URL lifetime, backend default when omitted

        Returns:
            Signed URL, empty string for an empty path
        """

    async def close(self) -> None:
        """Release network resources held by the adapter"""
