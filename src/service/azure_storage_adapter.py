"""
Azure Blob Storage adapter
Description: Image storage on an Azure container, read access through SAS URLs
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from urllib.parse import urlparse

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobSasPermissions, ContentSettings, generate_blob_sas
from azure.storage.blob.aio import ContainerClient

from src.exceptions import ConfigurationError, StorageError
from src.service.storage_adapter import StorageAdapter

logger = logging.getLogger(__name__)


class AzureBlobStorageAdapter(StorageAdapter):
    """
    Azure Blob Storage adapter

    Writes go through the async ContainerClient, authenticated with the
    account key when configured and the static container SAS token otherwise.
    """

    def __init__(self, settings, container_client: Optional[ContainerClient] = None):
        """
        Args:
            settings: Settings object, uses:
                - azure_storage_account
                - azure_container_name
                - azure_storage_account_key
                - azure_sas_token
                - sas_default_expiry_minutes
            container_client: Preconfigured client, built from settings when omitted
        """
        self.settings = settings
        self.account_name = settings.azure_storage_account
        self.container_name = settings.azure_container_name
        self.account_key = settings.azure_storage_account_key
        self.sas_token = (settings.azure_sas_token or "").lstrip("?")
        self.account_url = f"https://{self.account_name}.blob.core.windows.net"

        if self.account_key is None:
            logger.warning(
                "Azure storage account key not configured, read URLs use the static SAS token"
            )

        self._container = container_client

    @property
    def container(self) -> ContainerClient:
        if self._container is None:
            if self.account_key:
                credential = {
                    "account_name": self.account_name,
                    "account_key": self.account_key,
                }
            elif self.sas_token:
                credential = self.sas_token
            else:
                raise ConfigurationError(
                    "Azure storage needs AZURE_STORAGE_ACCOUNT_KEY or SAS_TOKEN"
                )
            self._container = ContainerClient(
                self.account_url, self.container_name, credential=credential
            )
        return self._container

    def blob_base_url(self, blob_name: str) -> str:
        return f"{self.account_url}/{self.container_name}/{blob_name}"

    async def upload_file(
        self,
        file_path: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Upload an image blob

        Args:
            file_path: Blob name
            content: Image bytes
            content_type: Stored as the blob Content-Type

        Returns:
            Upload result

        Raises:
            AzureError: Propagated so the caller can decide whether to retry
        """
        await self.container.upload_blob(
            name=file_path,
            data=content,
            length=len(content),
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )
        logger.info(f"Blob uploaded: {file_path} ({len(content)} bytes)")
        return {"key": file_path, "size": len(content)}

    async def delete_file(self, file_path: str) -> bool:
        try:
            await self.container.delete_blob(file_path)
        except ResourceNotFoundError:
            return False
        except AzureError as e:
            raise StorageError(f"Failed to delete blob {file_path}: {e}") from e
        logger.info(f"Blob deleted: {file_path}")
        return True

    async def file_exists(self, file_path: str) -> bool:
        return await self.container.get_blob_client(file_path).exists()

    def get_file_url(self, file_path: str, expiry_minutes: Optional[int] = None) -> str:
        return self.generate_sas_url(file_path, expiry_minutes)

    def generate_sas_url(self, file_path: str, expiry_minutes: Optional[int] = None) -> str:
        """
        Build a read-only SAS URL for a blob

        Args:
            file_path: Blob path or full blob URL (an existing query string is replaced)
            expiry_minutes: SAS lifetime, sas_default_expiry_minutes when omitted

        Returns:
            Signed URL, empty string for an empty path
        """
        if not file_path:
            return ""
        if file_path.startswith(("http://", "https://")) and not file_path.startswith(
            self.account_url
        ):
            # external image, e.g. an OAuth profile picture
            return file_path

        blob_name = self.extract_blob_name(file_path)

        if not self.account_key:
            return f"{self.blob_base_url(blob_name)}?{self.sas_token}"

        minutes = expiry_minutes or self.settings.sas_default_expiry_minutes
        starts_on = datetime.now(timezone.utc)
        sas = generate_blob_sas(
            account_name=self.account_name,
            container_name=self.container_name,
            blob_name=blob_name,
            account_key=self.account_key,
            permission=BlobSasPermissions(read=True),
            start=starts_on,
            expiry=starts_on + timedelta(minutes=minutes),
        )
        return f"{self.blob_base_url(blob_name)}?{sas}"

    def extract_blob_name(self, blob_url: str) -> str:
        """
        Reduce a blob URL to its blob name

        "123-1700000000000-uuid.jpg" is returned unchanged;
        "https://acct.blob.core.windows.net/images/123-...jpg?sv=..." becomes "123-...jpg"
        """
        if not blob_url.startswith(("http://", "https://")):
            return blob_url

        path_parts = [part for part in urlparse(blob_url).path.split("/") if part]
        if len(path_parts) > 1:
            # first segment is the container
            return "/".join(path_parts[1:])
        if path_parts:
            return path_parts[0]
        return blob_url

    async def close(self) -> None:
        if self._container is not None:
            await self._container.close()
