from functools import lru_cache

from config import settings, Settings
from src.service.auth_service import AuthService
from src.service.category_service import CategoryService
from src.service.message_service import MessageService
from src.service.payment_service import PaymentService
from src.service.post_service import PostService
from src.service.storage_adapter import StorageAdapter
from src.service.upload_service import UploadService
from src.service.user_service import UserService


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return settings


@lru_cache(maxsize=1)
def get_storage_adapter() -> StorageAdapter:
    config = get_settings()
    if config.storage_backend == "local":
        from src.service.local_storage_adapter import LocalStorageAdapter

        return LocalStorageAdapter(config)

    from src.service.azure_storage_adapter import AzureBlobStorageAdapter

    return AzureBlobStorageAdapter(config)


@lru_cache(maxsize=1)
def get_upload_service() -> UploadService:
    return UploadService(get_settings(), get_storage_adapter())


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    return AuthService(get_settings())


@lru_cache(maxsize=1)
def get_user_service() -> UserService:
    return UserService(get_settings(), get_upload_service())


@lru_cache(maxsize=1)
def get_category_service() -> CategoryService:
    return CategoryService(get_settings())


@lru_cache(maxsize=1)
def get_post_service() -> PostService:
    return PostService(get_settings(), get_upload_service())


@lru_cache(maxsize=1)
def get_message_service() -> MessageService:
    return MessageService(get_settings(), get_upload_service())


@lru_cache(maxsize=1)
def get_payment_service() -> PaymentService:
    return PaymentService(get_settings())
