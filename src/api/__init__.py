from .routes import (
    auth_router,
    users_router,
    posts_router,
    messages_router,
    payments_router,
    categories_router,
    upload_router,
    health_router,
)
from .dependencies import (
    get_settings,
    get_storage_adapter,
    get_upload_service,
    get_auth_service,
    get_user_service,
    get_category_service,
    get_post_service,
    get_message_service,
    get_payment_service,
)

__all__ = [
    "auth_router",
    "users_router",
    "posts_router",
    "messages_router",
    "payments_router",
    "categories_router",
    "upload_router",
    "health_router",
    "get_settings",
    "get_storage_adapter",
    "get_upload_service",
    "get_auth_service",
    "get_user_service",
    "get_category_service",
    "get_post_service",
    "get_message_service",
    "get_payment_service",
]
