from .auth import router as auth_router
from .users import router as users_router
from .posts import router as posts_router
from .messages import router as messages_router
from .payments import router as payments_router
from .categories import router as categories_router
from .upload import router as upload_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "users_router",
    "posts_router",
    "messages_router",
    "payments_router",
    "categories_router",
    "upload_router",
    "health_router",
]
