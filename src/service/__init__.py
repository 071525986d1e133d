from .upload_service import UploadService
from .auth_service import AuthService
from .user_service import UserService
from .category_service import CategoryService
from .post_service import PostService
from .message_service import MessageService
from .payment_service import PaymentService

__all__ = [
    "UploadService",
    "AuthService",
    "UserService",
    "CategoryService",
    "PostService",
    "MessageService",
    "PaymentService",
]
