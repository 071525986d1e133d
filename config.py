"""
Marketplace service configuration
Description: Unified settings management, loaded from environment variables and the .env file
"""

import os
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, List
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """
    Marketplace settings, backed by BaseSettings so every field can be
    overridden through an upper-case environment variable
    """

    # ==================== Application ====================

    # Service name, shown in the OpenAPI docs and structured logs
    app_name: str = "declutter_marketplace"

    # Runtime environment
    # Allowed values: development, production, test
    environment: str = os.getenv("ENVIRONMENT", "development")

    # Debug mode, enables console log rendering
    debug_mode: bool = False

    # Prefix shared by every REST route
    api_prefix: str = "/api/v1"

    # Allowed CORS origins
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # ==================== Database ====================

    # SQLAlchemy async connection string
    # sqlite+aiosqlite for local development, postgresql+asyncpg in production
    database_url: str = "sqlite+aiosqlite:///./data/marketplace.db"

    # Echo SQL statements to the log
    database_echo: bool = False

    # Seed default categories and pricing tiers on startup when the tables are empty
    seed_defaults: bool = True

    # ==================== JWT ====================

    # Secret used to sign access tokens
    jwt_access_secret: str = os.getenv(
        "JWT_ACCESS_SECRET", "access-secret-change-in-production"
    )

    # Secret used to sign refresh tokens, must differ from the access secret
    jwt_refresh_secret: str = os.getenv(
        "JWT_REFRESH_SECRET", "refresh-secret-change-in-production"
    )

    # JWT signing algorithm
    jwt_algorithm: str = "HS256"

    # Access token lifetime (minutes)
    access_token_expire_minutes: int = 15

    # Refresh token lifetime (days)
    refresh_token_expire_days: int = 7

    # Password reset token lifetime (minutes)
    password_reset_expire_minutes: int = 30

    # ==================== OAuth ====================

    # Provider userinfo endpoints, called with the provider access token
    google_userinfo_url: str = "https://www.googleapis.com/oauth2/v2/userinfo"
    microsoft_userinfo_url: str = "https://graph.microsoft.com/v1.0/me"
    facebook_userinfo_url: str = (
        "https://graph.facebook.com/me?fields=id,name,email,picture"
    )

    # Timeout for provider calls (seconds)
    oauth_timeout: float = 10.0

    # ==================== Image storage ====================

    # Storage backend for listing images
    # Allowed values: azure (Blob Storage), local (filesystem, served under local_upload_url_prefix)
    storage_backend: str = "azure"

    # Directory and URL prefix used by the local backend
    local_upload_dir: str = "./data/uploads"
    local_upload_url_prefix: str = "/uploads"

    # ==================== Azure Blob Storage ====================

    # Storage account and container holding listing images
    azure_storage_account: str = "declutterimg"
    azure_container_name: str = "images"

    # Account key, enables per-blob SAS generation
    azure_storage_account_key: Optional[str] = os.getenv(
        "AZURE_STORAGE_ACCOUNT_KEY", None
    )

    # Static container SAS token, used for uploads and as a read fallback
    azure_sas_token: Optional[str] = os.getenv("SAS_TOKEN", None)

    # SAS lifetimes (minutes)
    sas_default_expiry_minutes: int = 60
    sas_short_expiry_minutes: int = 15
    sas_long_expiry_minutes: int = 1440

    # ==================== Upload ====================

    # Maximum image size (bytes), default 5MB
    upload_max_file_size: int = 5 * 1024 * 1024

    # Accepted MIME types and extensions
    upload_allowed_mime_types: List[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp"]
    )
    upload_allowed_extensions: List[str] = Field(
        default_factory=lambda: ["jpg", "jpeg", "png", "webp"]
    )

    # Retries for transient blob upload failures
    upload_max_retries: int = 3

    # Delay before each retry (seconds), indexed by attempt
    upload_retry_delays: List[float] = Field(default_factory=lambda: [0, 1, 2, 4])

    # Maximum files accepted by the batch upload endpoint
    upload_max_files_per_batch: int = 10

    # Delete the blob after the final failed attempt
    upload_enable_auto_cleanup: bool = True

    # ==================== Rate limiting ====================

    # Whether route limits are enforced
    rate_limit_enabled: bool = True

    # Login, register, refresh and OAuth
    rate_limit_auth: str = "5 per 15 minutes"

    # Posts, messages, payments, uploads
    rate_limit_create: str = "20 per minute"

    # Feed and search
    rate_limit_read: str = "100 per minute"

    # ==================== Listings ====================

    # Visibility window for a post published without a paid tier (days)
    post_visibility_days: int = 30

    # Default settlement currency
    payment_currency: str = "UGX"

    # Window during which a sender may edit a message (minutes)
    message_edit_window_minutes: int = 15

    # Run the scheduled publish/expire job inside the API process
    listing_tasks_enabled: bool = True

    # Interval between publish/expire runs (minutes)
    listing_task_interval_minutes: int = 5

    # ==================== API client ====================

    # Base URL used by the API client, includes the API prefix
    api_base_url: str = "http://localhost:8000/api/v1"

    # Request timeout (seconds)
    api_timeout: float = 30.0

    # Retry budget for network, timeout and 5xx errors
    api_max_retries: int = 3

    # Retry budget for 429 responses
    api_rate_limit_max_retries: int = 5

    # Base backoff delay (seconds), doubled per attempt
    api_retry_delay: float = 1.0

    # Upper bound for a single backoff delay (seconds)
    api_max_retry_delay: float = 30.0

    class Config:
        """Pydantic settings config"""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    def __init__(self, **kwargs):
        """Load settings and create the local data directory"""
        super().__init__(**kwargs)
        self._create_directories()

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def _create_directories(self):
        """Create the SQLite and local upload directories"""
        if self.database_url.startswith("sqlite") and "///" in self.database_url:
            db_path = self.database_url.split("///", 1)[-1]
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        if self.storage_backend == "local":
            Path(self.local_upload_dir).mkdir(parents=True, exist_ok=True)


settings = Settings()
