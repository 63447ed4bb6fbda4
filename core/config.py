"""
Core configuration module for the SkyCart Supplier Backend.
Handles environment variables, storage settings, and draft pipeline limits.
"""

import os
import logging
from typing import Dict, Any, Optional
from functools import lru_cache
from enum import Enum
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Environment(str, Enum):
    """Application environment enum."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ObjectStoreBackend(str, Enum):
    """Where product images are uploaded."""
    SUPABASE = "supabase"
    HTTP = "http"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Application settings with validation."""

    def __init__(self):
        # Application settings
        self.app_name: str = "SkyCart Supplier Backend"
        self.app_version: str = "1.0.0"
        self.environment: Environment = Environment(
            os.getenv("ENVIRONMENT", "development").lower()
        )
        self.debug: bool = _env_flag("DEBUG")

        # Server settings
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "8000"))
        self.reload: bool = self.environment == Environment.DEVELOPMENT

        # Supabase settings
        self.supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
        self.supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.products_table: str = os.getenv("PRODUCTS_TABLE", "supplier_products")
        self.categories_table: str = os.getenv("CATEGORIES_TABLE", "categories")

        # Object store settings
        self.object_store_backend: ObjectStoreBackend = ObjectStoreBackend(
            os.getenv("OBJECT_STORE_BACKEND", "supabase").lower()
        )
        self.storage_bucket: str = os.getenv("STORAGE_BUCKET", "product-images")
        self.upload_endpoint_url: Optional[str] = os.getenv("UPLOAD_ENDPOINT_URL")
        self.upload_timeout: float = float(os.getenv("UPLOAD_TIMEOUT", "30"))
        self.max_file_size: int = int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))  # 10MB
        self.allowed_image_extensions: list = [".png", ".jpg", ".jpeg", ".webp", ".gif"]

        # Draft pipeline settings
        self.max_product_images: int = int(os.getenv("MAX_PRODUCT_IMAGES", "5"))
        self.release_preview_on_upload: bool = _env_flag("RELEASE_PREVIEW_ON_UPLOAD")
        self.products_redirect_path: str = os.getenv("PRODUCTS_REDIRECT_PATH", "/SProduct")

        # Security settings
        self.cors_origins: list = os.getenv("CORS_ORIGINS", "*").split(",")
        self.cors_allow_credentials: bool = _env_flag("CORS_ALLOW_CREDENTIALS")

        # Logging settings
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_format: str = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        self.log_file: Optional[str] = os.getenv("LOG_FILE")

        # Validate log level
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_levels:
            self.log_level = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def get_database_config() -> Dict[str, Any]:
    """Get the Supabase connection parameters."""
    settings = get_settings()
    return {
        "url": settings.supabase_url,
        "service_role_key": settings.supabase_service_role_key,
    }


def validate_required_settings(settings: Settings) -> None:
    """Validate that all required settings are present."""
    required_fields = [
        ("supabase_url", "SUPABASE_URL"),
        ("supabase_service_role_key", "SUPABASE_SERVICE_ROLE_KEY"),
    ]
    if settings.object_store_backend == ObjectStoreBackend.HTTP:
        required_fields.append(("upload_endpoint_url", "UPLOAD_ENDPOINT_URL"))

    missing_fields = []
    for field_name, env_var in required_fields:
        if not getattr(settings, field_name):
            missing_fields.append(env_var)

    if missing_fields:
        error_msg = f"Missing required environment variables: {', '.join(missing_fields)}"
        if settings.environment == Environment.PRODUCTION:
            raise ValueError(error_msg)
        else:
            logging.warning(error_msg)

    if settings.max_product_images < 1:
        raise ValueError("MAX_PRODUCT_IMAGES must be at least 1")
