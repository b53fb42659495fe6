"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file and override existing env vars
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Authentication
    auth_disabled: bool = False
    dev_user_id: str = "dev-user"

    # Data store
    data_store_backend: Literal["memory", "firestore"] = "memory"
    gcp_project_id: str | None = None

    # Token encryption (base64-encoded 32-byte key)
    encryption_key: str = Field(default="")

    # Upstream APIs
    github_api_base_url: str = "https://api.github.com"
    cloudflare_api_base_url: str = "https://api.cloudflare.com/client/v4"
    firebase_hosting_api_base_url: str = "https://firebasehosting.googleapis.com/v1beta1"
    google_oauth_token_url: str = "https://oauth2.googleapis.com/token"
    google_client_id: str = Field(default="")
    google_client_secret: str = Field(default="")

    # Deployment pipeline
    work_dir_root: str | None = None  # None uses the OS temp directory
    build_timeout_seconds: float | None = None
    http_timeout_seconds: float = 60.0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_directory: str = "logs"
    log_file_name: str = "deployer.log"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
