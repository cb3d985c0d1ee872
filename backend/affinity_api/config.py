"""Application configuration management."""

from typing import List, Optional

from fastapi import Request
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.debug and self.log_level.upper() != "TRACE":
            self.log_level = "DEBUG"

    # Application
    app_name: str = "BioAffinity API"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api"

    # CORS
    cors_origins: str = "*"

    # Database
    database_url: str = "sqlite:///./database.sqlite"
    database_pool_size: int = 5  # use 1 on serverless hosts

    # Security
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_days: int = 7
    admin_recheck_store: bool = True

    # Uploads
    upload_dir: str = "./uploads"
    max_avatar_bytes: int = 5 * 1024 * 1024

    # Database browser
    db_secret_key: Optional[str] = None
    db_browser_unsafe_ops: bool = False

    # Prediction proxy
    prediction_api_url: str = "https://abdoir-drug-target-binding-affinity.hf.space/predict"
    prediction_timeout_seconds: float = 30.0

    # Seed admin (scripts/seed_admin.py)
    admin_username: str = "admin"
    admin_email: str = "admin@bioaffinity.com"
    admin_password: str = "changeme"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def get_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


# Global settings instance
settings = Settings()
