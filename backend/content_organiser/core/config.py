"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/content_organiser/core/config.py
# Project root is: backend/content_organiser/core/../../../
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: try in backend/ directory if not found in project root
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Content Organiser"
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")
    allowed_origins: str = Field(
        default="http://localhost:8000",
        description="Allowed CORS origins (comma-separated)"
    )
    templates_dir: Optional[str] = Field(
        default=None,
        description="Directory holding the page templates; defaults to frontend/templates in the source tree"
    )

    # Logging
    log_sqlalchemy: bool = Field(default=False, description="Enable SQLAlchemy query logging")
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"content_organiser.core": "DEBUG"})'
    )
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/content_organiser.log",
        description="Path to log file (relative to project root)"
    )
    log_file_retention: int = Field(
        default=30,
        ge=1,
        description="Number of days to keep log files"
    )
    log_sensitive_data: bool = Field(
        default=False,
        description="Enable logging of sensitive data (passwords, tokens) - NOT RECOMMENDED"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./content_organiser.db",
        description="SQLAlchemy database URL"
    )
    database_pool_size: int = Field(default=5, ge=1, description="Database pool size")
    database_max_overflow: int = Field(default=10, ge=0, description="Database max overflow")
    auto_create_tables: bool = Field(default=True, description="Create missing tables on startup")

    # Auth
    session_duration_hours: int = Field(default=24, ge=1, description="Session token lifetime (hours)")
    session_cookie_secure: bool = Field(default=False, description="Send the session cookie over HTTPS only")
    auth_wait_timeout_ms: int = Field(
        default=4000,
        ge=100,
        description="How long guards wait for identity resolution before redirecting to login"
    )
    default_signup_role: str = Field(default="viewer", description="Role assigned to self-registered users")
    allow_signup: bool = Field(default=True, description="Allow self-registration from the login page")

    # Maintenance
    cleanup_default_keep_days: int = Field(default=120, ge=1, description="Default retention for cleanup")
    cleanup_min_keep_days: int = Field(default=30, ge=1, description="Smallest retention cleanup accepts")
    cleanup_max_keep_days: int = Field(default=365, ge=1, description="Largest retention cleanup accepts")

    @field_validator("default_signup_role")
    @classmethod
    def validate_signup_role(cls, v):
        """Only known roles can be handed out on sign-up"""
        if v not in ("admin", "editor", "viewer"):
            raise ValueError(f"Unknown role: {v}")
        return v

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
