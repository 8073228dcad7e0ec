"""
Configuration Management

Uses pydantic-settings for type-safe configuration with environment variable support.
All settings can be overridden via HEARTBEAT_* environment variables or .env file.
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.models import CallbackErrorPolicy


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HEARTBEAT_",
        case_sensitive=False,
        extra="ignore"
    )

    # =========================================================================
    # API Server
    # =========================================================================
    api_host: str = Field(default="0.0.0.0", description="API server bind address")
    api_port: int = Field(default=8000, description="API server port")
    api_key: str = Field(default="", description="API key for mutating endpoints")
    docs_enabled: bool = Field(default=True, description="Serve OpenAPI docs")

    # =========================================================================
    # Scheduling
    # =========================================================================
    sampling_period: float = Field(default=10.0, gt=0, description="Sample width in seconds")
    callback_error_policy: CallbackErrorPolicy = Field(
        default=CallbackErrorPolicy.LOG,
        description="What to do when a callback raises: log, cancel or raise"
    )
    offload_sync_callbacks: bool = Field(
        default=True,
        description="Run plain (non-async) callbacks in a worker thread"
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/heartbeat.log", description="Log file path, empty to disable")
    log_max_size_mb: int = Field(default=50, description="Max log file size in MB")
    log_backup_count: int = Field(default=3, description="Number of log backups to keep")

    # =========================================================================
    # Computed Properties
    # =========================================================================
    @property
    def log_full_path(self) -> Path:
        """Get absolute path to log file"""
        return Path(self.log_file).resolve()

    def ensure_directories(self):
        """Create necessary directories"""
        if self.log_file:
            self.log_full_path.parent.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
