"""
Dram Configuration System
=========================

Configuration management with environment variables and Pydantic models.
Environment variables (prefix ``DRAM_``, nested delimiter ``__``) override
Field defaults, e.g. ``DRAM_FETCH__TIMEOUT_SECONDS=5``.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FetchSettings(BaseModel):
    """Feed fetching configuration."""
    timeout_seconds: float = Field(default=10.0, gt=0, le=120, description="Per-request timeout in seconds")
    max_concurrent: int = Field(default=10, ge=1, le=100, description="Concurrent source fetches")
    user_agent: str = Field(default="Dram/1.0 (news aggregator)", description="User-Agent sent to every source")


class StoreSettings(BaseModel):
    """Seen-item store configuration."""
    data_dir: str = Field(default="~/.dram", description="Directory holding the seen store")
    legacy_data_dir: Optional[str] = Field(default="~/.signal-monitor", description="Pre-rename data directory migrated on first use")
    seen_file: str = Field(default="seen.json", description="Seen store file name inside data_dir")
    ttl_days: int = Field(default=30, ge=1, le=365, description="Days an item URL stays marked as seen")

    @field_validator('seen_file')
    @classmethod
    def validate_seen_file(cls, v):
        """Keep the store file inside data_dir."""
        if not v or Path(v).name != v:
            raise ValueError("seen_file must be a bare file name")
        return v

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def seen_path(self) -> Path:
        return self.data_path / self.seen_file

    @property
    def legacy_path(self) -> Optional[Path]:
        if not self.legacy_data_dir:
            return None
        return Path(self.legacy_data_dir).expanduser()


class ClassificationSettings(BaseModel):
    """Triage and analysis configuration."""
    batch_size: int = Field(default=10, ge=1, le=50, description="Items scored per classification call")
    triage_model: str = Field(default="haiku", description="Cheap model used for triage")
    analysis_model: str = Field(default="sonnet", description="Deep model used for act_now analysis")
    cli_command: str = Field(default="claude", description="Classification CLI executable")
    timeout_seconds: float = Field(default=120.0, gt=0, le=900, description="Timeout per classification call")
    summary_preview_chars: int = Field(default=200, ge=0, le=500, description="Summary characters sent to triage")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging on the console")
    console_logging: bool = Field(default=True, description="Enable console logging")


class DramSettings(BaseSettings):
    """Main application settings."""

    fetch: FetchSettings = Field(default_factory=FetchSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    classification: ClassificationSettings = Field(default_factory=ClassificationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    sources_file: Optional[str] = Field(default=None, description="JSON source catalog overriding the built-in one")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "DRAM_",
    }

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> DramSettings:
    """Load settings from environment variables, .env and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        return DramSettings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


_settings: Optional[DramSettings] = None


def get_settings(reload: bool = False) -> DramSettings:
    """Get the process-wide settings instance.

    Only entry points call this; components receive settings explicitly.

    Args:
        reload: Force reload of settings
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
