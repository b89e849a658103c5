"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from riskengine.utils.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Configuration
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool | None = None
    """Force JSON log output; when unset only production logs JSON."""

    # Assessment workflow
    system_assessor_id: str = Field(default="SYSTEM", min_length=1)
    """Assessor recorded on assessments created by the system."""

    overdue_assessment_days: int = Field(default=7, ge=0)
    """Age after which an in-progress assessment is reported as overdue."""

    auto_complete_notes: str = "Auto-completed by system"
    recalculation_notes: str = "Recalculated assessment"
    uninsurable_reason: str = "Profile does not meet insurability criteria"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        ConfigurationError: If the environment holds invalid values.
    """
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc
