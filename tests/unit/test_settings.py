"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from riskengine.config.settings import Settings, get_settings
from riskengine.utils.exceptions import ConfigurationError, RiskEngineError


@pytest.fixture
def fresh_settings_cache():
    """Clear the settings cache around a test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self):
        """Test defaults used when nothing is configured."""
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert settings.log_json is None
        assert settings.system_assessor_id == "SYSTEM"
        assert settings.overdue_assessment_days == 7
        assert settings.auto_complete_notes == "Auto-completed by system"
        assert settings.recalculation_notes == "Recalculated assessment"
        assert settings.uninsurable_reason == "Profile does not meet insurability criteria"


class TestSettingsEnvironment:
    """Tests for environment overrides."""

    def test_env_override(self, monkeypatch):
        """Environment variables override defaults, case-insensitively."""
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("overdue_assessment_days", "14")
        monkeypatch.setenv("SYSTEM_ASSESSOR_ID", "batch-runner")

        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.overdue_assessment_days == 14
        assert settings.system_assessor_id == "batch-runner"

    def test_negative_overdue_days_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, overdue_assessment_days=-1)

    def test_unknown_environment_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, environment="qa")

    def test_blank_system_assessor_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, system_assessor_id="")


class TestGetSettings:
    """Tests for the cached accessor."""

    def test_cached(self, fresh_settings_cache):
        """Test the same instance is returned on every call."""
        assert get_settings() is get_settings()

    def test_invalid_environment_raises_configuration_error(
        self, fresh_settings_cache, monkeypatch
    ):
        """Invalid environment values surface as ConfigurationError."""
        monkeypatch.setenv("OVERDUE_ASSESSMENT_DAYS", "-3")

        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()

        assert isinstance(exc_info.value, RiskEngineError)
        assert isinstance(exc_info.value.__cause__, ValidationError)
