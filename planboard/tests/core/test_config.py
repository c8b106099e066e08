"""Tests for application settings."""

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from planboard.core.config import Settings


class TestSettingsDefaults:
    """Default configuration."""

    def test_default_working_window(self):
        """Test the default working window is 8:00-18:00."""
        config = Settings()

        assert config.DEFAULT_WORK_START_HOUR == 8
        assert config.DEFAULT_WORK_END_HOUR == 18

    def test_timezone_resolves(self):
        """Test the configured time zone is exposed as a ZoneInfo."""
        config = Settings(TIMEZONE="Europe/Berlin")

        assert config.tzinfo == ZoneInfo("Europe/Berlin")

    def test_click_suppression_default(self):
        """Test drag click suppression defaults to 120 ms."""
        assert Settings().DRAG_CLICK_SUPPRESS_MS == 120


class TestSettingsValidation:
    """Rejected configurations."""

    def test_unknown_timezone_rejected(self):
        """Test an unknown time zone fails validation."""
        with pytest.raises(ValidationError):
            Settings(TIMEZONE="Mars/Olympus_Mons")

    def test_inverted_working_window_rejected(self):
        """Test work start after work end fails validation."""
        with pytest.raises(ValidationError):
            Settings(DEFAULT_WORK_START_HOUR=18, DEFAULT_WORK_END_HOUR=8)

    def test_window_past_midnight_rejected(self):
        """Test a working window ending after 24:00 fails validation."""
        with pytest.raises(ValidationError):
            Settings(DEFAULT_WORK_START_HOUR=8, DEFAULT_WORK_END_HOUR=25)

    def test_unknown_density_rejected(self):
        """Test the default density must be one of the known densities."""
        with pytest.raises(ValidationError):
            Settings(DEFAULT_DENSITY="week")

    def test_long_click_suppression_warns_locally(self):
        """Test an overlong suppression window only warns in local environments."""
        with pytest.warns(UserWarning, match="DRAG_CLICK_SUPPRESS_MS"):
            Settings(ENVIRONMENT="local", DRAG_CLICK_SUPPRESS_MS=5000)

    def test_long_click_suppression_rejected_in_production(self):
        """Test an overlong suppression window is an error outside local."""
        with pytest.raises(ValidationError):
            Settings(ENVIRONMENT="production", DRAG_CLICK_SUPPRESS_MS=5000)
