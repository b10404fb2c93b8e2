"""Tests for application settings."""

import pytest
import structlog

from legalcache.config import Settings, _get_bool_env, configure_logging


class TestGetBoolEnv:
    """Tests for _get_bool_env."""

    @pytest.mark.parametrize("value", ["true", "1", "YES", "on"])
    def test_truthy(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        """Test truthy strings parse as True."""
        monkeypatch.setenv("FLAG", value)
        assert _get_bool_env("FLAG") is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "OFF"])
    def test_falsy(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        """Test falsy strings parse as False."""
        monkeypatch.setenv("FLAG", value)
        assert _get_bool_env("FLAG", default=True) is False

    def test_unset_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test missing variables fall back to the default."""
        monkeypatch.delenv("FLAG", raising=False)
        assert _get_bool_env("FLAG", default=True) is True


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test defaults when the environment is empty."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_JSON", raising=False)
        settings = Settings.from_env()
        assert settings.LOG_LEVEL == "INFO"
        assert settings.LOG_JSON is False

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are read from the environment."""
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LOG_JSON", "true")
        settings = Settings.from_env()
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.LOG_JSON is True


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        """Restore structlog defaults after each test."""
        yield
        structlog.reset_defaults()

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test JSON rendering includes the event and level."""
        configure_logging(Settings(LOG_LEVEL="INFO", LOG_JSON=True))

        structlog.get_logger("test").info("cache_cleanup", removed=3)

        output = capsys.readouterr().out
        assert '"event": "cache_cleanup"' in output
        assert '"removed": 3' in output
        assert '"level": "info"' in output

    def test_level_filters_debug(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test events below the configured level are dropped."""
        configure_logging(Settings(LOG_LEVEL="WARNING", LOG_JSON=True))

        structlog.get_logger("test").debug("cache_evicted")

        assert capsys.readouterr().out == ""

    def test_unknown_level_defaults_to_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test an unknown level name behaves like INFO."""
        configure_logging(Settings(LOG_LEVEL="LOUD", LOG_JSON=True))

        logger = structlog.get_logger("test")
        logger.debug("hidden")
        logger.info("shown")

        output = capsys.readouterr().out
        assert "hidden" not in output
        assert "shown" in output
