"""Tests for settings and logging configuration."""

import logging

import pytest
import structlog
from pydantic import ValidationError as PydanticValidationError
from rulematch.config import Settings, get_settings
from rulematch.logging import bind_context, configure_logging


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        """Test default values."""
        for name in ("LOG_LEVEL", "LOG_FORMAT", "QUERY_LANGUAGE", "FINGERPRINT_CACHE_SIZE"):
            monkeypatch.delenv(f"RULEMATCH_{name}", raising=False)

        settings = Settings()

        assert settings.log_level == "WARNING"
        assert settings.log_format == "json"
        assert settings.query_language == "promql"
        assert settings.fingerprint_cache_size == 4096

    def test_environment_prefix(self, monkeypatch):
        """Test RULEMATCH_ environment variables."""
        monkeypatch.setenv("RULEMATCH_QUERY_LANGUAGE", "text")
        monkeypatch.setenv("RULEMATCH_FINGERPRINT_CACHE_SIZE", "0")

        settings = get_settings()

        assert settings.query_language == "text"
        assert settings.fingerprint_cache_size == 0

    def test_invalid_value(self, monkeypatch):
        """Test that an unknown log format is rejected."""
        monkeypatch.setenv("RULEMATCH_LOG_FORMAT", "xml")

        with pytest.raises(PydanticValidationError):
            Settings()

    def test_cached(self):
        """Test that get_settings returns one instance."""
        assert get_settings() is get_settings()


class TestLogging:
    """Tests for logging helpers."""

    @pytest.fixture(autouse=True)
    def restore_structlog(self):
        """Put the test logging configuration back afterwards."""
        config = structlog.get_config()
        yield
        structlog.configure(**config)
        logging.getLogger().setLevel(logging.WARNING)

    def test_json_renderer(self):
        """Test the default renderer."""
        configure_logging("info")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer(self):
        """Test the development renderer."""
        configure_logging(logging.DEBUG, "console")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_bind_context(self):
        """Test binding fields onto a logger."""
        log = bind_context(command="reconcile")
        assert log is not None
