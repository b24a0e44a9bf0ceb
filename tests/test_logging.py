"""
Tests for structured logging.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from bottomline.config import Settings
from bottomline.exceptions import ConfigurationError
from bottomline.logging import (
    JSONFormatter,
    get_logger,
    get_model_id,
    get_scenario,
    log_context,
    setup_logging,
    setup_logging_from_settings,
)


@pytest.fixture
def restore_logging():
    """Restore the default console logging after a test reconfigures it."""
    yield
    setup_logging()


class TestLogContext:
    """Tests for log_context."""

    def test_sets_and_restores(self) -> None:
        """Test that context is scoped to the block."""
        assert get_model_id() is None

        with log_context(model_id="m1", scenario="Bull"):
            assert get_model_id() == "m1"
            assert get_scenario() == "Bull"
            with log_context(scenario="Bear"):
                assert get_model_id() == "m1"
                assert get_scenario() == "Bear"
            assert get_scenario() == "Bull"

        assert get_model_id() is None
        assert get_scenario() is None

    def test_restores_after_error(self) -> None:
        """Test that context is restored when the block raises."""
        with pytest.raises(ValueError):
            with log_context(model_id="m2"):
                raise ValueError("boom")

        assert get_model_id() is None


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def _record(self, **extra: object) -> logging.LogRecord:
        record = logging.LogRecord(
            name="bottomline.test",
            level=logging.WARNING,
            pathname=__file__,
            lineno=1,
            msg="Value degraded to default",
            args=(),
            exc_info=None,
        )
        if extra:
            record.extra = extra
        return record

    def test_basic_fields(self) -> None:
        """Test level, logger and message."""
        data = json.loads(JSONFormatter().format(self._record()))

        assert data["level"] == "WARNING"
        assert data["logger"] == "bottomline.test"
        assert data["message"] == "Value degraded to default"
        assert "timestamp" in data
        assert "model_id" not in data

    def test_context_and_extra(self) -> None:
        """Test that context vars and structured fields are included."""
        with log_context(model_id="abc", scenario="Base Case"):
            data = json.loads(JSONFormatter().format(self._record(field="wacc")))

        assert data["model_id"] == "abc"
        assert data["scenario"] == "Base Case"
        assert data["extra"] == {"field": "wacc"}


class TestSetupLogging:
    """Tests for setup_logging and get_logger."""

    def test_unknown_level_raises(self, restore_logging: None) -> None:
        """Test that an unknown level is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            setup_logging("chatty")

        assert exc_info.value.context["log_level"] == "chatty"

    def test_file_handler_writes_json_lines(self, temp_dir: Path, restore_logging: None) -> None:
        """Test that the log file receives JSON lines with structured fields."""
        log_file = temp_dir / "logs" / "engine.jsonl"
        setup_logging("DEBUG", log_file=log_file, console_output=False)

        with log_context(model_id="xyz"):
            get_logger("tests").info("Running model", currency="USD")
        for handler in logging.getLogger("bottomline").handlers:
            handler.flush()

        line = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert line["message"] == "Running model"
        assert line["model_id"] == "xyz"
        assert line["extra"]["currency"] == "USD"
        assert line["extra"]["model_id"] == "xyz"

    def test_logger_names_prefixed(self) -> None:
        """Test that loggers live under the package namespace."""
        assert get_logger("custom").name == "bottomline.custom"
        assert get_logger("bottomline.valuation.dcf").name == "bottomline.valuation.dcf"

    def test_level_filtering(self, restore_logging: None) -> None:
        """Test is_enabled_for against the configured level."""
        setup_logging("WARNING", console_output=False)
        logger = get_logger("tests")

        assert not logger.is_enabled_for(logging.INFO)
        assert logger.is_enabled_for(logging.WARNING)

    def test_setup_from_settings(self, temp_dir: Path, restore_logging: None) -> None:
        """Test that level and log file are taken from Settings."""
        log_file = temp_dir / "settings.jsonl"
        settings = Settings(_env_file=None, LOG_LEVEL="debug", LOG_FILE=log_file)

        setup_logging_from_settings(settings)
        logger = get_logger("tests")
        logger.debug("Configured from settings")
        for handler in logging.getLogger("bottomline").handlers:
            handler.flush()

        assert logger.is_enabled_for(logging.DEBUG)
        line = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert line["message"] == "Configured from settings"
        assert line["level"] == "DEBUG"
