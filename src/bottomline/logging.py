"""
Structured logging for the financial model engine.

Provides:
- Context variables for model_id and scenario (using contextvars)
- JSONFormatter for machine-readable logs to file
- RichHandler for pretty console output
- ContextLogger wrapper that attaches context to all log calls
- setup_logging() that configures both file and console handlers
- Context manager log_context() for scoped context
- get_logger() factory
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Generator

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from bottomline.exceptions import ConfigurationError

if TYPE_CHECKING:
    from bottomline.config import Settings

# Context variables for structured logging
_model_id_var: ContextVar[str | None] = ContextVar("model_id", default=None)
_scenario_var: ContextVar[str | None] = ContextVar("scenario", default=None)

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_model_id() -> str | None:
    """Get the current model ID from context."""
    return _model_id_var.get()


def get_scenario() -> str | None:
    """Get the current scenario name from context."""
    return _scenario_var.get()


@contextmanager
def log_context(
    model_id: str | None = None,
    scenario: str | None = None,
) -> Generator[None, None, None]:
    """Context manager for scoped logging context.

    Args:
        model_id: Model ID to set in context.
        scenario: Scenario name to set in context.

    Yields:
        None. Context variables are set for the duration of the context.
    """
    old_model_id = _model_id_var.get()
    old_scenario = _scenario_var.get()

    try:
        if model_id is not None:
            _model_id_var.set(model_id)
        if scenario is not None:
            _scenario_var.set(scenario)
        yield
    finally:
        _model_id_var.set(old_model_id)
        _scenario_var.set(old_scenario)


class JSONFormatter(logging.Formatter):
    """JSON formatter for machine-readable log files.

    Produces JSON Lines format with structured context.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        model_id = get_model_id()
        scenario = get_scenario()

        if model_id:
            log_obj["model_id"] = model_id
        if scenario:
            log_obj["scenario"] = scenario

        # Add extra fields from the record
        if hasattr(record, "extra"):
            log_obj["extra"] = record.extra

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


class ContextRichHandler(RichHandler):
    """Rich handler that includes context in console output."""

    def get_level_text(self, record: logging.LogRecord) -> Text:
        """Override to add context prefix."""
        level_text = super().get_level_text(record)

        parts: list[str] = []
        model_id = get_model_id()
        scenario = get_scenario()

        if model_id:
            parts.append(f"[dim]{model_id[:8]}[/dim]")
        if scenario:
            parts.append(f"[cyan]{scenario}[/cyan]")

        if parts:
            prefix = " ".join(parts)
            return Text.from_markup(f"{level_text} {prefix}")

        return level_text


class ContextLogger:
    """Logger wrapper that automatically attaches context to log calls.

    Keyword arguments other than the stdlib ones become structured
    fields under ``extra``.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        """Get the logger name."""
        return self._logger.name

    def is_enabled_for(self, level: int) -> bool:
        """Check whether a level would be emitted."""
        return self._logger.isEnabledFor(level)

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        exc_info: bool = False,
        **kwargs: Any,
    ) -> None:
        """Internal logging method that adds context."""
        if not self._logger.isEnabledFor(level):
            return

        extra = kwargs.pop("extra", {})

        model_id = get_model_id()
        scenario = get_scenario()

        if model_id:
            extra["model_id"] = model_id
        if scenario:
            extra["scenario"] = scenario

        for key in list(kwargs.keys()):
            if key not in ("exc_info", "stack_info", "stacklevel"):
                extra[key] = kwargs.pop(key)

        self._logger.log(level, msg, *args, exc_info=exc_info, extra={"extra": extra})

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, exc_info: bool = False, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._log(logging.ERROR, msg, *args, exc_info=True, **kwargs)


_console: Console | None = None
_setup_done: bool = False


def get_console() -> Console:
    """Get the global rich console."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | None = None,
    console_output: bool = True,
) -> None:
    """Set up logging with JSON file handler and rich console handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to log file. If None, only console logging is enabled.
        console_output: Whether to enable console output.

    Raises:
        ConfigurationError: If log_level is not a known level name.
    """
    global _setup_done

    level_name = log_level.upper()
    if level_name not in _VALID_LEVELS:
        raise ConfigurationError(
            "Unknown log level",
            context={"log_level": log_level, "expected": _VALID_LEVELS},
        )
    level = getattr(logging, level_name)

    root_logger = logging.getLogger("bottomline")
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(logging.DEBUG)  # Log everything to file
        root_logger.addHandler(file_handler)

    if console_output:
        rich_handler = ContextRichHandler(
            console=get_console(),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=True,
        )
        rich_handler.setLevel(level)
        root_logger.addHandler(rich_handler)

    root_logger.propagate = False
    _setup_done = True


def setup_logging_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from application settings.

    Args:
        settings: Settings to use. Loads the cached settings if omitted.
    """
    if settings is None:
        from bottomline.config import get_settings

        settings = get_settings()
    setup_logging(log_level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name (usually __name__).

    Returns:
        ContextLogger wrapper around the standard logger.
    """
    # Ensure logging is set up with defaults if not already done
    if not _setup_done:
        setup_logging()

    if not name.startswith("bottomline"):
        name = f"bottomline.{name}"

    return ContextLogger(logging.getLogger(name))
