"""
Custom exception hierarchy for the financial model engine.

All exceptions inherit from BLError, which provides optional context
for structured error handling and logging.

The calculation core never raises for bad numeric input: it degrades to
defaults. These exceptions cover the structural and I/O edges only.
"""

from __future__ import annotations

from typing import Any


class BLError(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(BLError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Unknown LOG_LEVEL
        - Output directory that cannot be created
    """

    pass


class InputError(BLError):
    """Raised when an assumptions record is structurally unusable.

    Numeric problems never raise; this is only for a record that is not
    a mapping at all.

    Context should include:
        - record_type: The type name of the rejected record
        - source: Which record was being read (assumptions, lbo, scenario)
    """

    pass


class ExportError(BLError):
    """Raised when writing an export file fails.

    Context should include:
        - path: The path that was being written
        - format: The export format (json, csv)
    """

    pass
