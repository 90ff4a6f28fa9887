"""Core modules for rulematch - centralized error definitions."""

from rulematch.core.errors import (
    ConfigurationError,
    ExitCode,
    QueryTokenizeError,
    RuleDocumentError,
    RuleMatchError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "RuleMatchError",
    "ConfigurationError",
    "ValidationError",
    "RuleDocumentError",
    "QueryTokenizeError",
    "main_with_error_handling",
    "format_error_message",
]
