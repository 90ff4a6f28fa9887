"""
Unified error handling for rulematch.

The matching engine itself never raises for well-formed rules; these errors
come from decoding rule documents, loading files and the CLI layer.

Exit Codes:
- 0: Success
- 1: Warning (reconciliation succeeded but found orphaned rules)
- 10: Configuration error (unreadable input, bad settings)
- 12: Validation error (malformed rule document)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    WARNING = 1
    CONFIG_ERROR = 10
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class RuleMatchError(Exception):
    """Base exception for rulematch errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(RuleMatchError):
    """Raised for configuration-related errors (settings, missing input files)."""

    exit_code = ExitCode.CONFIG_ERROR


class ValidationError(RuleMatchError):
    """Raised for validation failures."""

    exit_code = ExitCode.VALIDATION_ERROR


class RuleDocumentError(ValidationError):
    """Raised when an evaluation or configuration payload cannot be decoded."""


class QueryTokenizeError(RuleMatchError):
    """Raised by the query lexer on text it cannot tokenize.

    Never escapes ``hash_query``; it falls back to a whitespace-collapsed form.
    """

    def __init__(self, message: str, position: int, details: dict[str, Any] | None = None):
        super().__init__(message, {"position": position, **(details or {})})
        self.position = position


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI command functions that provides unified error handling.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - RuleMatchError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except RuleMatchError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: RuleMatchError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
