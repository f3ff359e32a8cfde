"""
errors.py — application error hierarchy.

Callers of the analysis pipeline only ever see these types; raw SDK
exceptions are chained as __cause__ but never raised across the boundary.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from providers.adapter import ModelAttemptRecord

UNKNOWN_ERROR_MESSAGE = "An unexpected error occurred"
ANALYSIS_FAILED_MESSAGE = "Failed to analyze image"


class AppError(Exception):
    """Base class for all errors raised by this project."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class ValidationError(AppError):
    """Inbound data (image payload, instruction text) is unusable."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, code, 400)


class ConfigurationError(AppError):
    """Unknown provider, missing API key, empty model list."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, code, 500)


class AnalysisServiceError(AppError):
    """
    The single terminal failure of an analysis call.

    `attempts` holds the per-attempt trail (model, attempt index, outcome,
    wait) so logs and callers can tell rate limiting from a total outage.
    """

    def __init__(
        self,
        message: str = ANALYSIS_FAILED_MESSAGE,
        code: Optional[str] = None,
        attempts: tuple[ModelAttemptRecord, ...] = (),
    ) -> None:
        super().__init__(message, code, 500)
        self.attempts = attempts


def format_error_for_logging(error: object) -> str:
    if isinstance(error, AppError):
        suffix = f" (code: {error.code})" if error.code else ""
        return f"[{type(error).__name__}] {error.message}{suffix}"
    if isinstance(error, BaseException):
        return f"[{type(error).__name__}] {error}"
    return f"[Unknown Error] {error}"


def user_friendly_message(error: object) -> str:
    """Best message to show an end user for any caught error value."""
    if isinstance(error, AppError):
        return error.message
    if isinstance(error, BaseException):
        return str(error) or UNKNOWN_ERROR_MESSAGE
    if isinstance(error, str) and error:
        return error
    return UNKNOWN_ERROR_MESSAGE
