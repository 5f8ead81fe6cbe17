"""Custom exceptions for RE:MIND."""

from __future__ import annotations


class RemindError(Exception):
    """Base exception for all RE:MIND errors."""

    status_code = 500


class ConfigurationError(RemindError):
    """Exception raised for configuration related errors."""

    status_code = 503


class ValidationError(RemindError):
    """Exception raised for data validation errors."""

    status_code = 400


class AuthenticationError(RemindError):
    """Exception raised for missing or invalid credentials."""

    status_code = 401


class AuthorizationError(RemindError):
    """Exception raised when an authenticated account may not act (e.g. suspended)."""

    status_code = 403


class NotFoundError(RemindError):
    """Exception raised when a requested record does not exist or is not owned by the caller."""

    status_code = 404


class ConflictError(RemindError):
    """Exception raised when a record already exists."""

    status_code = 409


class RateLimitExceeded(RemindError):
    """Exception raised when a caller exceeded its request budget."""

    status_code = 429

    def __init__(self, message: str, *, headers: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.headers = headers or {}


class BillingError(RemindError):
    """Exception raised for payment processor failures."""

    status_code = 502


class NotificationError(RemindError):
    """Exception raised when a notification channel fails to deliver."""

    status_code = 502


class SyncError(RemindError):
    """Exception raised when the offline sync client cannot reach the server."""


class SubscriptionExpired(NotificationError):
    """Exception raised when a push endpoint reports the subscription is gone."""
