"""Project-native typed exceptions for job service and framework controller failures."""

from __future__ import annotations


class JobServiceError(Exception):
    """Base exception for request-boundary job failures.

    Attributes:
        status_code: HTTP status code surfaced to API callers.
        error_code: Stable error identifier surfaced to API callers.
    """

    default_status_code = 500
    default_error_code = "UnknownError"

    def __init__(self, message: str, status_code: int | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status_code
        self.error_code = error_code or self.default_error_code


class NoJobError(JobServiceError, LookupError):
    """Framework was reported as not found by the framework controller."""

    default_status_code = 404
    default_error_code = "NoJobError"


class NoJobConfigError(JobServiceError, LookupError):
    """Framework exists but carries no raw job config annotation."""

    default_status_code = 404
    default_error_code = "NoJobConfigError"


class NoJobSshInfoError(JobServiceError, LookupError):
    """SSH info is not available for framework jobs."""

    default_status_code = 404
    default_error_code = "NoJobSshInfoError"


class ForbiddenUserError(JobServiceError, PermissionError):
    """User is not allowed to submit to the requested virtual cluster."""

    default_status_code = 403
    default_error_code = "ForbiddenUserError"


class UnknownError(JobServiceError, RuntimeError):
    """Framework controller answered with an unexpected status."""


class FrameworkTransportError(JobServiceError, ConnectionError):
    """Framework controller request failed without a response."""

    default_status_code = 502
    default_error_code = "FrameworkTransportError"
