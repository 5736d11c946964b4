"""Custom exceptions for GitHub API calls."""

from __future__ import annotations


class GithubError(Exception):
    """Base exception for GitHub API failures."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GithubConfigurationError(GithubError):
    """Raised when required configuration is missing."""


class GithubAuthError(GithubError):
    """Raised when the credential is rejected. Never retried."""


class GithubNotFoundError(GithubError):
    """Raised when the requested resource does not exist (404)."""


class GithubApiError(GithubError):
    """Raised for client errors that retrying cannot fix (409, 422, ...)."""


class GithubRateLimitError(GithubError):
    """Raised when the upstream service enforces a rate limit."""

    def __init__(
        self,
        message: str,
        retry_after: int | float | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class GithubSecondaryRateLimitError(GithubRateLimitError):
    """
    Raised when GitHub's secondary rate limit (abuse detection) is triggered.

    Secondary rate limits are triggered by:
    - Too many requests in a short time window (burst)
    - Too many concurrent requests
    - Too many content-creating requests

    These require longer backoff (typically 60s+) compared to primary rate limits.
    """

    pass


class GithubRetryableError(GithubError):
    """Raised for transient issues (network, 5xx) where retrying may succeed."""


class GithubRetriesExhaustedError(GithubError):
    """Raised when every allowed attempt of a call has failed."""

    def __init__(self, message: str, last_error: Exception, attempts: int):
        super().__init__(message, status_code=getattr(last_error, "status_code", None))
        self.last_error = last_error
        self.attempts = attempts


RETRYABLE_ERRORS = (GithubRetryableError, GithubRateLimitError)
