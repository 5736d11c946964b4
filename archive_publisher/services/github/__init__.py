from .exceptions import (
    GithubApiError,
    GithubAuthError,
    GithubConfigurationError,
    GithubError,
    GithubNotFoundError,
    GithubRateLimitError,
    GithubRetriesExhaustedError,
    GithubRetryableError,
    GithubSecondaryRateLimitError,
)
from .github_client import GitHubClient
from .rate_limiter import RateLimiter
from .retry import RetryingCaller, backoff_delay, wait_backoff_or_retry_after

__all__ = [
    "GitHubClient",
    "GithubApiError",
    "GithubAuthError",
    "GithubConfigurationError",
    "GithubError",
    "GithubNotFoundError",
    "GithubRateLimitError",
    "GithubRetriesExhaustedError",
    "GithubRetryableError",
    "GithubSecondaryRateLimitError",
    "RateLimiter",
    "RetryingCaller",
    "backoff_delay",
    "wait_backoff_or_retry_after",
]
