from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from archive_publisher.config import Settings, settings
from archive_publisher.services.github.exceptions import (
    GithubApiError,
    GithubAuthError,
    GithubConfigurationError,
    GithubNotFoundError,
    GithubRateLimitError,
    GithubRetryableError,
    GithubSecondaryRateLimitError,
)

API_PREVIEW_HEADERS = {
    "Accept": "application/vnd.github+json",
}

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Prefer GitHub's JSON `message`, fall back to the status line."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"GitHub API call failed: {response.status_code} {response.reason_phrase}"


class GitHubClient:
    def __init__(
        self,
        token: str,
        api_url: str | None = None,
        api_version: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize GitHubClient.

        Args:
            token: Raw GitHub token for authentication
            api_url: GitHub API URL (defaults to settings.GITHUB_API_URL)
            api_version: Value of the X-GitHub-Api-Version header
            user_agent: User-Agent header sent with every call
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self._token = token

        if not self._token:
            raise GithubConfigurationError("GitHub token is required to call the API")

        self._api_url = (api_url or settings.GITHUB_API_URL).rstrip("/")
        self._api_version = api_version or settings.GITHUB_API_VERSION
        self._user_agent = user_agent or settings.GITHUB_USER_AGENT
        self._rest = httpx.Client(
            base_url=self._api_url,
            timeout=timeout or settings.GITHUB_REQUEST_TIMEOUT,
            transport=transport or httpx.HTTPTransport(retries=1),
        )

    @classmethod
    def from_settings(cls, config: Settings) -> "GitHubClient":
        return cls(
            token=config.GITHUB_TOKEN or "",
            api_url=config.GITHUB_API_URL,
            api_version=config.GITHUB_API_VERSION,
            user_agent=config.GITHUB_USER_AGENT,
            timeout=config.GITHUB_REQUEST_TIMEOUT,
        )

    @property
    def token_hint(self) -> str:
        """First characters of the token, safe to log."""
        return f"{self._token[:8]}..."

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": self._api_version,
            "User-Agent": self._user_agent,
        }
        headers.update(API_PREVIEW_HEADERS)
        return headers

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        status = response.status_code
        if status < 400:
            return response

        message = _error_message(response)

        if status in (403, 429):
            text_lower = response.text.lower()
            if "secondary rate limit" in text_lower:
                self._handle_secondary_rate_limit(response, message)
            elif (
                status == 429
                or "rate limit" in text_lower
                or response.headers.get("X-RateLimit-Remaining") == "0"
            ):
                self._handle_rate_limit(response, message)

        if status in (401, 403):
            raise GithubAuthError(message, status_code=status)
        if status == 404:
            raise GithubNotFoundError(message, status_code=status)
        if status >= 500:
            raise GithubRetryableError(message, status_code=status)
        raise GithubApiError(message, status_code=status)

    def _handle_rate_limit(self, response: httpx.Response, message: str) -> None:
        reset_header = response.headers.get("X-RateLimit-Reset")
        retry_after_header = response.headers.get("Retry-After")
        wait_seconds = 60.0

        if retry_after_header:
            try:
                wait_seconds = float(retry_after_header)
            except ValueError:
                pass
        elif reset_header:
            try:
                reset_epoch = float(reset_header)
                now_epoch = datetime.now(timezone.utc).timestamp()
                wait_seconds = max(reset_epoch - now_epoch, 1.0)
            except ValueError:
                pass

        raise GithubRateLimitError(
            f"GitHub rate limit reached: {message}",
            retry_after=wait_seconds,
            status_code=response.status_code,
        )

    def _handle_secondary_rate_limit(self, response: httpx.Response, message: str) -> None:
        """
        Handle GitHub secondary rate limit (abuse detection).

        Secondary rate limits require longer backoff (typically 60s+).
        """
        retry_after_header = response.headers.get("Retry-After")
        wait_seconds = 120.0  # Default 2 minutes for secondary

        if retry_after_header:
            try:
                wait_seconds = max(float(retry_after_header), 60.0)
            except ValueError:
                pass

        logger.warning(
            f"GitHub secondary rate limit (abuse detection) hit, "
            f"suggested wait {wait_seconds}s"
        )

        raise GithubSecondaryRateLimitError(
            f"GitHub secondary rate limit hit: {message}",
            retry_after=wait_seconds,
            status_code=response.status_code,
        )

    def _rest_request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._rest.request(method, path, headers=self._headers(), **kwargs)
        except httpx.RequestError as exc:
            raise GithubRetryableError(f"{method} {path} failed: {exc}") from exc

        self._handle_response(response)
        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _contents_path(owner: str, repo: str, path: str) -> str:
        return f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}"

    def get_authenticated_user(self) -> Dict[str, Any]:
        return self._rest_request("GET", "/user")

    def create_repository(
        self,
        name: str,
        description: Optional[str] = None,
        private: bool = False,
        auto_init: bool = True,
        organization: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a repository for the authenticated user (or an organization).

        auto_init creates the default branch with an initial README so that
        the contents API can be used right away.
        """
        payload = {
            "name": name,
            "description": description or "",
            "private": private,
            "auto_init": auto_init,
            "allow_squash_merge": True,
            "allow_merge_commit": True,
            "allow_rebase_merge": True,
            "delete_branch_on_merge": True,
        }
        endpoint = f"/orgs/{organization}/repos" if organization else "/user/repos"
        return self._rest_request("POST", endpoint, json=payload)

    def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        """Get repository information. Raises GithubNotFoundError until it exists."""
        return self._rest_request("GET", f"/repos/{owner}/{repo}")

    def get_content(
        self, owner: str, repo: str, path: str, ref: Optional[str] = None
    ) -> Dict[str, Any]:
        """Look up a file; the returned `sha` identifies the current version."""
        params = {"ref": ref} if ref else None
        return self._rest_request(
            "GET", self._contents_path(owner, repo, path), params=params
        )

    def put_content(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: Optional[str] = None,
        sha: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create or update a file.

        Args:
            content: Base64 encoded file payload
            sha: Identity of the version being replaced; required for updates
        """
        payload: Dict[str, Any] = {"message": message, "content": content}
        if branch:
            payload["branch"] = branch
        if sha:
            payload["sha"] = sha
        return self._rest_request(
            "PUT", self._contents_path(owner, repo, path), json=payload
        )

    def close(self) -> None:
        self._rest.close()

    def __enter__(self) -> "GitHubClient":  # pragma: no cover - convenience
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - convenience
        self.close()
