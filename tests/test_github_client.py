"""Tests for GitHubClient request building and error classification."""

import json

import httpx
import pytest

from archive_publisher.services.github.exceptions import (
    GithubApiError,
    GithubAuthError,
    GithubConfigurationError,
    GithubNotFoundError,
    GithubRateLimitError,
    GithubRetryableError,
    GithubSecondaryRateLimitError,
)
from archive_publisher.services.github.github_client import GitHubClient

TOKEN = "ghp_abcdefghijklmnop"


def _client(handler) -> GitHubClient:
    return GitHubClient(
        TOKEN,
        api_url="https://api.github.test",
        api_version="2022-11-28",
        user_agent="archive-publisher-tests",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def _responding(status_code, payload=None, headers=None, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload, headers=headers)

    return handler


class TestGitHubClientRequests:
    """Tests for headers, endpoints and payloads."""

    def test_requires_token(self):
        with pytest.raises(GithubConfigurationError):
            GitHubClient("")

    def test_headers(self):
        seen = []
        client = _client(_responding(200, {"login": "octo"}, seen=seen))

        assert client.get_authenticated_user() == {"login": "octo"}

        request = seen[0]
        assert request.url.path == "/user"
        assert request.headers["Authorization"] == f"Bearer {TOKEN}"
        assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert request.headers["User-Agent"] == "archive-publisher-tests"
        assert request.headers["Accept"] == "application/vnd.github+json"

    def test_token_hint_redacts(self):
        client = _client(_responding(200, {}))

        assert client.token_hint == "ghp_abcd..."

    def test_create_repository_for_user(self):
        seen = []
        client = _client(_responding(201, {"name": "demo"}, seen=seen))

        client.create_repository("demo", description="Demo", private=True)

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/user/repos"
        body = json.loads(request.content)
        assert body["name"] == "demo"
        assert body["description"] == "Demo"
        assert body["private"] is True
        assert body["auto_init"] is True

    def test_create_repository_for_organization(self):
        seen = []
        client = _client(_responding(201, {"name": "demo"}, seen=seen))

        client.create_repository("demo", organization="acme")

        assert seen[0].url.path == "/orgs/acme/repos"

    def test_put_content_with_sha_and_branch(self):
        seen = []
        client = _client(_responding(200, {"content": {"sha": "new"}}, seen=seen))

        client.put_content(
            "octo", "demo", "src/my file.py", content="cHJpbnQ=", message="Add my file.py",
            branch="main", sha="abc123",
        )

        request = seen[0]
        assert request.method == "PUT"
        assert request.url.raw_path == b"/repos/octo/demo/contents/src/my%20file.py"
        assert json.loads(request.content) == {
            "message": "Add my file.py",
            "content": "cHJpbnQ=",
            "branch": "main",
            "sha": "abc123",
        }

    def test_put_content_without_sha_omits_it(self):
        seen = []
        client = _client(_responding(201, {}, seen=seen))

        client.put_content("octo", "demo", "a.txt", content="YQ==", message="Add a.txt")

        assert json.loads(seen[0].content) == {"message": "Add a.txt", "content": "YQ=="}

    def test_get_content_passes_ref(self):
        seen = []
        client = _client(_responding(200, {"sha": "abc"}, seen=seen))

        assert client.get_content("octo", "demo", "a.txt", ref="dev")["sha"] == "abc"
        assert seen[0].url.params["ref"] == "dev"

    def test_empty_body_returns_empty_dict(self):
        client = _client(lambda request: httpx.Response(204))

        assert client.get_repository("octo", "demo") == {}


class TestGitHubClientErrors:
    """Tests for response classification."""

    @pytest.mark.parametrize(
        "status, error_type",
        [
            (401, GithubAuthError),
            (403, GithubAuthError),
            (404, GithubNotFoundError),
            (409, GithubApiError),
            (422, GithubApiError),
            (500, GithubRetryableError),
            (502, GithubRetryableError),
        ],
    )
    def test_status_classification(self, status, error_type):
        client = _client(_responding(status, {"message": "nope"}))

        with pytest.raises(error_type) as exc_info:
            client.get_repository("octo", "demo")

        assert exc_info.value.status_code == status
        assert exc_info.value.message == "nope"

    def test_429_is_rate_limit_with_retry_after(self):
        client = _client(_responding(429, {"message": "Too many"}, headers={"Retry-After": "7"}))

        with pytest.raises(GithubRateLimitError) as exc_info:
            client.get_repository("octo", "demo")

        assert exc_info.value.retry_after == 7.0
        assert exc_info.value.status_code == 429

    def test_403_with_exhausted_quota_is_rate_limit(self):
        client = _client(
            _responding(
                403,
                {"message": "API rate limit exceeded"},
                headers={"X-RateLimit-Remaining": "0"},
            )
        )

        with pytest.raises(GithubRateLimitError):
            client.get_repository("octo", "demo")

    def test_secondary_rate_limit(self):
        client = _client(
            _responding(403, {"message": "You have exceeded a secondary rate limit"})
        )

        with pytest.raises(GithubSecondaryRateLimitError) as exc_info:
            client.get_repository("octo", "demo")

        assert exc_info.value.retry_after >= 60

    def test_network_error_is_retryable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(GithubRetryableError):
            client.get_authenticated_user()

    def test_message_falls_back_to_status_line(self):
        client = _client(lambda request: httpx.Response(418, text="teapot"))

        with pytest.raises(GithubApiError) as exc_info:
            client.get_authenticated_user()

        assert "418" in exc_info.value.message
