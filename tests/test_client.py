# =============================================================================
# Tests for GitHub GraphQL Client
# =============================================================================
"""
Unit tests for GitHubGraphQLClient using an httpx mock transport.
"""

import json
from typing import Any, Callable

import httpx
import pytest

from github_projects_mcp.client import (
    GitHubApiError,
    GitHubAuthenticationError,
    GitHubCapabilityError,
    GitHubForbiddenError,
    GitHubGraphQLClient,
    GitHubNotFoundError,
    build_auth_header,
    is_capability_error,
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
class RecordingHandler:
    """
    Mock transport handler returning canned responses in order.

    Attributes:
        requests: Requests received so far.
    """

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    def payload(self, index: int = -1) -> dict[str, Any]:
        return json.loads(self.requests[index].content)


def graphql(data: Any = None, errors: Any = None, status_code: int = 200) -> httpx.Response:
    body: dict[str, Any] = {}
    if data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    return httpx.Response(status_code, json=body)


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def make_client() -> Callable[..., GitHubGraphQLClient]:
    """
    Build clients wired to a RecordingHandler.

    Returns:
        Factory taking a handler and an optional token.
    """

    def factory(handler: RecordingHandler, token: str = "ghp_classic") -> GitHubGraphQLClient:
        return GitHubGraphQLClient(token=token, transport=httpx.MockTransport(handler))

    return factory


# -----------------------------------------------------------------------------
# Helper Function Tests
# -----------------------------------------------------------------------------
class TestHelpers:
    """Tests for module-level helpers."""

    def test_auth_header_classic(self) -> None:
        """Test that classic tokens use the token scheme."""
        assert build_auth_header("ghp_abc") == "token ghp_abc"

    def test_auth_header_fine_grained(self) -> None:
        """Test that fine-grained tokens use Bearer."""
        assert build_auth_header(" github_pat_abc\n") == "Bearer github_pat_abc"

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Field 'addSubIssue' doesn't exist on type 'Mutation'", True),
            ("Unknown field addSubIssue", True),
            ("Resource not accessible by integration", False),
        ],
    )
    def test_is_capability_error(self, message: str, expected: bool) -> None:
        """Test recognition of unknown-field messages."""
        assert is_capability_error(message, "addSubIssue") is expected


# -----------------------------------------------------------------------------
# Request Tests
# -----------------------------------------------------------------------------
class TestExecute:
    """Tests for request headers and error mapping."""

    @pytest.mark.asyncio
    async def test_headers(self, make_client: Callable[..., GitHubGraphQLClient]) -> None:
        """Test that requests carry the auth and sub-issue feature headers."""
        handler = RecordingHandler(graphql({"viewer": {"login": "octo"}}))
        client = make_client(handler, token="github_pat_xyz")

        await client.execute("query { viewer { login } }")
        await client.close()

        request = handler.requests[0]
        assert request.url == "https://api.github.com/graphql"
        assert request.headers["Authorization"] == "Bearer github_pat_xyz"
        assert request.headers["GraphQL-Features"] == "sub_issues"
        assert handler.payload() == {"query": "query { viewer { login } }", "variables": {}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,error_class",
        [
            (401, GitHubAuthenticationError),
            (403, GitHubForbiddenError),
            (404, GitHubNotFoundError),
            (500, GitHubApiError),
        ],
    )
    async def test_http_errors(
        self,
        make_client: Callable[..., GitHubGraphQLClient],
        status_code: int,
        error_class: type,
    ) -> None:
        """Test that HTTP failures map to the exception hierarchy."""
        handler = RecordingHandler(
            httpx.Response(status_code, json={"message": "Bad credentials"})
        )
        client = make_client(handler)

        with pytest.raises(error_class) as exc_info:
            await client.execute("query { viewer { login } }")

        assert exc_info.value.status_code == status_code
        assert "Bad credentials" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_graphql_not_found(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that NOT_FOUND GraphQL errors raise GitHubNotFoundError."""
        handler = RecordingHandler(
            graphql(
                {"repository": None},
                [{"type": "NOT_FOUND", "message": "Could not resolve to a Repository"}],
            )
        )
        client = make_client(handler)

        with pytest.raises(GitHubNotFoundError, match="Could not resolve"):
            await client.execute("query { repository { id } }")

    @pytest.mark.asyncio
    async def test_graphql_errors_joined(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that multiple GraphQL errors are reported together."""
        handler = RecordingHandler(
            graphql(errors=[{"message": "first"}, {"message": "second"}])
        )
        client = make_client(handler)

        with pytest.raises(GitHubApiError, match="first; second"):
            await client.execute("query { viewer { login } }")

    @pytest.mark.asyncio
    async def test_transport_error(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that connection failures become GitHubApiError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = GitHubGraphQLClient(token="ghp_x", transport=httpx.MockTransport(handler))

        with pytest.raises(GitHubApiError, match="Request failed"):
            await client.execute("query { viewer { login } }")


# -----------------------------------------------------------------------------
# Operation Tests
# -----------------------------------------------------------------------------
class TestIssues:
    """Tests for issue reads."""

    @pytest.mark.asyncio
    async def test_get_issue_flattens_connections(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that labels and comments are flattened from connections."""
        handler = RecordingHandler(
            graphql(
                {
                    "repository": {
                        "issue": {
                            "id": "I_1",
                            "number": 1,
                            "title": "Epic: Checkout",
                            "body": "Overview",
                            "state": "OPEN",
                            "labels": {"nodes": [{"name": "epic"}]},
                            "comments": {"nodes": [{"body": "Tracks #2"}]},
                        }
                    }
                }
            )
        )
        client = make_client(handler)

        issue = await client.get_issue("octo", "widgets", 1, comment_limit=100)

        assert issue.label_names == ["epic"]
        assert [c.body for c in issue.comments] == ["Tracks #2"]
        variables = handler.payload()["variables"]
        assert variables["withComments"] is True
        assert variables["commentLast"] == 100
        assert variables["commentFirst"] is None

    @pytest.mark.asyncio
    async def test_get_issue_oldest_comments(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that oldest_comments requests comments from the start."""
        handler = RecordingHandler(
            graphql({"repository": {"issue": {"number": 1, "title": "One"}}})
        )
        client = make_client(handler)

        await client.get_issue("octo", "widgets", 1, comment_limit=5, oldest_comments=True)

        variables = handler.payload()["variables"]
        assert variables["commentFirst"] == 5
        assert variables["commentLast"] is None

    @pytest.mark.asyncio
    async def test_get_issue_without_comments(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that comments are not requested by default."""
        handler = RecordingHandler(
            graphql({"repository": {"issue": {"number": 1, "title": "One"}}})
        )
        client = make_client(handler)

        issue = await client.get_issue("octo", "widgets", 1)

        assert issue.comments == []
        assert handler.payload()["variables"]["withComments"] is False

    @pytest.mark.asyncio
    async def test_get_missing_issue(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that a null issue raises GitHubNotFoundError."""
        handler = RecordingHandler(graphql({"repository": {"issue": None}}))
        client = make_client(handler)

        with pytest.raises(GitHubNotFoundError, match="Issue #9 not found in octo/widgets"):
            await client.get_issue("octo", "widgets", 9)


class TestSubIssues:
    """Tests for native sub-issue support."""

    @pytest.mark.asyncio
    async def test_unknown_field_is_capability_error(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that a schema error becomes GitHubCapabilityError."""
        handler = RecordingHandler(
            graphql(errors=[{"message": "Field 'addSubIssue' doesn't exist on type 'Mutation'"}])
        )
        client = make_client(handler)

        with pytest.raises(GitHubCapabilityError):
            await client.add_sub_issue("I_1", "I_2")

    @pytest.mark.asyncio
    async def test_other_errors_unchanged(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that unrelated failures are not treated as missing capability."""
        handler = RecordingHandler(graphql(errors=[{"message": "Issue already has a parent"}]))
        client = make_client(handler)

        with pytest.raises(GitHubApiError) as exc_info:
            await client.add_sub_issue("I_1", "I_2")

        assert not isinstance(exc_info.value, GitHubCapabilityError)

    @pytest.mark.asyncio
    async def test_supports_mutation_cached(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that the schema is probed once per client."""
        handler = RecordingHandler(
            graphql({"__type": {"fields": [{"name": "addComment"}, {"name": "addSubIssue"}]}})
        )
        client = make_client(handler)

        assert await client.supports_mutation("addSubIssue") is True
        assert await client.supports_mutation("removeSubIssue") is False
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_supports_mutation_probe_failure(
        self, make_client: Callable[..., GitHubGraphQLClient]
    ) -> None:
        """Test that a failed probe returns None and is retried later."""
        handler = RecordingHandler(
            httpx.Response(502, text="Bad Gateway"),
            graphql({"__type": {"fields": [{"name": "addSubIssue"}]}}),
        )
        client = make_client(handler)

        assert await client.supports_mutation("addSubIssue") is None
        assert await client.supports_mutation("addSubIssue") is True
