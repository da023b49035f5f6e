# =============================================================================
# Tests for HTTP Application
# =============================================================================
"""
Unit tests for the FastAPI mirror of the MCP tools.
"""

import json

import pytest
from fastapi.testclient import TestClient

from github_projects_mcp.config import Settings
from github_projects_mcp.http_app import TOOL_REQUESTS, create_app
from github_projects_mcp.service import GitHubProjectsService

from .fakes import OWNER, REPO, FakeGitHub


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def http_client(service: GitHubProjectsService) -> TestClient:
    """
    Create a test client for the app backed by the fake service.

    Args:
        service: Service backed by FakeGitHub.

    Returns:
        FastAPI TestClient.
    """
    app = create_app(Settings(github_token="ghp_test"), service=service)
    return TestClient(app)


# -----------------------------------------------------------------------------
# Endpoint Tests
# -----------------------------------------------------------------------------
class TestHealth:
    """Tests for GET /health."""

    def test_health(self, http_client: TestClient) -> None:
        """Test the health payload."""
        response = http_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["api_configured"] is True
        assert body["tools"] == sorted(TOOL_REQUESTS)


class TestCallTool:
    """Tests for POST /tools/{tool_name}."""

    def test_envelope(self, http_client: TestClient, github: FakeGitHub) -> None:
        """Test that results use the MCP text content envelope."""
        github.add_issue(100, "Epic: Checkout")
        github.add_issue(101, "Add support for coupons")

        response = http_client.post(
            "/tools/add_sub_issue",
            json={
                "owner": OWNER,
                "repo": REPO,
                "parentIssueNumber": 100,
                "childIssueNumber": 101,
            },
        )

        assert response.status_code == 200
        content = response.json()["content"]
        assert content[0]["type"] == "text"
        assert json.loads(content[0]["text"])["relationship"] == "native_sub_issue"

    def test_unknown_tool(self, http_client: TestClient) -> None:
        """Test that unknown tools return 404."""
        response = http_client.post("/tools/delete_everything", json={})

        assert response.status_code == 404
        assert response.json()["detail"] == "Unknown tool: delete_everything"

    def test_missing_arguments(self, http_client: TestClient) -> None:
        """Test that schema violations return 422."""
        response = http_client.post("/tools/get_issue", json={"owner": OWNER})

        assert response.status_code == 422

    def test_not_found(self, http_client: TestClient) -> None:
        """Test that missing issues return 404 with the message."""
        response = http_client.post(
            "/tools/get_issue_hierarchy",
            json={"owner": OWNER, "repo": REPO, "issueNumber": 5},
        )

        assert response.status_code == 404

    def test_upstream_failure(self, http_client: TestClient, github: FakeGitHub) -> None:
        """Test that other GitHub failures return 502."""
        github.add_issue(1, "One")
        github.add_issue(2, "Two")
        github.unreachable.add(2)

        response = http_client.post(
            "/tools/link_issues",
            json={"owner": OWNER, "repo": REPO, "parentIssueNumber": 1, "childIssueNumber": 2},
        )

        assert response.status_code == 502
        assert response.json()["detail"].startswith("GitHub API error:")

    def test_invalid_link_type(self, http_client: TestClient, github: FakeGitHub) -> None:
        """Test that a link type outside the enum is rejected before any call."""
        response = http_client.post(
            "/tools/link_issues",
            json={
                "owner": OWNER,
                "repo": REPO,
                "parentIssueNumber": 1,
                "childIssueNumber": 2,
                "linkType": "parent",
            },
        )

        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"] == ["linkType"]
        assert github.calls == []

    def test_invalid_issue_state(self, http_client: TestClient, github: FakeGitHub) -> None:
        """Test that list_issues rejects an unknown state filter."""
        response = http_client.post(
            "/tools/list_issues",
            json={"owner": OWNER, "repo": REPO, "state": "merged"},
        )

        assert response.status_code == 422
        assert github.calls == []
