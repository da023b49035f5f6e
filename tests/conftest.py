# =============================================================================
# GitHub Projects MCP Server - Test Fixtures
# =============================================================================
"""
Shared fixtures for the test suite.
"""

import pytest

from github_projects_mcp.hierarchy import HierarchyManager
from github_projects_mcp.service import GitHubProjectsService

from .fakes import FakeGitHub


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def github() -> FakeGitHub:
    """
    Create an empty in-memory GitHub.

    Returns:
        FakeGitHub instance.
    """
    return FakeGitHub()


@pytest.fixture
def manager(github: FakeGitHub) -> HierarchyManager:
    """
    Create a hierarchy manager backed by the fake client.

    Args:
        github: In-memory GitHub.

    Returns:
        HierarchyManager instance.
    """
    return HierarchyManager(github)


@pytest.fixture
def service(github: FakeGitHub) -> GitHubProjectsService:
    """
    Create a tool service backed by the fake client.

    Args:
        github: In-memory GitHub.

    Returns:
        GitHubProjectsService instance.
    """
    return GitHubProjectsService(github)
