# =============================================================================
# GitHub Projects MCP Server
# =============================================================================
"""
FastMCP server providing GitHub Projects and Issues tools.

This server exposes MCP tools for:
- Projects V2 (list, get, create, list items, add item, update item field)
- Issues (list, get, create, update) with automatic type labels
- Labels (ensure the issue type labels exist)
- Issue hierarchies (link, set parent, native sub-issues, hierarchy view)

Every tool returns its result as JSON text. The server speaks MCP over stdio
by default; ``GITHUB_MCP_TRANSPORT=http`` serves the FastAPI mirror instead.
"""

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Literal, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from .client import GitHubApiError, GitHubGraphQLClient, GitHubNotFoundError
from .config import Settings
from .service import GitHubProjectsService

# -----------------------------------------------------------------------------
# Logging Configuration
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

CREDENTIALS_HINT = (
    ". Please check that your GitHub token is valid and has the required "
    "permissions (repo, project, read:org)."
)


# -----------------------------------------------------------------------------
# Error Handling
# -----------------------------------------------------------------------------
def error_message(e: Exception) -> str:
    """
    Build the message reported to the host for a failed tool call.

    Missing entities are reported as-is; upstream failures get a generic
    prefix, plus a permissions hint for credential errors.
    """
    if isinstance(e, GitHubNotFoundError):
        return e.message
    if isinstance(e, GitHubApiError):
        message = f"GitHub API error: {e.message}"
        if "Bad credentials" in e.message:
            message += CREDENTIALS_HINT
        return message
    if isinstance(e, ValueError):
        return f"Invalid arguments: {e}"
    logger.error(f"Unexpected error: {e}")
    return f"GitHub API error: {e}"


def handle_api_error(e: Exception) -> ToolError:
    """Convert an exception into the ToolError surfaced to the MCP host."""
    return ToolError(error_message(e))


def to_text(result: Any) -> str:
    """Encode a tool result as indented JSON."""
    return json.dumps(result, indent=2, default=str)


# -----------------------------------------------------------------------------
# FastMCP Server
# -----------------------------------------------------------------------------
def create_server(
    settings: Settings,
    service: Optional[GitHubProjectsService] = None,
) -> FastMCP:
    """
    Build the MCP server and register its tools.

    Args:
        settings: Server settings.
        service: Service to expose; built from ``settings`` if omitted.

    Returns:
        Configured FastMCP instance.
    """
    client: Optional[GitHubGraphQLClient] = None
    if service is None:
        client = GitHubGraphQLClient(
            token=settings.github_token,
            graphql_url=settings.github_graphql_url,
            timeout=settings.github_request_timeout,
        )
        service = GitHubProjectsService(client, comment_limit=settings.comment_fetch_limit)

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        logger.info("GitHub Projects MCP server starting")
        try:
            yield {"service": service}
        finally:
            if client is not None:
                await client.close()
                logger.info("GitHub client closed")

    mcp = FastMCP("github-projects-mcp", lifespan=lifespan)

    # =========================================================================
    # Project Tools
    # =========================================================================

    @mcp.tool()
    async def list_projects(
        owner: str,
        repo: Optional[str] = None,
        projectsType: Literal["repository", "organization"] = "repository",
    ) -> str:
        """
        List GitHub projects for a repository or organization.

        Args:
            owner: Repository owner or organization name.
            repo: Repository name (optional for org projects).
            projectsType: Type of projects to list (repository, organization).
        """
        try:
            return to_text(await service.list_projects(owner, repo, projectsType))
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def get_project(
        projectNumber: int,
        owner: str,
        repo: Optional[str] = None,
    ) -> str:
        """
        Get details of a specific GitHub project.

        Args:
            projectNumber: Project number.
            owner: Repository owner or organization name.
            repo: Repository name (optional for org projects).
        """
        try:
            return to_text(await service.get_project(projectNumber, owner, repo))
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def list_project_items(projectId: str, first: int = 20) -> str:
        """
        List items in a GitHub project.

        Args:
            projectId: Project node ID.
            first: Number of items to return.
        """
        try:
            return to_text(await service.list_project_items(projectId, first))
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def create_project_item(projectId: str, contentId: str) -> str:
        """
        Create a new item in a GitHub project.

        Args:
            projectId: Project node ID.
            contentId: Issue or PR node ID to add to project.
        """
        try:
            return to_text(await service.create_project_item(projectId, contentId))
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def update_project_item_field(
        projectId: str,
        itemId: str,
        fieldId: str,
        value: str,
    ) -> str:
        """
        Update a field value for a project item.

        Args:
            projectId: Project node ID.
            itemId: Project item node ID.
            fieldId: Field node ID.
            value: New value for the field.
        """
        try:
            return to_text(
                await service.update_project_item_field(projectId, itemId, fieldId, value)
            )
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def create_project(owner: str, title: str, repo: Optional[str] = None) -> str:
        """
        Create a new GitHub project for a repository or organization.

        Args:
            owner: Repository owner or organization name.
            title: Project title.
            repo: Repository name (omit for organization project).
        """
        try:
            return to_text(await service.create_project(owner, title, repo))
        except Exception as e:
            raise handle_api_error(e) from e

    # =========================================================================
    # Issue Tools
    # =========================================================================

    @mcp.tool()
    async def create_issue(
        owner: str,
        repo: str,
        title: str,
        body: Optional[str] = None,
        labels: Optional[list[str]] = None,
        assignees: Optional[list[str]] = None,
        milestone: Optional[int] = None,
        parentIssueNumber: Optional[int] = None,
    ) -> str:
        """
        Create a new issue in a repository.

        The issue type (epic, feature, bug, task, story, documentation) is
        inferred from the title and body and added as a label.

        Args:
            owner: Repository owner.
            repo: Repository name.
            title: Issue title.
            body: Issue body/description (optional).
            labels: Labels to assign (optional).
            assignees: Users to assign (optional).
            milestone: Milestone number (optional).
            parentIssueNumber: Parent issue number to link this issue to (optional).
        """
        try:
            return to_text(
                await service.create_issue(
                    owner,
                    repo,
                    title,
                    body=body,
                    labels=labels,
                    assignees=assignees,
                    milestone=milestone,
                    parent_issue_number=parentIssueNumber,
                )
            )
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def update_issue(
        owner: str,
        repo: str,
        issueNumber: int,
        title: Optional[str] = None,
        body: Optional[str] = None,
        state: Optional[Literal["open", "closed"]] = None,
        labels: Optional[list[str]] = None,
        assignees: Optional[list[str]] = None,
        milestone: Optional[int] = None,
    ) -> str:
        """
        Update an existing issue.

        Args:
            owner: Repository owner.
            repo: Repository name.
            issueNumber: Issue number.
            title: New title (optional).
            body: New body (optional).
            state: Issue state, open or closed (optional).
            labels: Replace all labels (optional).
            assignees: Replace all assignees (optional).
            milestone: Milestone number, 0 to remove (optional).
        """
        try:
            return to_text(
                await service.update_issue(
                    owner,
                    repo,
                    issueNumber,
                    title=title,
                    body=body,
                    state=state,
                    labels=labels,
                    assignees=assignees,
                    milestone=milestone,
                )
            )
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def list_issues(
        owner: str,
        repo: str,
        state: Literal["open", "closed", "all"] = "open",
        labels: Optional[list[str]] = None,
        assignee: Optional[str] = None,
        first: int = 20,
    ) -> str:
        """
        List issues in a repository.

        Args:
            owner: Repository owner.
            repo: Repository name.
            state: Filter by state (open, closed, all). Default: open.
            labels: Filter by labels (optional).
            assignee: Filter by assignee username (optional).
            first: Number of issues to return. Default: 20.
        """
        try:
            return to_text(
                await service.list_issues(owner, repo, state, labels, assignee, first)
            )
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def get_issue(owner: str, repo: str, issueNumber: int) -> str:
        """
        Get details of a specific issue.

        Args:
            owner: Repository owner.
            repo: Repository name.
            issueNumber: Issue number.
        """
        try:
            return to_text(await service.get_issue(owner, repo, issueNumber))
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def ensure_labels(
        owner: str,
        repo: str,
        labels: Optional[list[dict[str, str]]] = None,
    ) -> str:
        """
        Ensure standard issue type labels exist in the repository.

        Args:
            owner: Repository owner.
            repo: Repository name.
            labels: Labels to ensure exist, each with name, color and optional
                description (uses the issue type defaults if not provided).
        """
        try:
            return to_text(await service.ensure_labels(owner, repo, labels))
        except Exception as e:
            raise handle_api_error(e) from e

    # =========================================================================
    # Hierarchy Tools
    # =========================================================================

    @mcp.tool()
    async def link_issues(
        owner: str,
        repo: str,
        parentIssueNumber: int,
        childIssueNumber: int,
        linkType: Literal["tracks", "blocks", "related"] = "tracks",
    ) -> str:
        """
        Create parent-child relationship between issues (Epic > Feature > Story/Task).

        Args:
            owner: Repository owner.
            repo: Repository name.
            parentIssueNumber: Parent issue number (e.g., Epic or Feature).
            childIssueNumber: Child issue number to link.
            linkType: Type of relationship (tracks, blocks, related). Default: tracks.
        """
        try:
            return to_text(
                await service.link_issues(
                    owner, repo, parentIssueNumber, childIssueNumber, linkType
                )
            )
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def set_parent(
        owner: str,
        repo: str,
        issueNumber: int,
        parentIssueNumber: int,
    ) -> str:
        """
        Set or update the parent of an issue (simpler alternative to link_issues).

        Args:
            owner: Repository owner.
            repo: Repository name.
            issueNumber: Issue number to set parent for.
            parentIssueNumber: Parent issue number (e.g., Epic or Feature).
        """
        try:
            return to_text(
                await service.set_parent(owner, repo, issueNumber, parentIssueNumber)
            )
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def get_issue_hierarchy(owner: str, repo: str, issueNumber: int) -> str:
        """
        Get the full hierarchy of an issue (parents and children).

        Args:
            owner: Repository owner.
            repo: Repository name.
            issueNumber: Issue number to get hierarchy for.
        """
        try:
            return to_text(await service.get_issue_hierarchy(owner, repo, issueNumber))
        except Exception as e:
            raise handle_api_error(e) from e

    @mcp.tool()
    async def add_sub_issue(
        owner: str,
        repo: str,
        parentIssueNumber: int,
        childIssueNumber: int,
    ) -> str:
        """
        Add a sub-issue relationship using GitHub's native sub-issues.

        Falls back to comment and task-list linking when the API does not
        support sub-issues.

        Args:
            owner: Repository owner.
            repo: Repository name.
            parentIssueNumber: Parent issue number.
            childIssueNumber: Child issue number to add as sub-issue.
        """
        try:
            return to_text(
                await service.add_sub_issue(
                    owner, repo, parentIssueNumber, childIssueNumber
                )
            )
        except Exception as e:
            raise handle_api_error(e) from e

    return mcp


# -----------------------------------------------------------------------------
# Main Entry Point
# -----------------------------------------------------------------------------
def main() -> None:
    """Run the server."""
    settings = Settings()

    # Set log level
    logging.getLogger().setLevel(settings.log_level.upper())

    if not settings.github_token:
        logger.error("Error: GITHUB_TOKEN environment variable is required")
        sys.exit(1)

    if settings.transport == "http":
        import uvicorn

        from .http_app import create_app

        logger.info(f"Starting GitHub Projects MCP HTTP server on {settings.host}:{settings.port}")
        uvicorn.run(
            create_app(settings),
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
        return

    logger.info("GitHub Projects MCP server running on stdio")
    create_server(settings).run(transport="stdio")


if __name__ == "__main__":
    main()
