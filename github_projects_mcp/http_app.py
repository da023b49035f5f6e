# =============================================================================
# GitHub Projects MCP Server - HTTP Application
# =============================================================================
"""
FastAPI mirror of the MCP tools.

``POST /tools/{tool_name}`` accepts the same JSON arguments as the MCP tool
and answers with the same ``{"content": [{"type": "text", ...}]}`` envelope.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Literal, Optional

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .client import GitHubApiError, GitHubGraphQLClient, GitHubNotFoundError
from .config import Settings
from .server import error_message, to_text
from .service import GitHubProjectsService

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# HTTP Request Models
# -----------------------------------------------------------------------------
class ToolRequest(BaseModel):
    """Base request model; fields accept the tools' camelCase names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RepoRequest(ToolRequest):
    """Request scoped to a repository."""

    owner: str
    repo: str


class ListProjectsRequest(ToolRequest):
    """Request model for listing projects."""

    owner: str
    repo: Optional[str] = None
    projects_type: Literal["repository", "organization"] = Field(
        default="repository", alias="projectsType"
    )


class GetProjectRequest(ToolRequest):
    """Request model for getting a project."""

    project_number: int = Field(..., alias="projectNumber")
    owner: str
    repo: Optional[str] = None


class ListProjectItemsRequest(ToolRequest):
    """Request model for listing project items."""

    project_id: str = Field(..., alias="projectId")
    first: int = 20


class CreateProjectItemRequest(ToolRequest):
    """Request model for adding an item to a project."""

    project_id: str = Field(..., alias="projectId")
    content_id: str = Field(..., alias="contentId")


class UpdateProjectItemFieldRequest(ToolRequest):
    """Request model for updating a project item field."""

    project_id: str = Field(..., alias="projectId")
    item_id: str = Field(..., alias="itemId")
    field_id: str = Field(..., alias="fieldId")
    value: str


class CreateProjectRequest(ToolRequest):
    """Request model for creating a project."""

    owner: str
    title: str
    repo: Optional[str] = None


class CreateIssueRequest(RepoRequest):
    """Request model for creating an issue."""

    title: str
    body: Optional[str] = None
    labels: Optional[list[str]] = None
    assignees: Optional[list[str]] = None
    milestone: Optional[int] = None
    parent_issue_number: Optional[int] = Field(default=None, alias="parentIssueNumber")


class UpdateIssueRequest(RepoRequest):
    """Request model for updating an issue."""

    issue_number: int = Field(..., alias="issueNumber")
    title: Optional[str] = None
    body: Optional[str] = None
    state: Optional[Literal["open", "closed"]] = None
    labels: Optional[list[str]] = None
    assignees: Optional[list[str]] = None
    milestone: Optional[int] = None


class ListIssuesRequest(RepoRequest):
    """Request model for listing issues."""

    state: Literal["open", "closed", "all"] = "open"
    labels: Optional[list[str]] = None
    assignee: Optional[str] = None
    first: int = 20


class IssueRequest(RepoRequest):
    """Request model for tools taking a single issue number."""

    issue_number: int = Field(..., alias="issueNumber")


class EnsureLabelsRequest(RepoRequest):
    """Request model for ensuring labels exist."""

    labels: Optional[list[dict[str, Any]]] = None


class LinkIssuesRequest(RepoRequest):
    """Request model for linking issues."""

    parent_issue_number: int = Field(..., alias="parentIssueNumber")
    child_issue_number: int = Field(..., alias="childIssueNumber")
    link_type: Literal["tracks", "blocks", "related"] = Field(
        default="tracks", alias="linkType"
    )


class SetParentRequest(RepoRequest):
    """Request model for setting an issue's parent."""

    issue_number: int = Field(..., alias="issueNumber")
    parent_issue_number: int = Field(..., alias="parentIssueNumber")


class AddSubIssueRequest(RepoRequest):
    """Request model for adding a sub-issue."""

    parent_issue_number: int = Field(..., alias="parentIssueNumber")
    child_issue_number: int = Field(..., alias="childIssueNumber")


# Tool name -> request model; the service method has the same name.
TOOL_REQUESTS: dict[str, type[ToolRequest]] = {
    "list_projects": ListProjectsRequest,
    "get_project": GetProjectRequest,
    "list_project_items": ListProjectItemsRequest,
    "create_project_item": CreateProjectItemRequest,
    "update_project_item_field": UpdateProjectItemFieldRequest,
    "create_project": CreateProjectRequest,
    "create_issue": CreateIssueRequest,
    "update_issue": UpdateIssueRequest,
    "list_issues": ListIssuesRequest,
    "get_issue": IssueRequest,
    "ensure_labels": EnsureLabelsRequest,
    "link_issues": LinkIssuesRequest,
    "set_parent": SetParentRequest,
    "get_issue_hierarchy": IssueRequest,
    "add_sub_issue": AddSubIssueRequest,
}


async def dispatch(
    service: GitHubProjectsService, tool_name: str, arguments: dict[str, Any]
) -> Any:
    """
    Validate arguments and run a tool.

    Raises:
        KeyError: If the tool name is unknown.
        ValidationError: If the arguments do not match the tool's schema.
    """
    request_model = TOOL_REQUESTS[tool_name]
    request = request_model.model_validate(arguments)
    handler = getattr(service, tool_name)
    return await handler(**request.model_dump())


# -----------------------------------------------------------------------------
# FastAPI Application
# -----------------------------------------------------------------------------
def create_app(
    settings: Settings,
    service: Optional[GitHubProjectsService] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Server settings.
        service: Service to expose; built from ``settings`` if omitted.
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
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("GitHub Projects MCP FastAPI application starting")
        yield
        if client is not None:
            await client.close()
            logger.info("GitHub client closed")
        logger.info("GitHub Projects MCP FastAPI application shutdown complete")

    app = FastAPI(
        title="GitHub Projects MCP Server",
        description="GitHub Projects and Issues tools with issue hierarchies",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        configured = bool(settings.github_token)
        return {
            "status": "healthy" if configured else "unconfigured",
            "service": "github-projects-mcp",
            "api_configured": configured,
            "tools": sorted(TOOL_REQUESTS),
        }

    @app.post("/tools/{tool_name}")
    async def call_tool(
        tool_name: str,
        arguments: Optional[dict[str, Any]] = Body(default=None),
    ) -> dict[str, Any]:
        """Run a tool and wrap its result in a text content envelope."""
        if tool_name not in TOOL_REQUESTS:
            raise HTTPException(status_code=404, detail=f"Unknown tool: {tool_name}")
        try:
            result = await dispatch(service, tool_name, arguments or {})
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
        except GitHubNotFoundError as e:
            raise HTTPException(status_code=404, detail=error_message(e))
        except GitHubApiError as e:
            raise HTTPException(status_code=502, detail=error_message(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=error_message(e))
        return {"content": [{"type": "text", "text": to_text(result)}]}

    return app
