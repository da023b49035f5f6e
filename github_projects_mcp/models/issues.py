# =============================================================================
# GitHub Projects MCP Server - Issue Models
# =============================================================================
"""
Pydantic models for GitHub issues as returned by the GraphQL API.

Field aliases follow GitHub's camelCase names so that results can be dumped
back out in the same shape the API uses (``model_dump(by_alias=True)``).
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import Label, Milestone, User, unwrap_nodes


class IssueComment(BaseModel):
    """
    GitHub issue comment model.

    Attributes:
        id: Comment node ID.
        body: Comment body in Markdown.
        author: User who created the comment (None for deleted accounts).
        created_at: Comment creation timestamp.
    """

    id: Optional[str] = Field(default=None, description="Comment node ID")
    body: str = Field(default="", description="Comment body (Markdown)")
    author: Optional[User] = Field(default=None, description="Comment author")
    created_at: Optional[datetime] = Field(
        default=None, alias="createdAt", description="Created at"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Issue(BaseModel):
    """
    GitHub issue model.

    Only the fields requested by a given query are populated; everything
    except ``number`` and ``title`` is optional.

    Attributes:
        id: Global node ID.
        number: Issue number within the repository.
        title: Issue title.
        body: Issue body (Markdown).
        state: Current state (OPEN, CLOSED).
        url: URL to view the issue on GitHub.
        author: User who created the issue.
        labels: Labels attached to the issue.
        assignees: Users assigned to the issue.
        milestone: Milestone the issue belongs to.
        comments: Most recent comments, when requested.
        project_items: Project memberships, when requested.
    """

    id: Optional[str] = Field(default=None, description="Issue node ID")
    number: int = Field(..., description="Issue number")
    title: str = Field(..., description="Issue title")
    body: Optional[str] = Field(default=None, description="Issue body (Markdown)")
    state: Optional[str] = Field(default=None, description="State (OPEN/CLOSED)")
    url: Optional[str] = Field(default=None, description="Issue URL")
    author: Optional[User] = Field(default=None, description="Issue creator")
    labels: list[Label] = Field(default_factory=list, description="Attached labels")
    assignees: list[User] = Field(default_factory=list, description="Assigned users")
    milestone: Optional[Milestone] = Field(default=None, description="Milestone")
    comments: list[IssueComment] = Field(
        default_factory=list, description="Issue comments"
    )
    project_items: list[dict[str, Any]] = Field(
        default_factory=list, alias="projectItems", description="Project items"
    )
    created_at: Optional[datetime] = Field(
        default=None, alias="createdAt", description="Created at"
    )
    updated_at: Optional[datetime] = Field(
        default=None, alias="updatedAt", description="Updated at"
    )
    closed_at: Optional[datetime] = Field(
        default=None, alias="closedAt", description="Closed at"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("labels", "assignees", "comments", "project_items", mode="before")
    @classmethod
    def _flatten_connection(cls, value: Any) -> Any:
        return unwrap_nodes(value)

    @property
    def label_names(self) -> list[str]:
        """Names of the attached labels, in API order."""
        return [label.name for label in self.labels]

    def to_output(self) -> dict[str, Any]:
        """Serialize for tool output, using GitHub's field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class IssueList(BaseModel):
    """
    One page of issues.

    Attributes:
        nodes: Issues in this page.
        total_count: Total number of issues matching the filter.
    """

    nodes: list[Issue] = Field(default_factory=list, description="Issues")
    total_count: int = Field(default=0, alias="totalCount", description="Total count")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class IssueCreate(BaseModel):
    """
    Input for creating a new issue.

    Attributes:
        title: Issue title (required).
        body: Issue body in Markdown.
        labels: Label names to attach.
        assignees: Logins to assign.
        milestone: Milestone number to associate.
        parent_issue_number: Parent issue to link the new issue to.
    """

    title: str = Field(..., description="Issue title", min_length=1)
    body: Optional[str] = Field(default=None, description="Issue body (Markdown)")
    labels: Optional[list[str]] = Field(default=None, description="Label names")
    assignees: Optional[list[str]] = Field(default=None, description="Assignee logins")
    milestone: Optional[int] = Field(default=None, description="Milestone number")
    parent_issue_number: Optional[int] = Field(
        default=None, alias="parentIssueNumber", description="Parent issue number"
    )

    model_config = ConfigDict(populate_by_name=True)


class IssueUpdate(BaseModel):
    """
    Input for updating an existing issue.

    All fields are optional - only provided fields will be updated.
    A milestone of ``0`` removes the current milestone.
    """

    title: Optional[str] = Field(default=None, description="New title")
    body: Optional[str] = Field(default=None, description="New body")
    state: Optional[str] = Field(default=None, description="New state (open/closed)")
    labels: Optional[list[str]] = Field(default=None, description="Replace all labels")
    assignees: Optional[list[str]] = Field(
        default=None, description="Replace all assignees"
    )
    milestone: Optional[int] = Field(
        default=None, description="Milestone number (0 removes the milestone)"
    )

    @field_validator("state")
    @classmethod
    def _check_state(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value.lower() not in ("open", "closed"):
            raise ValueError("state must be 'open' or 'closed'")
        return value
