# =============================================================================
# GitHub Projects MCP Server - Common Models
# =============================================================================
"""
Common Pydantic models shared across GitHub GraphQL resources.

These models represent fundamental GitHub entities like users, labels and
milestones that are referenced by issues and projects. GraphQL connections
(``{"nodes": [...]}``) are flattened into plain lists on validation.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def unwrap_nodes(value: Any) -> Any:
    """
    Flatten a GraphQL connection into its list of nodes.

    Args:
        value: Raw field value, either a connection dict or a list.

    Returns:
        The ``nodes`` list for connections, the value unchanged otherwise.
    """
    if isinstance(value, dict) and "nodes" in value:
        return value.get("nodes") or []
    if value is None:
        return []
    return value


class User(BaseModel):
    """
    GitHub user model.

    Attributes:
        login: The user's GitHub username.
        name: Display name, when requested.
    """

    login: str = Field(..., description="GitHub username")
    name: Optional[str] = Field(default=None, description="Display name")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Label(BaseModel):
    """
    GitHub label model.

    Attributes:
        id: Global node ID (only present when requested).
        name: Display name of the label.
        color: Hex color code (without #).
        description: Optional description of the label's purpose.
    """

    id: Optional[str] = Field(default=None, description="Label node ID")
    name: str = Field(..., description="Label name")
    color: Optional[str] = Field(default=None, description="Hex color code")
    description: Optional[str] = Field(default=None, description="Label description")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Milestone(BaseModel):
    """
    GitHub milestone model.

    Attributes:
        number: Milestone number within the repository.
        title: Display title of the milestone.
        description: Optional description of the milestone.
        state: Current state (OPEN, CLOSED).
        due_on: Optional due date for the milestone.
    """

    number: int = Field(..., description="Milestone number")
    title: str = Field(..., description="Milestone title")
    description: Optional[str] = Field(default=None, description="Description")
    state: Optional[str] = Field(default=None, description="State (OPEN/CLOSED)")
    due_on: Optional[datetime] = Field(
        default=None, alias="dueOn", description="Due date"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RepositoryRef(BaseModel):
    """
    Minimal repository reference used to build mutations.

    Attributes:
        id: Repository node ID.
        owner_id: Node ID of the owning user or organization.
    """

    id: str = Field(..., description="Repository node ID")
    owner_id: Optional[str] = Field(
        default=None, alias="ownerId", description="Owner node ID"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LabelDefinition(BaseModel):
    """
    Label to ensure exists in a repository.

    Attributes:
        name: Label name.
        color: Hex color code (without #).
        description: Optional label description.
    """

    name: str = Field(..., description="Label name", min_length=1)
    color: str = Field(..., description="Label color (hex without #)")
    description: Optional[str] = Field(default=None, description="Label description")


DEFAULT_TYPE_LABELS: list[LabelDefinition] = [
    LabelDefinition(name="epic", color="6B46C1", description="Large initiative or milestone"),
    LabelDefinition(name="feature", color="0E8A16", description="New feature or enhancement"),
    LabelDefinition(name="bug", color="D73A4A", description="Something isn't working"),
    LabelDefinition(name="task", color="0075CA", description="General task or chore"),
    LabelDefinition(name="story", color="1D76DB", description="User story"),
    LabelDefinition(name="documentation", color="0052CC", description="Documentation updates"),
]
