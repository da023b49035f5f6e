# =============================================================================
# GitHub Projects MCP Server - Hierarchy Models
# =============================================================================
"""
Models for issue types and the parent/child relationships between issues.

None of these are stored by GitHub: issue types are derived from text and
relationships are encoded in comments and issue bodies.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class IssueType(str, Enum):
    """
    Issue type inferred from an issue's title and body.

    The value doubles as the label name applied on issue creation.
    """

    EPIC = "epic"
    FEATURE = "feature"
    BUG = "bug"
    TASK = "task"
    STORY = "story"
    DOCUMENTATION = "documentation"


class LinkType(str, Enum):
    """
    Relationship kinds that can be recorded between two issues.

    Attributes:
        TRACKS: Parent tracks child (the only kind read back into hierarchies).
        BLOCKS: Parent blocks child.
        RELATED: Issues are related.
    """

    TRACKS = "tracks"
    BLOCKS = "blocks"
    RELATED = "related"


class IssueRef(BaseModel):
    """Issue number and title pair."""

    number: int = Field(..., description="Issue number")
    title: Optional[str] = Field(default=None, description="Issue title")


class HierarchyNode(BaseModel):
    """
    One participant of a hierarchy view.

    Attributes:
        number: Issue number.
        title: Issue title.
        state: Issue state (OPEN, CLOSED).
        labels: Label names.
        type: Inferred issue type, None when unclassified.
    """

    number: int = Field(..., description="Issue number")
    title: str = Field(..., description="Issue title")
    state: Optional[str] = Field(default=None, description="Issue state")
    labels: list[str] = Field(default_factory=list, description="Label names")
    type: Optional[IssueType] = Field(default=None, description="Inferred issue type")


class IssueHierarchy(BaseModel):
    """
    Parents and children of an issue, rebuilt on every request.

    Attributes:
        current: The issue the hierarchy was requested for.
        parents: Resolved parent issues (at most one).
        children: Resolved child issues, sorted by type.
    """

    current: HierarchyNode
    parents: list[HierarchyNode] = Field(default_factory=list)
    children: list[HierarchyNode] = Field(default_factory=list)


class LinkResult(BaseModel):
    """
    Result of linking two issues.

    Attributes:
        success: Always True; failures raise instead.
        parent: The parent issue.
        child: The child issue.
        relationship: The recorded relationship kind.
    """

    success: bool = True
    parent: IssueRef
    child: IssueRef
    relationship: LinkType


class RelationshipEdge(BaseModel):
    """
    A relationship discovered in an issue's body or comments.

    Attributes:
        parent_number: Number of the parent issue.
        child_number: Number of the child issue.
        kind: Relationship kind.
        source: Where the edge was found ("body" or "comment").
        resolved: False when the far end could not be fetched.
    """

    parent_number: int
    child_number: int
    kind: LinkType = LinkType.TRACKS
    source: str
    resolved: bool = True
