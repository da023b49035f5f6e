# =============================================================================
# GitHub Projects MCP Server - Models Package
# =============================================================================
"""
Pydantic models for GitHub GraphQL data structures.

This package exports all models used by the GitHub Projects MCP server for
request validation and response serialization.
"""

from .common import (
    DEFAULT_TYPE_LABELS,
    Label,
    LabelDefinition,
    Milestone,
    RepositoryRef,
    User,
)
from .hierarchy import (
    HierarchyNode,
    IssueHierarchy,
    IssueRef,
    IssueType,
    LinkResult,
    LinkType,
    RelationshipEdge,
)
from .issues import Issue, IssueComment, IssueCreate, IssueList, IssueUpdate
from .projects import Project, ProjectField, ProjectFieldOption, ProjectItem

__all__ = [
    # Common
    "User",
    "Label",
    "LabelDefinition",
    "Milestone",
    "RepositoryRef",
    "DEFAULT_TYPE_LABELS",
    # Issues
    "Issue",
    "IssueComment",
    "IssueCreate",
    "IssueUpdate",
    "IssueList",
    # Projects
    "Project",
    "ProjectField",
    "ProjectFieldOption",
    "ProjectItem",
    # Hierarchy
    "IssueType",
    "LinkType",
    "IssueRef",
    "HierarchyNode",
    "IssueHierarchy",
    "LinkResult",
    "RelationshipEdge",
]
