# =============================================================================
# GitHub Projects MCP Server - Project Models
# =============================================================================
"""
Pydantic models for GitHub Projects (V2).

Project items carry union-typed content and field values; those are kept as
plain dictionaries since the server only passes them through.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import unwrap_nodes


class ProjectFieldOption(BaseModel):
    """Option of a single-select project field."""

    id: str = Field(..., description="Option ID")
    name: str = Field(..., description="Option name")

    model_config = ConfigDict(extra="ignore")


class ProjectField(BaseModel):
    """
    Project field definition.

    Attributes:
        id: Field node ID.
        name: Field name.
        data_type: Field data type (TEXT, NUMBER, DATE, SINGLE_SELECT, ...).
        options: Options for single-select fields.
    """

    id: str = Field(..., description="Field node ID")
    name: str = Field(..., description="Field name")
    data_type: Optional[str] = Field(default=None, alias="dataType", description="Data type")
    options: Optional[list[ProjectFieldOption]] = Field(
        default=None, description="Single-select options"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Project(BaseModel):
    """
    GitHub Projects V2 project.

    Attributes:
        id: Project node ID.
        number: Project number (per owner).
        title: Project title.
        short_description: Short description.
        readme: Project README, when requested.
        closed: Whether the project is closed.
        public: Whether the project is public.
        url: Project URL.
        fields: Field definitions, when requested.
    """

    id: str = Field(..., description="Project node ID")
    number: int = Field(..., description="Project number")
    title: str = Field(..., description="Project title")
    short_description: Optional[str] = Field(
        default=None, alias="shortDescription", description="Short description"
    )
    readme: Optional[str] = Field(default=None, description="Project README")
    closed: Optional[bool] = Field(default=None, description="Is closed")
    public: Optional[bool] = Field(default=None, description="Is public")
    url: Optional[str] = Field(default=None, description="Project URL")
    fields: Optional[list[ProjectField]] = Field(default=None, description="Fields")
    created_at: Optional[datetime] = Field(
        default=None, alias="createdAt", description="Created at"
    )
    updated_at: Optional[datetime] = Field(
        default=None, alias="updatedAt", description="Updated at"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("fields", mode="before")
    @classmethod
    def _flatten_fields(cls, value: Any) -> Any:
        if value is None:
            return None
        # Field unions return an empty object for unmatched fragments
        return [node for node in unwrap_nodes(value) if node]

    def to_output(self) -> dict[str, Any]:
        """Serialize for tool output, using GitHub's field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProjectItem(BaseModel):
    """
    Item in a project (issue, pull request or draft issue).

    Attributes:
        id: Item node ID.
        content: The issue, pull request or draft issue behind the item.
        field_values: Values set on the item's fields.
    """

    id: str = Field(..., description="Item node ID")
    content: Optional[dict[str, Any]] = Field(default=None, description="Item content")
    field_values: list[dict[str, Any]] = Field(
        default_factory=list, alias="fieldValues", description="Field values"
    )
    created_at: Optional[datetime] = Field(
        default=None, alias="createdAt", description="Created at"
    )
    updated_at: Optional[datetime] = Field(
        default=None, alias="updatedAt", description="Updated at"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("field_values", mode="before")
    @classmethod
    def _flatten_values(cls, value: Any) -> Any:
        return [node for node in unwrap_nodes(value) if node]

    def to_output(self) -> dict[str, Any]:
        """Serialize for tool output, using GitHub's field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
