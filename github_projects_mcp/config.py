# =============================================================================
# GitHub Projects MCP Server - Settings
# =============================================================================
"""
Server settings loaded from environment variables (and an optional .env file).
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .client import DEFAULT_GRAPHQL_URL


class Settings(BaseSettings):
    """
    Server settings loaded from environment variables.

    Attributes:
        github_token: GitHub personal access token (required).
        github_graphql_url: GitHub GraphQL endpoint.
        github_request_timeout: Request timeout in seconds.
        comment_fetch_limit: Recent comments scanned for child references.
        transport: MCP transport ("stdio" or "http").
        host: HTTP server host address.
        port: HTTP server port number.
        log_level: Logging level.
    """

    github_token: str = Field(
        default="",
        description="GitHub personal access token",
    )
    github_graphql_url: str = Field(
        default=DEFAULT_GRAPHQL_URL,
        description="GitHub GraphQL endpoint",
    )
    github_request_timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )
    comment_fetch_limit: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Recent comments scanned for child references",
        alias="github_comment_fetch_limit",
    )
    transport: Literal["stdio", "http"] = Field(
        default="stdio",
        description="MCP transport",
        alias="github_mcp_transport",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Server host address",
        alias="github_mcp_host",
    )
    port: int = Field(
        default=8084,
        description="Server port number",
        alias="github_mcp_port",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("github_token")
    @classmethod
    def _strip_token(cls, value: str) -> str:
        return value.strip()
