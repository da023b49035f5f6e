# =============================================================================
# GitHub Projects MCP Server - Package
# =============================================================================
"""
GitHub Projects MCP server package.

Provides MCP tools for interacting with GitHub's GraphQL API, including:
- Projects V2 management (list, get, create, items, field values)
- Issue management (list, get, create, update) with inferred type labels
- Issue hierarchies (link, set parent, native sub-issues, hierarchy view)
"""

__version__ = "0.1.0"
