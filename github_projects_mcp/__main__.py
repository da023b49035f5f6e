"""Allow ``python -m github_projects_mcp``."""

from .server import main

main()
