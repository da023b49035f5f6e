# =============================================================================
# GitHub Projects MCP Server - Tool Service
# =============================================================================
"""
Implementation of every tool exposed by the server.

Each coroutine takes plain arguments, talks to GitHub through the injected
client and returns a JSON-serializable result. Owner logins are lower-cased
before any call. Errors propagate as ``GitHubApiError`` subclasses; the
transport layers decide how to present them.
"""

import logging
from typing import Any, Optional

from .classifier import apply_type_label
from .client import GitHubApiError, GitHubNotFoundError
from .hierarchy import DEFAULT_COMMENT_LIMIT, HierarchyManager
from .models import (
    DEFAULT_TYPE_LABELS,
    IssueCreate,
    IssueUpdate,
    LabelDefinition,
    LinkType,
)

logger = logging.getLogger(__name__)


class GitHubProjectsService:
    """
    GitHub Projects and Issues operations backing the MCP tools.

    Attributes:
        client: GitHub GraphQL client.
        hierarchy: Hierarchy manager sharing the same client.
    """

    def __init__(
        self,
        client,
        hierarchy: Optional[HierarchyManager] = None,
        comment_limit: int = DEFAULT_COMMENT_LIMIT,
    ) -> None:
        self.client = client
        self.hierarchy = hierarchy or HierarchyManager(client, comment_limit=comment_limit)

    # -------------------------------------------------------------------------
    # Resolution Helpers
    # -------------------------------------------------------------------------

    async def _label_ids(self, owner: str, repo: str, names: list[str]) -> list[str]:
        """Map label names to IDs; unknown names are dropped."""
        repo_labels = {label.name: label.id for label in await self.client.list_labels(owner, repo)}
        missing = [name for name in names if name not in repo_labels]
        if missing:
            logger.warning(f"Labels not found in {owner}/{repo}: {', '.join(missing)}")
        return [repo_labels[name] for name in names if repo_labels.get(name)]

    async def _assignee_ids(self, logins: list[str]) -> list[str]:
        """Map user logins to IDs; unknown logins are dropped."""
        ids = []
        for login in logins:
            user_id = await self.client.get_user_id(login)
            if user_id:
                ids.append(user_id)
            else:
                logger.warning(f"User {login} not found, not assigning")
        return ids

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    async def list_projects(
        self,
        owner: str,
        repo: Optional[str] = None,
        projects_type: str = "repository",
    ) -> list[dict[str, Any]]:
        """List projects of a repository, or of an organization."""
        owner = owner.lower()
        scope_repo = repo if projects_type == "repository" else None
        projects = await self.client.list_projects(owner, scope_repo)
        return [project.to_output() for project in projects]

    async def get_project(
        self, project_number: int, owner: str, repo: Optional[str] = None
    ) -> dict[str, Any]:
        """Get a project with its field definitions."""
        owner = owner.lower()
        project = await self.client.get_project(owner, project_number, repo)
        if project is None:
            raise GitHubNotFoundError("Project not found")
        return project.to_output()

    async def list_project_items(
        self, project_id: str, first: int = 20
    ) -> list[dict[str, Any]]:
        """List items in a project."""
        items = await self.client.list_project_items(project_id, first)
        return [item.to_output() for item in items]

    async def create_project_item(
        self, project_id: str, content_id: str
    ) -> dict[str, Any]:
        """Add an issue or pull request to a project."""
        return await self.client.add_project_item(project_id, content_id)

    async def update_project_item_field(
        self, project_id: str, item_id: str, field_id: str, value: str
    ) -> dict[str, Any]:
        """Set a text field on a project item."""
        return await self.client.update_project_item_field(
            project_id, item_id, field_id, value
        )

    async def create_project(
        self, owner: str, title: str, repo: Optional[str] = None
    ) -> dict[str, Any]:
        """Create a repository project, or an organization project if no repo."""
        owner = owner.lower()
        if repo:
            try:
                repository = await self.client.get_repository(owner, repo)
            except GitHubNotFoundError as e:
                raise GitHubNotFoundError("Repository not found") from e
            project = await self.client.create_project(
                repository.owner_id, title, repository_id=repository.id
            )
        else:
            try:
                owner_id = await self.client.get_organization_id(owner)
            except GitHubNotFoundError as e:
                raise GitHubNotFoundError("Organization not found") from e
            project = await self.client.create_project(owner_id, title)
        logger.info(f"Created project #{project.number} '{title}' for {owner}")
        return project.to_output()

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    async def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: Optional[str] = None,
        labels: Optional[list[str]] = None,
        assignees: Optional[list[str]] = None,
        milestone: Optional[int] = None,
        parent_issue_number: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Create an issue, labelled with its inferred type.

        When ``parent_issue_number`` is given the new issue is linked to it
        with a ``tracks`` relationship. A failed link does not fail the
        creation; the error is reported as ``linkError`` instead.
        """
        owner = owner.lower()
        request = IssueCreate(
            title=title,
            body=body,
            labels=labels,
            assignees=assignees,
            milestone=milestone,
            parent_issue_number=parent_issue_number,
        )
        all_labels = apply_type_label(request.labels or [], request.title, request.body)

        try:
            repository = await self.client.get_repository(owner, repo)
        except GitHubNotFoundError as e:
            raise GitHubNotFoundError("Repository not found") from e

        input: dict[str, Any] = {
            "repositoryId": repository.id,
            "title": request.title,
            "body": request.body,
        }
        if all_labels:
            input["labelIds"] = await self._label_ids(owner, repo, all_labels)
        if request.assignees:
            input["assigneeIds"] = await self._assignee_ids(request.assignees)
        if request.milestone:
            input["milestoneId"] = await self.client.get_milestone_id(
                owner, repo, request.milestone
            )

        issue = await self.client.create_issue(input)
        logger.info(f"Created {owner}/{repo}#{issue.number} with labels {all_labels}")
        result = issue.to_output()

        if request.parent_issue_number:
            try:
                await self.hierarchy.link(
                    owner, repo, request.parent_issue_number, issue.number, LinkType.TRACKS
                )
                result["parentIssue"] = {
                    "number": request.parent_issue_number,
                    "relationship": LinkType.TRACKS.value,
                }
            except GitHubApiError as e:
                logger.warning(
                    f"Created #{issue.number} but linking to "
                    f"#{request.parent_issue_number} failed: {e.message}"
                )
                result["linkError"] = e.message

        return result

    async def update_issue(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        title: Optional[str] = None,
        body: Optional[str] = None,
        state: Optional[str] = None,
        labels: Optional[list[str]] = None,
        assignees: Optional[list[str]] = None,
        milestone: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Update the provided fields of an issue.

        Labels and assignees replace the existing sets. A milestone of ``0``
        removes the issue's milestone.
        """
        owner = owner.lower()
        request = IssueUpdate(
            title=title,
            body=body,
            state=state,
            labels=labels,
            assignees=assignees,
            milestone=milestone,
        )

        try:
            issue = await self.client.get_issue(owner, repo, issue_number)
        except GitHubNotFoundError as e:
            raise GitHubNotFoundError(
                f"Issue #{issue_number} not found in {owner}/{repo}"
            ) from e

        input: dict[str, Any] = {"id": issue.id}
        if request.title is not None:
            input["title"] = request.title
        if request.body is not None:
            input["body"] = request.body
        if request.state is not None:
            input["state"] = request.state.upper()
        if request.labels is not None:
            input["labelIds"] = await self._label_ids(owner, repo, request.labels)
        if request.assignees is not None:
            input["assigneeIds"] = await self._assignee_ids(request.assignees)
        if request.milestone is not None:
            if request.milestone == 0:
                input["milestoneId"] = None
            else:
                input["milestoneId"] = await self.client.get_milestone_id(
                    owner, repo, request.milestone
                )

        logger.debug(f"Updating {owner}/{repo}#{issue_number}: {sorted(input)}")
        updated = await self.client.update_issue(input)
        return updated.to_output()

    async def list_issues(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        labels: Optional[list[str]] = None,
        assignee: Optional[str] = None,
        first: int = 20,
    ) -> dict[str, Any]:
        """List issues, newest first."""
        owner = owner.lower()
        states = None if state == "all" else [state.upper()]
        issues = await self.client.list_issues(
            owner, repo, states=states, labels=labels, assignee=assignee, first=first
        )
        return {
            "nodes": [issue.to_output() for issue in issues.nodes],
            "totalCount": issues.total_count,
        }

    async def get_issue(self, owner: str, repo: str, issue_number: int) -> dict[str, Any]:
        """Get an issue with its labels, assignees, projects and first five comments."""
        owner = owner.lower()
        try:
            issue = await self.client.get_issue(
                owner, repo, issue_number, comment_limit=5, oldest_comments=True
            )
        except GitHubNotFoundError as e:
            raise GitHubNotFoundError(
                f"Issue #{issue_number} not found in {owner}/{repo}"
            ) from e
        return issue.to_output()

    async def ensure_labels(
        self,
        owner: str,
        repo: str,
        labels: Optional[list[dict[str, Any]]] = None,
    ) -> list[dict[str, Any]]:
        """
        Create any missing labels.

        Existing labels are matched case-insensitively by name. Defaults to the
        six issue type labels. Failures are recorded per label.
        """
        owner = owner.lower()
        definitions = (
            [LabelDefinition.model_validate(label) for label in labels]
            if labels
            else DEFAULT_TYPE_LABELS
        )

        try:
            repository = await self.client.get_repository(owner, repo)
        except GitHubNotFoundError as e:
            raise GitHubNotFoundError("Repository not found") from e

        existing = {label.name.lower() for label in await self.client.list_labels(owner, repo)}
        results: list[dict[str, Any]] = []

        for definition in definitions:
            if definition.name.lower() in existing:
                results.append({"action": "exists", "label": definition.name})
                continue
            try:
                label = await self.client.create_label(
                    repository.id,
                    definition.name,
                    definition.color,
                    definition.description,
                )
            except GitHubApiError as e:
                logger.warning(f"Could not create label {definition.name}: {e.message}")
                results.append(
                    {"action": "error", "label": definition.name, "error": e.message}
                )
                continue
            results.append(
                {"action": "created", "label": label.model_dump(exclude_none=True)}
            )

        return results

    # -------------------------------------------------------------------------
    # Hierarchy
    # -------------------------------------------------------------------------

    async def link_issues(
        self,
        owner: str,
        repo: str,
        parent_issue_number: int,
        child_issue_number: int,
        link_type: str = "tracks",
    ) -> dict[str, Any]:
        """Record a tracks, blocks or related relationship."""
        result = await self.hierarchy.link(
            owner.lower(), repo, parent_issue_number, child_issue_number, LinkType(link_type)
        )
        return result.model_dump(mode="json")

    async def set_parent(
        self, owner: str, repo: str, issue_number: int, parent_issue_number: int
    ) -> dict[str, Any]:
        """Set the parent of an issue."""
        result = await self.hierarchy.set_parent(
            owner.lower(), repo, issue_number, parent_issue_number
        )
        return result.model_dump(mode="json")

    async def get_issue_hierarchy(
        self, owner: str, repo: str, issue_number: int
    ) -> dict[str, Any]:
        """Get the parents and children of an issue."""
        view = await self.hierarchy.hierarchy(owner.lower(), repo, issue_number)
        return view.model_dump(mode="json")

    async def add_sub_issue(
        self,
        owner: str,
        repo: str,
        parent_issue_number: int,
        child_issue_number: int,
    ) -> dict[str, Any]:
        """Create a native sub-issue, falling back to a tracks link."""
        return await self.hierarchy.add_sub_issue(
            owner.lower(), repo, parent_issue_number, child_issue_number
        )
