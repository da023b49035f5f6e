# =============================================================================
# GitHub Projects MCP Server - Hierarchy Manager
# =============================================================================
"""
Parent/child issue hierarchies emulated on top of comments and issue bodies.

The manager links issues (write path), rebuilds the hierarchy view of an
issue from its body and comments (read path), and tries GitHub's native
sub-issue mutation before falling back to the manual encoding.
"""

import logging
from typing import Any, Optional

from .classifier import classify, sort_key
from .client import GitHubApiError, GitHubCapabilityError, GitHubNotFoundError
from .models import (
    HierarchyNode,
    Issue,
    IssueHierarchy,
    IssueRef,
    LinkResult,
    LinkType,
    RelationshipEdge,
)
from .relationships import RelationshipStore

logger = logging.getLogger(__name__)

DEFAULT_COMMENT_LIMIT = 100


class HierarchyManager:
    """
    Maintains parent/child relationships between issues of a repository.

    Attributes:
        client: GitHub client used for all reads and writes.
        store: Relationship encoding used for links.
        comment_limit: Number of recent comments scanned for child references.
    """

    def __init__(
        self,
        client,
        store: Optional[RelationshipStore] = None,
        comment_limit: int = DEFAULT_COMMENT_LIMIT,
    ) -> None:
        """
        Initialize the manager.

        Args:
            client: GitHub client (see ``GitHubGraphQLClient``).
            store: Relationship store; built from the client if omitted.
            comment_limit: Number of recent comments scanned on reads.
        """
        self.client = client
        self.store = store or RelationshipStore(client)
        self.comment_limit = comment_limit

    async def _resolve(
        self, owner: str, repo: str, number: int, role: str
    ) -> Issue:
        """Fetch an issue, naming its role in the NotFound message."""
        try:
            return await self.client.get_issue(owner, repo, number)
        except GitHubNotFoundError as e:
            raise GitHubNotFoundError(
                f"{role} issue #{number} not found in {owner}/{repo}"
            ) from e

    # -------------------------------------------------------------------------
    # Write Path
    # -------------------------------------------------------------------------

    async def link(
        self,
        owner: str,
        repo: str,
        parent_number: int,
        child_number: int,
        kind: LinkType = LinkType.TRACKS,
    ) -> LinkResult:
        """
        Link a child issue to a parent issue.

        Both issues are resolved before anything is written, so a missing
        issue leaves no partial link behind.

        Args:
            owner: Repository owner login.
            repo: Repository name.
            parent_number: Parent issue number.
            child_number: Child issue number.
            kind: Relationship kind.

        Returns:
            LinkResult describing the recorded relationship.

        Raises:
            GitHubNotFoundError: If either issue does not exist.
        """
        kind = LinkType(kind)
        parent = await self._resolve(owner, repo, parent_number, "Parent")
        child = await self._resolve(owner, repo, child_number, "Child")

        await self.store.record_edge(parent, child, kind)
        logger.info(
            f"Linked {owner}/{repo}#{parent_number} -> #{child_number} ({kind.value})"
        )

        return LinkResult(
            parent=IssueRef(number=parent_number, title=parent.title),
            child=IssueRef(number=child_number, title=child.title),
            relationship=kind,
        )

    async def set_parent(
        self, owner: str, repo: str, issue_number: int, parent_number: int
    ) -> LinkResult:
        """Make ``parent_number`` track ``issue_number``."""
        return await self.link(owner, repo, parent_number, issue_number, LinkType.TRACKS)

    async def add_sub_issue(
        self, owner: str, repo: str, parent_number: int, child_number: int
    ) -> dict[str, Any]:
        """
        Create a native sub-issue relationship, falling back to ``link``.

        The schema is probed for the ``addSubIssue`` mutation first; when the
        probe says it is missing, or the mutation fails as an unknown field,
        the relationship is recorded with ``link(..., tracks)`` instead and
        that result is returned.

        Raises:
            GitHubNotFoundError: If either issue does not exist.
            GitHubApiError: For failures other than a missing capability.
        """
        parent = await self._resolve(owner, repo, parent_number, "Parent")
        child = await self._resolve(owner, repo, child_number, "Child")

        if await self.client.supports_mutation("addSubIssue") is False:
            logger.info("addSubIssue not in schema, using task-list linking")
            return await self._fallback_link(owner, repo, parent_number, child_number)

        try:
            result = await self.client.add_sub_issue(parent.id, child.id)
        except GitHubCapabilityError as e:
            logger.warning(f"Native sub-issues unavailable ({e.message}), falling back")
            return await self._fallback_link(owner, repo, parent_number, child_number)

        return {
            "success": True,
            "relationship": "native_sub_issue",
            "parent": {"number": parent_number, "title": parent.title},
            "child": {"number": child_number, "title": child.title},
            "result": result,
        }

    async def _fallback_link(
        self, owner: str, repo: str, parent_number: int, child_number: int
    ) -> dict[str, Any]:
        result = await self.link(owner, repo, parent_number, child_number, LinkType.TRACKS)
        return result.model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Read Path
    # -------------------------------------------------------------------------

    async def _fetch_node(
        self, owner: str, repo: str, edge: RelationshipEdge, number: int
    ) -> Optional[HierarchyNode]:
        """
        Fetch the far end of an edge.

        Failures mark the edge unresolved and yield None.
        """
        try:
            issue = await self.client.get_issue(owner, repo, number)
        except GitHubApiError as e:
            edge.resolved = False
            logger.warning(
                f"Could not resolve #{number} in {owner}/{repo} ({e.message}), skipping"
            )
            return None
        return to_node(issue, include_body=False)

    async def discover(
        self, owner: str, repo: str, issue_number: int
    ) -> tuple[Issue, list[RelationshipEdge], list[HierarchyNode], list[HierarchyNode]]:
        """
        Discover and resolve the ``tracks`` edges of an issue.

        Returns:
            The issue, every discovered edge (with ``resolved`` set), and the
            resolved parent and child nodes in discovery order.

        Raises:
            GitHubNotFoundError: If the issue does not exist.
        """
        issue = await self.client.get_issue(
            owner, repo, issue_number, comment_limit=self.comment_limit
        )

        edges = self.store.discover_edges(issue)
        parents: list[HierarchyNode] = []
        children: list[HierarchyNode] = []

        for edge in edges:
            if edge.source == "body":
                node = await self._fetch_node(owner, repo, edge, edge.parent_number)
                if node is not None:
                    parents.append(node)
            else:
                node = await self._fetch_node(owner, repo, edge, edge.child_number)
                if node is not None:
                    children.append(node)

        return issue, edges, parents, children

    async def hierarchy(self, owner: str, repo: str, issue_number: int) -> IssueHierarchy:
        """
        Build the hierarchy view of an issue.

        Parents and children that cannot be fetched are left out rather than
        reported. Children are sorted by type, keeping discovery order for
        equal types.

        Raises:
            GitHubNotFoundError: If the issue does not exist.
        """
        issue, _, parents, children = await self.discover(owner, repo, issue_number)
        return IssueHierarchy(
            current=to_node(issue, include_body=True),
            parents=parents,
            children=sort_children(children),
        )


def to_node(issue: Issue, include_body: bool) -> HierarchyNode:
    """
    Convert an issue to a hierarchy node.

    Args:
        issue: Issue to convert.
        include_body: Whether the body takes part in type inference.
    """
    return HierarchyNode(
        number=issue.number,
        title=issue.title,
        state=issue.state,
        labels=issue.label_names,
        type=classify(issue.title, issue.body if include_body else None),
    )


def sort_children(children: list[HierarchyNode]) -> list[HierarchyNode]:
    """Stable sort of hierarchy children by type priority."""
    return sorted(children, key=lambda node: sort_key(node.type))
