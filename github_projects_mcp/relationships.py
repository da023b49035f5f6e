# =============================================================================
# GitHub Projects MCP Server - Relationship Store
# =============================================================================
"""
Recording and discovery of issue relationships.

GitHub has no stable relational field for parent/child issues, so each edge is
written twice:

- a pair of comments, ``Tracks #C`` on the parent and ``Tracked by #P`` on
  the child (or the blocks/related variants);
- for ``tracks`` edges, a ``**Parent:** #P - title`` marker block at the end
  of the child's body and a ``- [ ] #C title`` line in the parent's task list.

The two encodings are written together but never reconciled afterwards.
Discovery reads ``tracks`` edges back from the parent marker in a body and
from ``Tracks #N`` tokens in comments.
"""

import logging
import re
from typing import Optional

from .models import Issue, IssueComment, LinkType, RelationshipEdge

logger = logging.getLogger(__name__)

PARENT_COMMENTS: dict[LinkType, str] = {
    LinkType.TRACKS: "Tracks #{number}",
    LinkType.BLOCKS: "Blocks #{number}",
    LinkType.RELATED: "Related to #{number}",
}

CHILD_COMMENTS: dict[LinkType, str] = {
    LinkType.TRACKS: "Tracked by #{number}",
    LinkType.BLOCKS: "Blocked by #{number}",
    LinkType.RELATED: "Related to #{number}",
}

PARENT_MARKER = "**Parent:**"
PARENT_BLOCK_PATTERN = re.compile(r"\n\n---\n\*\*Parent:\*\*.+")
PARENT_REFERENCE_PATTERN = re.compile(r"\*\*Parent:\*\* #(\d+)")
TRACKS_PATTERN = re.compile(r"Tracks #(\d+)")
TASK_LIST_PATTERN = re.compile(r"^(?:- \[[ x]\] #\d+.*(?:\n|$))+", re.MULTILINE)


# -----------------------------------------------------------------------------
# Text Encoding Helpers
# -----------------------------------------------------------------------------
def parent_block(parent_number: int, parent_title: str) -> str:
    """Marker block appended to a child's body."""
    return f"\n\n---\n{PARENT_MARKER} #{parent_number} - {parent_title}"


def with_parent_marker(body: Optional[str], parent_number: int, parent_title: str) -> str:
    """
    Return a child body carrying the parent marker.

    An existing marker block is replaced in place, otherwise a new block is
    appended. A body that mentions the marker outside of a block is returned
    unchanged.
    """
    body = body or ""
    block = parent_block(parent_number, parent_title)
    if PARENT_MARKER in body:
        return PARENT_BLOCK_PATTERN.sub(lambda _: block, body, count=1)
    return body + block


def references_issue(body: str, number: int) -> bool:
    """Check whether text mentions ``#number`` as a whole reference."""
    return re.search(rf"(?<!\w)#{number}(?!\d)", body) is not None


def with_task_item(
    body: Optional[str], child_number: int, child_title: str
) -> Optional[str]:
    """
    Return a parent body whose task list includes the child.

    Args:
        body: Current parent body.
        child_number: Child issue number.
        child_title: Child issue title.

    Returns:
        The new body, or None when the existing task list already
        references the child and nothing needs to change.
    """
    body = body or ""
    item = f"- [ ] #{child_number} {child_title}"
    match = TASK_LIST_PATTERN.search(body)

    if match is None:
        return f"### Tasks\n{item}\n\n{body}"

    existing = match.group(0)
    if references_issue(existing, child_number):
        return None

    replacement = existing.rstrip("\n") + "\n" + item
    if existing.endswith("\n"):
        replacement += "\n"
    return body[: match.start()] + replacement + body[match.end():]


def find_parent_number(body: Optional[str]) -> Optional[int]:
    """Return the first parent number referenced by a body marker."""
    match = PARENT_REFERENCE_PATTERN.search(body or "")
    return int(match.group(1)) if match else None


def find_tracked_numbers(comments: list[IssueComment]) -> list[int]:
    """
    Return the distinct issue numbers referenced by ``Tracks #N`` comments.

    Numbers are de-duplicated and returned in order of first appearance.
    """
    numbers: dict[int, None] = {}
    for comment in comments:
        for match in TRACKS_PATTERN.finditer(comment.body or ""):
            numbers.setdefault(int(match.group(1)), None)
    return list(numbers)


# -----------------------------------------------------------------------------
# Relationship Store
# -----------------------------------------------------------------------------
class RelationshipStore:
    """
    Reads and writes issue relationships through a GitHub client.

    The client needs ``add_comment(subject_id, body)`` and
    ``update_issue_body(issue_id, body)``.
    """

    def __init__(self, client) -> None:
        """
        Initialize the store.

        Args:
            client: GitHub client used for writes.
        """
        self.client = client

    async def record_edge(self, parent: Issue, child: Issue, kind: LinkType) -> None:
        """
        Record a relationship between two resolved issues.

        Writes happen in a fixed order and are not rolled back: a failure
        part-way leaves the earlier writes in place.

        Args:
            parent: Parent issue (id, title and body required).
            child: Child issue (id, title and body required).
            kind: Relationship kind.
        """
        await self.client.add_comment(
            parent.id, PARENT_COMMENTS[kind].format(number=child.number)
        )
        await self.client.add_comment(
            child.id, CHILD_COMMENTS[kind].format(number=parent.number)
        )

        if kind != LinkType.TRACKS:
            return

        child_body = with_parent_marker(child.body, parent.number, parent.title)
        await self.client.update_issue_body(child.id, child_body)

        parent_body = with_task_item(parent.body, child.number, child.title)
        if parent_body is None:
            logger.debug(
                f"Task list of #{parent.number} already references #{child.number}"
            )
            return
        await self.client.update_issue_body(parent.id, parent_body)

    def discover_edges(self, issue: Issue) -> list[RelationshipEdge]:
        """
        Find the ``tracks`` edges touching an issue.

        The parent edge (if any) comes first, followed by child edges in
        discovery order. Edges start out resolved; callers mark the ones
        whose far end cannot be fetched.

        Args:
            issue: Issue with body and comments loaded.
        """
        edges: list[RelationshipEdge] = []

        parent_number = find_parent_number(issue.body)
        if parent_number is not None:
            edges.append(
                RelationshipEdge(
                    parent_number=parent_number,
                    child_number=issue.number,
                    source="body",
                )
            )

        for child_number in find_tracked_numbers(issue.comments):
            edges.append(
                RelationshipEdge(
                    parent_number=issue.number,
                    child_number=child_number,
                    source="comment",
                )
            )

        return edges
