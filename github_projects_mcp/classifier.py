# =============================================================================
# GitHub Projects MCP Server - Issue Type Classifier
# =============================================================================
"""
Keyword-based issue type inference.

The first category whose keywords appear in the lower-cased title and body
wins, so the order of TYPE_KEYWORDS is the tie-break between categories.
"""

from typing import Optional

from .models import IssueType

TYPE_KEYWORDS: tuple[tuple[IssueType, tuple[str, ...]], ...] = (
    (IssueType.EPIC, ("epic", "initiative", "milestone", "parent")),
    (
        IssueType.FEATURE,
        ("feature", "enhancement", "new functionality", "add support", "implement"),
    ),
    (IssueType.BUG, ("bug", "fix", "error", "issue", "broken", "crash")),
    (IssueType.TASK, ("task", "chore", "refactor", "update", "clean")),
    (IssueType.STORY, ("story", "user story", "as a user", "i want")),
    (IssueType.DOCUMENTATION, ("documentation", "docs", "readme", "guide")),
)

# Sort priority of children in a hierarchy view; unclassified sorts last.
CHILD_SORT_ORDER: dict[Optional[IssueType], int] = {
    IssueType.EPIC: 0,
    IssueType.FEATURE: 1,
    IssueType.STORY: 2,
    IssueType.TASK: 3,
    IssueType.BUG: 4,
    IssueType.DOCUMENTATION: 5,
}
UNCLASSIFIED_SORT_KEY = 6


def classify(title: str, body: Optional[str] = None) -> Optional[IssueType]:
    """
    Infer an issue's type from its text.

    Args:
        title: Issue title.
        body: Issue body; None is treated as empty.

    Returns:
        The first matching IssueType, or None if no keyword matches.
    """
    text = f"{title} {body or ''}".lower()
    for issue_type, keywords in TYPE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return issue_type
    return None


def apply_type_label(
    labels: list[str], title: str, body: Optional[str] = None
) -> list[str]:
    """
    Add the inferred type label to a label list.

    Args:
        labels: Caller-supplied label names (not modified).
        title: Issue title.
        body: Issue body.

    Returns:
        A new list with the type label appended unless already present.
    """
    result = list(labels)
    issue_type = classify(title, body)
    if issue_type is not None and issue_type.value not in result:
        result.append(issue_type.value)
    return result


def sort_key(issue_type: Optional[IssueType]) -> int:
    """Priority of an issue type when ordering hierarchy children."""
    return CHILD_SORT_ORDER.get(issue_type, UNCLASSIFIED_SORT_KEY)
