# =============================================================================
# Tests for Issue Type Classifier
# =============================================================================
"""
Unit tests for keyword-based issue type inference and type labels.
"""

import pytest

from github_projects_mcp.classifier import (
    UNCLASSIFIED_SORT_KEY,
    apply_type_label,
    classify,
    sort_key,
)
from github_projects_mcp.models import IssueType


class TestClassify:
    """Tests for classify()."""

    def test_epic_wins_over_feature(self) -> None:
        """Test that epic keywords take precedence over feature keywords."""
        assert classify("Epic: Implement user authentication system") == IssueType.EPIC

    def test_bug_from_title_and_body(self) -> None:
        """Test that a crash report is classified as a bug."""
        assert (
            classify("Bug: Application crashes on startup", "crash when launching")
            == IssueType.BUG
        )

    def test_task(self) -> None:
        """Test that refactoring work is classified as a task."""
        assert classify("Refactor old code") == IssueType.TASK

    def test_no_match_returns_none(self) -> None:
        """Test that text without keywords is unclassified."""
        assert classify("Random title with no keywords") is None

    def test_body_is_considered(self) -> None:
        """Test that keywords in the body take part in classification."""
        assert classify("Login page", "As a user I want to sign in") == IssueType.STORY

    def test_missing_body_is_empty(self) -> None:
        """Test that a None body behaves like an empty body."""
        assert classify("Write the readme", None) == classify("Write the readme", "")
        assert classify("Write the readme") == IssueType.DOCUMENTATION

    def test_case_insensitive(self) -> None:
        """Test that matching ignores case."""
        assert classify("ADD SUPPORT for webhooks") == IssueType.FEATURE

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Milestone planning", IssueType.EPIC),
            ("Enhancement to search", IssueType.FEATURE),
            ("Broken link in footer", IssueType.BUG),
            ("Chore: bump versions", IssueType.TASK),
            ("User story for checkout", IssueType.STORY),
            ("Docs for onboarding", IssueType.DOCUMENTATION),
        ],
    )
    def test_each_category(self, title: str, expected: IssueType) -> None:
        """Test one representative keyword per category."""
        assert classify(title) == expected

    def test_deterministic(self) -> None:
        """Test that the same input always gives the same type."""
        results = {classify("Fix the parent bug", "details") for _ in range(5)}
        assert results == {IssueType.EPIC}


class TestApplyTypeLabel:
    """Tests for apply_type_label()."""

    def test_appends_inferred_label(self) -> None:
        """Test that the inferred type is appended after caller labels."""
        assert apply_type_label(["urgent"], "Crash on save") == ["urgent", "bug"]

    def test_does_not_duplicate(self) -> None:
        """Test that an already present type label is not added again."""
        assert apply_type_label(["bug"], "Crash on save") == ["bug"]

    def test_containment_is_case_sensitive(self) -> None:
        """Test that a differently cased label does not count as present."""
        assert apply_type_label(["Bug"], "Crash on save") == ["Bug", "bug"]

    def test_unclassified_leaves_labels(self) -> None:
        """Test that nothing is added when no type is inferred."""
        assert apply_type_label(["urgent"], "Random title with no keywords") == ["urgent"]

    def test_input_not_modified(self) -> None:
        """Test that the caller's list is left untouched."""
        labels = ["urgent"]
        apply_type_label(labels, "Crash on save")
        assert labels == ["urgent"]


class TestSortKey:
    """Tests for sort_key()."""

    def test_priority_order(self) -> None:
        """Test the fixed child ordering by type."""
        ordered = [
            IssueType.EPIC,
            IssueType.FEATURE,
            IssueType.STORY,
            IssueType.TASK,
            IssueType.BUG,
            IssueType.DOCUMENTATION,
        ]
        assert [sort_key(t) for t in ordered] == [0, 1, 2, 3, 4, 5]

    def test_unclassified_last(self) -> None:
        """Test that unclassified issues sort after every type."""
        assert sort_key(None) == UNCLASSIFIED_SORT_KEY == 6
