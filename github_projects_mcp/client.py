# =============================================================================
# GitHub Projects MCP Server - GraphQL Client
# =============================================================================
"""
Async HTTP client for the GitHub GraphQL API.

This module provides a high-level client for the issue, label and Projects V2
operations the server exposes, including error classification and detection
of optional schema capabilities such as native sub-issues.
"""

import logging
from typing import Any, Optional

import httpx

from .models import (
    Issue,
    IssueList,
    Label,
    Project,
    ProjectItem,
    RepositoryRef,
)

logger = logging.getLogger(__name__)

DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"


# =============================================================================
# Custom Exceptions
# =============================================================================


class GitHubApiError(Exception):
    """
    Base exception for GitHub API errors.

    Attributes:
        message: Error description.
        status_code: HTTP status code (0 for transport and GraphQL errors).
        response_data: Raw response data from GitHub.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        response_data: Optional[dict] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error description.
            status_code: HTTP status code.
            response_data: Raw response data.
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}


class GitHubAuthenticationError(GitHubApiError):
    """Raised when authentication fails (401)."""

    pass


class GitHubForbiddenError(GitHubApiError):
    """Raised when access is forbidden (403)."""

    pass


class GitHubNotFoundError(GitHubApiError):
    """Raised when a repository, issue, organization or project is absent."""

    pass


class GitHubCapabilityError(GitHubApiError):
    """Raised when the API schema lacks an optional capability."""

    pass


def is_capability_error(message: str, field_name: str) -> bool:
    """
    Check whether an error message reports an unknown schema field.

    Args:
        message: Error message returned by the API.
        field_name: The mutation or field that was used.

    Returns:
        True if the message says the field does not exist.
    """
    if f"'{field_name}' doesn't exist" in message:
        return True
    return "unknown field" in message.lower()


def build_auth_header(token: str) -> str:
    """
    Build the Authorization header value for a token.

    Fine-grained tokens (``github_pat_``) use Bearer, classic tokens use
    the ``token`` scheme.
    """
    token = token.strip()
    if token.startswith("github_pat_"):
        return f"Bearer {token}"
    return f"token {token}"


# =============================================================================
# GraphQL Documents
# =============================================================================

REPOSITORY_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    id
    owner { id }
  }
}
"""

ORGANIZATION_QUERY = """
query($owner: String!) {
  organization(login: $owner) {
    id
  }
}
"""

ISSUE_QUERY = """
query(
  $owner: String!
  $repo: String!
  $number: Int!
  $withComments: Boolean!
  $commentFirst: Int
  $commentLast: Int
) {
  repository(owner: $owner, name: $repo) {
    issue(number: $number) {
      id
      number
      title
      body
      state
      url
      createdAt
      updatedAt
      closedAt
      author { login }
      labels(first: 10) { nodes { name color description } }
      assignees(first: 10) { nodes { login name } }
      milestone { title number description dueOn state }
      projectItems(first: 10) { nodes { project { title number } } }
      comments(first: $commentFirst, last: $commentLast) @include(if: $withComments) {
        nodes {
          id
          body
          createdAt
          author { login }
        }
      }
    }
  }
}
"""

ISSUE_FIELDS = """
  id
  number
  title
  body
  state
  url
  createdAt
  updatedAt
  author { login }
  labels(first: 10) { nodes { name color } }
  assignees(first: 10) { nodes { login } }
  milestone { title number }
"""

LIST_ISSUES_QUERY = (
    """
query($owner: String!, $repo: String!, $first: Int!, $states: [IssueState!], $labels: [String!], $filterBy: IssueFilters) {
  repository(owner: $owner, name: $repo) {
    issues(first: $first, states: $states, labels: $labels, filterBy: $filterBy, orderBy: {field: CREATED_AT, direction: DESC}) {
      totalCount
      nodes {"""
    + ISSUE_FIELDS
    + """
      }
    }
  }
}
"""
)

CREATE_ISSUE_MUTATION = (
    """
mutation($input: CreateIssueInput!) {
  createIssue(input: $input) {
    issue {"""
    + ISSUE_FIELDS
    + """
    }
  }
}
"""
)

UPDATE_ISSUE_MUTATION = (
    """
mutation($input: UpdateIssueInput!) {
  updateIssue(input: $input) {
    issue {"""
    + ISSUE_FIELDS
    + """
    }
  }
}
"""
)

UPDATE_ISSUE_BODY_MUTATION = """
mutation($issueId: ID!, $body: String!) {
  updateIssue(input: {id: $issueId, body: $body}) {
    issue { id }
  }
}
"""

ADD_COMMENT_MUTATION = """
mutation($subjectId: ID!, $body: String!) {
  addComment(input: {subjectId: $subjectId, body: $body}) {
    commentEdge { node { id } }
  }
}
"""

ADD_SUB_ISSUE_MUTATION = """
mutation($parentId: ID!, $childId: ID!) {
  addSubIssue(input: {issueId: $parentId, subIssueId: $childId}) {
    issue { id number title }
    subIssue { id number title }
  }
}
"""

MUTATION_FIELDS_QUERY = """
query {
  __type(name: "Mutation") {
    fields { name }
  }
}
"""

LABELS_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    labels(first: 100) { nodes { id name color description } }
  }
}
"""

CREATE_LABEL_MUTATION = """
mutation($repositoryId: ID!, $name: String!, $color: String!, $description: String) {
  createLabel(input: {repositoryId: $repositoryId, name: $name, color: $color, description: $description}) {
    label { id name color description }
  }
}
"""

USER_QUERY = """
query($login: String!) {
  user(login: $login) { id }
}
"""

MILESTONE_QUERY = """
query($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    milestone(number: $number) { id }
  }
}
"""

PROJECT_SUMMARY_FIELDS = """
  id
  number
  title
  shortDescription
  closed
  public
  url
  createdAt
  updatedAt
"""

PROJECT_DETAIL_FIELDS = (
    PROJECT_SUMMARY_FIELDS
    + """
  readme
  fields(first: 20) {
    nodes {
      ... on ProjectV2Field { id name dataType }
      ... on ProjectV2SingleSelectField { id name dataType options { id name } }
      ... on ProjectV2IterationField { id name dataType }
    }
  }
"""
)

REPOSITORY_PROJECTS_QUERY = (
    """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    projectsV2(first: 20) { nodes {"""
    + PROJECT_SUMMARY_FIELDS
    + """} }
  }
}
"""
)

ORGANIZATION_PROJECTS_QUERY = (
    """
query($owner: String!) {
  organization(login: $owner) {
    projectsV2(first: 20) { nodes {"""
    + PROJECT_SUMMARY_FIELDS
    + """} }
  }
}
"""
)

REPOSITORY_PROJECT_QUERY = (
    """
query($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    projectV2(number: $number) {"""
    + PROJECT_DETAIL_FIELDS
    + """}
  }
}
"""
)

ORGANIZATION_PROJECT_QUERY = (
    """
query($owner: String!, $number: Int!) {
  organization(login: $owner) {
    projectV2(number: $number) {"""
    + PROJECT_DETAIL_FIELDS
    + """}
  }
}
"""
)

PROJECT_ITEMS_QUERY = """
query($projectId: ID!, $first: Int!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: $first) {
        nodes {
          id
          createdAt
          updatedAt
          content {
            ... on Issue { id number title state url }
            ... on PullRequest { id number title state url }
            ... on DraftIssue { id title }
          }
          fieldValues(first: 20) {
            nodes {
              ... on ProjectV2ItemFieldTextValue {
                field { ... on ProjectV2Field { id name } }
                text
              }
              ... on ProjectV2ItemFieldNumberValue {
                field { ... on ProjectV2Field { id name } }
                number
              }
              ... on ProjectV2ItemFieldDateValue {
                field { ... on ProjectV2Field { id name } }
                date
              }
              ... on ProjectV2ItemFieldSingleSelectValue {
                field { ... on ProjectV2SingleSelectField { id name } }
                name
              }
            }
          }
        }
      }
    }
  }
}
"""

ADD_PROJECT_ITEM_MUTATION = """
mutation($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) {
    item { id createdAt }
  }
}
"""

UPDATE_PROJECT_ITEM_FIELD_MUTATION = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $value: ProjectV2FieldValue!) {
  updateProjectV2ItemFieldValue(input: {projectId: $projectId, itemId: $itemId, fieldId: $fieldId, value: $value}) {
    projectV2Item { id }
  }
}
"""

CREATE_PROJECT_MUTATION = (
    """
mutation($input: CreateProjectV2Input!) {
  createProjectV2(input: $input) {
    projectV2 {"""
    + PROJECT_SUMMARY_FIELDS
    + """}
  }
}
"""
)


# =============================================================================
# GitHub Client
# =============================================================================


class GitHubGraphQLClient:
    """
    Async client for the GitHub GraphQL API.

    One instance is created per server and passed to every component that
    needs GitHub access. Calls are issued sequentially by the caller; the
    client holds no per-request state.

    Attributes:
        graphql_url: GraphQL endpoint URL.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        token: str,
        graphql_url: str = DEFAULT_GRAPHQL_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the GitHub client.

        Args:
            token: GitHub personal access token (classic or fine-grained).
            graphql_url: GraphQL endpoint URL.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.graphql_url = graphql_url
        self.timeout = timeout
        self._mutation_fields: Optional[frozenset[str]] = None

        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": build_auth_header(token),
                "Accept": "application/vnd.github.v4+json",
                "X-Github-Next-Global-ID": "1",
                "GraphQL-Features": "sub_issues",
                "User-Agent": "GitHub-Projects-MCP/0.1.0",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubGraphQLClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()

    # -------------------------------------------------------------------------
    # Request Helpers
    # -------------------------------------------------------------------------

    async def execute(
        self,
        query: str,
        variables: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Execute a GraphQL document.

        Args:
            query: GraphQL query or mutation.
            variables: Variables for the document.

        Returns:
            The ``data`` member of the response.

        Raises:
            GitHubAuthenticationError: For 401 responses.
            GitHubForbiddenError: For 403 responses.
            GitHubNotFoundError: For 404 responses and NOT_FOUND errors.
            GitHubApiError: For other HTTP, GraphQL or transport errors.
        """
        try:
            response = await self._client.post(
                self.graphql_url,
                json={"query": query, "variables": variables or {}},
            )
        except httpx.TimeoutException as e:
            raise GitHubApiError(message=f"Request timed out: {str(e)}")
        except httpx.RequestError as e:
            raise GitHubApiError(message=f"Request failed: {str(e)}")

        payload: dict[str, Any] = {}
        try:
            payload = response.json()
        except ValueError:
            pass

        if response.status_code != 200:
            error_message = payload.get("message") or response.text
            if response.status_code == 401:
                raise GitHubAuthenticationError(
                    message=error_message,
                    status_code=401,
                    response_data=payload,
                )
            if response.status_code == 403:
                raise GitHubForbiddenError(
                    message=error_message,
                    status_code=403,
                    response_data=payload,
                )
            if response.status_code == 404:
                raise GitHubNotFoundError(
                    message=f"Resource not found: {error_message}",
                    status_code=404,
                    response_data=payload,
                )
            raise GitHubApiError(
                message=error_message,
                status_code=response.status_code,
                response_data=payload,
            )

        errors = payload.get("errors")
        if errors:
            message = "; ".join(e.get("message", str(e)) for e in errors)
            if any(e.get("type") == "NOT_FOUND" for e in errors):
                raise GitHubNotFoundError(message=message, response_data=payload)
            raise GitHubApiError(message=message, response_data=payload)

        return payload.get("data") or {}

    # -------------------------------------------------------------------------
    # Capability Detection
    # -------------------------------------------------------------------------

    async def supports_mutation(self, name: str) -> Optional[bool]:
        """
        Probe the schema for a mutation field.

        The mutation field list is fetched once per client and cached.

        Args:
            name: Mutation field name (e.g. ``addSubIssue``).

        Returns:
            True or False when the probe succeeded, None if it failed.
        """
        if self._mutation_fields is None:
            try:
                data = await self.execute(MUTATION_FIELDS_QUERY)
            except GitHubApiError as e:
                logger.debug(f"Mutation capability probe failed: {e.message}")
                return None
            fields = (data.get("__type") or {}).get("fields") or []
            self._mutation_fields = frozenset(f["name"] for f in fields)
        return name in self._mutation_fields

    # -------------------------------------------------------------------------
    # Repository / Owner Methods
    # -------------------------------------------------------------------------

    async def get_repository(self, owner: str, repo: str) -> RepositoryRef:
        """
        Get the node IDs of a repository and its owner.

        Raises:
            GitHubNotFoundError: If the repository does not exist.
        """
        data = await self.execute(REPOSITORY_QUERY, {"owner": owner, "repo": repo})
        repository = data.get("repository")
        if not repository:
            raise GitHubNotFoundError(f"Repository {owner}/{repo} not found")
        return RepositoryRef(
            id=repository["id"],
            owner_id=(repository.get("owner") or {}).get("id"),
        )

    async def get_organization_id(self, owner: str) -> str:
        """
        Get the node ID of an organization.

        Raises:
            GitHubNotFoundError: If the organization does not exist.
        """
        data = await self.execute(ORGANIZATION_QUERY, {"owner": owner})
        organization = data.get("organization")
        if not organization:
            raise GitHubNotFoundError(f"Organization {owner} not found")
        return organization["id"]

    async def get_user_id(self, login: str) -> Optional[str]:
        """Get a user's node ID, or None if the login is unknown."""
        try:
            data = await self.execute(USER_QUERY, {"login": login})
        except GitHubNotFoundError:
            return None
        return (data.get("user") or {}).get("id")

    async def get_milestone_id(
        self, owner: str, repo: str, number: int
    ) -> Optional[str]:
        """Get a milestone's node ID, or None if it does not exist."""
        data = await self.execute(
            MILESTONE_QUERY, {"owner": owner, "repo": repo, "number": number}
        )
        milestone = (data.get("repository") or {}).get("milestone")
        return milestone["id"] if milestone else None

    # -------------------------------------------------------------------------
    # Issue Methods
    # -------------------------------------------------------------------------

    async def get_issue(
        self,
        owner: str,
        repo: str,
        number: int,
        comment_limit: int = 0,
        oldest_comments: bool = False,
    ) -> Issue:
        """
        Get a single issue.

        Args:
            owner: Repository owner login.
            repo: Repository name.
            number: Issue number.
            comment_limit: Number of comments to include (0 for none).
            oldest_comments: Take the first comments instead of the most recent.

        Returns:
            Issue model.

        Raises:
            GitHubNotFoundError: If the repository or issue does not exist.
        """
        limit = max(comment_limit, 1)
        data = await self.execute(
            ISSUE_QUERY,
            {
                "owner": owner,
                "repo": repo,
                "number": number,
                "withComments": comment_limit > 0,
                "commentFirst": limit if oldest_comments else None,
                "commentLast": None if oldest_comments else limit,
            },
        )
        issue = (data.get("repository") or {}).get("issue")
        if not issue:
            raise GitHubNotFoundError(f"Issue #{number} not found in {owner}/{repo}")
        return Issue.model_validate(issue)

    async def list_issues(
        self,
        owner: str,
        repo: str,
        states: Optional[list[str]] = None,
        labels: Optional[list[str]] = None,
        assignee: Optional[str] = None,
        first: int = 20,
    ) -> IssueList:
        """
        List issues in a repository, newest first.

        Args:
            owner: Repository owner login.
            repo: Repository name.
            states: Issue states to include (None for all).
            labels: Label names to filter by.
            assignee: Assignee login to filter by.
            first: Page size.

        Returns:
            IssueList with the page of issues and the total count.
        """
        data = await self.execute(
            LIST_ISSUES_QUERY,
            {
                "owner": owner,
                "repo": repo,
                "first": first,
                "states": states,
                "labels": labels or None,
                "filterBy": {"assignee": assignee} if assignee else None,
            },
        )
        issues = (data.get("repository") or {}).get("issues")
        if not issues:
            return IssueList()
        return IssueList.model_validate(issues)

    async def create_issue(self, input: dict[str, Any]) -> Issue:
        """
        Create an issue.

        Args:
            input: ``CreateIssueInput`` fields (repositoryId, title, ...).

        Returns:
            The created Issue.
        """
        data = await self.execute(CREATE_ISSUE_MUTATION, {"input": input})
        return Issue.model_validate(data["createIssue"]["issue"])

    async def update_issue(self, input: dict[str, Any]) -> Issue:
        """
        Update an issue.

        Args:
            input: ``UpdateIssueInput`` fields; ``id`` is required.

        Returns:
            The updated Issue.
        """
        data = await self.execute(UPDATE_ISSUE_MUTATION, {"input": input})
        return Issue.model_validate(data["updateIssue"]["issue"])

    async def update_issue_body(self, issue_id: str, body: str) -> None:
        """Replace the body of an issue."""
        await self.execute(
            UPDATE_ISSUE_BODY_MUTATION, {"issueId": issue_id, "body": body}
        )

    async def add_comment(self, subject_id: str, body: str) -> Optional[str]:
        """
        Add a comment to an issue or pull request.

        Args:
            subject_id: Node ID of the issue or pull request.
            body: Comment body (Markdown).

        Returns:
            Node ID of the new comment.
        """
        data = await self.execute(
            ADD_COMMENT_MUTATION, {"subjectId": subject_id, "body": body}
        )
        edge = (data.get("addComment") or {}).get("commentEdge") or {}
        return (edge.get("node") or {}).get("id")

    async def add_sub_issue(self, parent_id: str, child_id: str) -> dict[str, Any]:
        """
        Create a native parent/sub-issue relationship.

        Args:
            parent_id: Node ID of the parent issue.
            child_id: Node ID of the child issue.

        Returns:
            The ``addSubIssue`` payload.

        Raises:
            GitHubCapabilityError: If the API does not know the mutation.
        """
        try:
            data = await self.execute(
                ADD_SUB_ISSUE_MUTATION, {"parentId": parent_id, "childId": child_id}
            )
        except GitHubApiError as e:
            if is_capability_error(e.message, "addSubIssue"):
                raise GitHubCapabilityError(
                    message=e.message,
                    status_code=e.status_code,
                    response_data=e.response_data,
                ) from e
            raise
        return data.get("addSubIssue") or {}

    # -------------------------------------------------------------------------
    # Label Methods
    # -------------------------------------------------------------------------

    async def list_labels(self, owner: str, repo: str) -> list[Label]:
        """List the first 100 labels of a repository."""
        data = await self.execute(LABELS_QUERY, {"owner": owner, "repo": repo})
        labels = ((data.get("repository") or {}).get("labels") or {}).get("nodes") or []
        return [Label.model_validate(label) for label in labels]

    async def create_label(
        self,
        repository_id: str,
        name: str,
        color: str,
        description: Optional[str] = None,
    ) -> Label:
        """Create a label in a repository."""
        data = await self.execute(
            CREATE_LABEL_MUTATION,
            {
                "repositoryId": repository_id,
                "name": name,
                "color": color,
                "description": description,
            },
        )
        return Label.model_validate(data["createLabel"]["label"])

    # -------------------------------------------------------------------------
    # Project Methods
    # -------------------------------------------------------------------------

    async def list_projects(
        self, owner: str, repo: Optional[str] = None
    ) -> list[Project]:
        """
        List the first 20 projects of a repository or organization.

        Args:
            owner: Repository owner or organization login.
            repo: Repository name; None lists organization projects.
        """
        if repo:
            data = await self.execute(
                REPOSITORY_PROJECTS_QUERY, {"owner": owner, "repo": repo}
            )
            container = data.get("repository") or {}
        else:
            data = await self.execute(ORGANIZATION_PROJECTS_QUERY, {"owner": owner})
            container = data.get("organization") or {}
        nodes = (container.get("projectsV2") or {}).get("nodes") or []
        return [Project.model_validate(node) for node in nodes if node]

    async def get_project(
        self, owner: str, number: int, repo: Optional[str] = None
    ) -> Optional[Project]:
        """Get a project with its fields, or None if it does not exist."""
        if repo:
            data = await self.execute(
                REPOSITORY_PROJECT_QUERY,
                {"owner": owner, "repo": repo, "number": number},
            )
            container = data.get("repository") or {}
        else:
            data = await self.execute(
                ORGANIZATION_PROJECT_QUERY, {"owner": owner, "number": number}
            )
            container = data.get("organization") or {}
        project = container.get("projectV2")
        return Project.model_validate(project) if project else None

    async def list_project_items(
        self, project_id: str, first: int = 20
    ) -> list[ProjectItem]:
        """List the first items of a project."""
        data = await self.execute(
            PROJECT_ITEMS_QUERY, {"projectId": project_id, "first": first}
        )
        nodes = ((data.get("node") or {}).get("items") or {}).get("nodes") or []
        return [ProjectItem.model_validate(node) for node in nodes if node]

    async def add_project_item(
        self, project_id: str, content_id: str
    ) -> dict[str, Any]:
        """Add an issue or pull request to a project."""
        data = await self.execute(
            ADD_PROJECT_ITEM_MUTATION,
            {"projectId": project_id, "contentId": content_id},
        )
        return data["addProjectV2ItemById"]["item"]

    async def update_project_item_field(
        self,
        project_id: str,
        item_id: str,
        field_id: str,
        value: str,
    ) -> dict[str, Any]:
        """Set a text field value on a project item."""
        data = await self.execute(
            UPDATE_PROJECT_ITEM_FIELD_MUTATION,
            {
                "projectId": project_id,
                "itemId": item_id,
                "fieldId": field_id,
                "value": {"text": value},
            },
        )
        return data["updateProjectV2ItemFieldValue"]["projectV2Item"]

    async def create_project(
        self,
        owner_id: str,
        title: str,
        repository_id: Optional[str] = None,
    ) -> Project:
        """
        Create a project.

        Args:
            owner_id: Node ID of the owning user or organization.
            title: Project title.
            repository_id: Repository to link the project to, if any.
        """
        input: dict[str, Any] = {"ownerId": owner_id, "title": title}
        if repository_id:
            input["repositoryId"] = repository_id
        data = await self.execute(CREATE_PROJECT_MUTATION, {"input": input})
        return Project.model_validate(data["createProjectV2"]["projectV2"])
