"""Module for Linear issue operations."""

import asyncio
import logging
from typing import Any

from ..exceptions import MCPLinearError, MCPLinearNotFoundError
from ..models.linear.common import LinearTeam
from ..models.linear.issue import (
    IssueCreateResponse,
    IssueIdResponse,
    IssuePayload,
    IssueRef,
    IssueResponse,
    IssuesResponse,
    IssueUpdateResponse,
    LinearIssue,
)
from .constants import BACKLOG_STATE_TYPE, COMPLETED_STATE_TYPES, DEFAULT_PAGE_SIZE
from .labels import LabelsMixin
from .projects import ProjectsMixin
from .teams import TeamsMixin
from .users import UsersMixin

logger = logging.getLogger("mcp-linear.issues")

SEARCH_ISSUES_QUERY = """
query SearchIssues($filter: IssueFilter, $first: Int) {
  issues(filter: $filter, first: $first) {
    nodes {
      identifier
      title
      state { name type }
      priority
      project { name }
      dueDate
    }
  }
}
"""

GET_ISSUE_QUERY = """
query GetIssue($id: String!) {
  issue(id: $id) {
    id
    identifier
    title
    description
    url
    state { name type }
    priority
    assignee { name }
    creator { name }
    labels { nodes { name } }
    project { name }
    dueDate
    createdAt
    updatedAt
  }
}
"""

GET_ISSUE_ID_QUERY = """
query GetIssueId($id: String!) {
  issue(id: $id) {
    id
    identifier
    title
    url
  }
}
"""

CREATE_ISSUE_MUTATION = """
mutation CreateIssue($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue { id identifier title url }
  }
}
"""

UPDATE_ISSUE_MUTATION = """
mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) {
    success
    issue { id identifier title url }
  }
}
"""


def excluded_state_types(include_completed: bool, include_backlog: bool) -> list[str]:
    excluded: list[str] = []
    if not include_completed:
        excluded.extend(COMPLETED_STATE_TYPES)
    if not include_backlog:
        excluded.append(BACKLOG_STATE_TYPE)
    return excluded


def build_issue_filter(
    query: str | None = None,
    team_id: str | None = None,
    assignee_id: str | None = None,
    state: str | None = None,
    priority: int | None = None,
    include_completed: bool = False,
    include_backlog: bool = False,
    updated_since: str | None = None,
) -> dict[str, Any]:
    """Build a Linear ``IssueFilter``.

    Completed, canceled and backlog issues are excluded unless asked for; a
    state name filter is combined with that exclusion, not substituted for it.
    """
    issue_filter: dict[str, Any] = {}
    if team_id:
        issue_filter["team"] = {"id": {"eq": team_id}}
    if assignee_id:
        issue_filter["assignee"] = {"id": {"eq": assignee_id}}
    if priority is not None:
        issue_filter["priority"] = {"eq": priority}
    if updated_since:
        issue_filter["updatedAt"] = {"gte": updated_since}

    state_filter: dict[str, Any] = {}
    if state:
        state_filter["name"] = {"eq": state}
    excluded = excluded_state_types(include_completed, include_backlog)
    if excluded:
        state_filter["type"] = {"nin": excluded}
    if state_filter:
        issue_filter["state"] = state_filter

    if query:
        issue_filter["or"] = [
            {"title": {"containsIgnoreCase": query}},
            {"description": {"containsIgnoreCase": query}},
        ]
    return issue_filter


def _issue_input(**fields: Any) -> dict[str, Any]:
    """Drop unset fields so an update only touches what was given."""
    return {key: value for key, value in fields.items() if value is not None}


class IssuesMixin(TeamsMixin, UsersMixin, LabelsMixin, ProjectsMixin):
    """Mixin for Linear issue operations."""

    async def list_issues(
        self,
        query: str | None = None,
        team_id: str | None = None,
        assignee_id: str | None = None,
        state: str | None = None,
        priority: int | None = None,
        include_completed: bool = False,
        include_backlog: bool = False,
        updated_since: str | None = None,
        first: int = DEFAULT_PAGE_SIZE,
    ) -> list[LinearIssue]:
        """
        Search issues.

        Args:
            query: Text matched case-insensitively against title and description
            team_id: Only issues of this team
            assignee_id: Only issues assigned to this user
            state: Only issues in the workflow state with this name
            priority: Only issues with this priority (0 none, 1 urgent ... 4 low)
            include_completed: Also return completed and canceled issues
            include_backlog: Also return backlog issues
            updated_since: ISO-8601 timestamp; only issues updated at or after it
            first: Maximum number of issues

        Returns:
            Matching issues as summary projections
        """
        issue_filter = build_issue_filter(
            query=query,
            team_id=team_id,
            assignee_id=assignee_id,
            state=state,
            priority=priority,
            include_completed=include_completed,
            include_backlog=include_backlog,
            updated_since=updated_since,
        )
        response = await self.query_model(
            IssuesResponse, SEARCH_ISSUES_QUERY, {"filter": issue_filter, "first": first}
        )
        excluded = set(excluded_state_types(include_completed, include_backlog))
        return [
            issue for issue in response.issues.nodes if issue.state_type not in excluded
        ]

    async def get_issue(self, identifier: str) -> LinearIssue:
        """
        Get full issue details.

        Args:
            identifier: Issue identifier such as ``ENG-123`` (or its ID)

        Raises:
            MCPLinearNotFoundError: If the issue does not exist
        """
        response = await self.query_model(IssueResponse, GET_ISSUE_QUERY, {"id": identifier})
        if response.issue is None:
            raise MCPLinearNotFoundError("Issue", identifier)
        return response.issue

    async def get_issue_ref(self, identifier: str) -> IssueRef:
        response = await self.query_model(
            IssueIdResponse, GET_ISSUE_ID_QUERY, {"id": identifier}
        )
        if response.issue is None:
            raise MCPLinearNotFoundError("Issue", identifier)
        return response.issue

    async def create_issue(
        self,
        team_id: str,
        title: str,
        description: str | None = None,
        priority: int | None = None,
        assignee_id: str | None = None,
        label_ids: list[str] | None = None,
        project_id: str | None = None,
        state_id: str | None = None,
        due_date: str | None = None,
    ) -> IssuePayload:
        """Create an issue from IDs."""
        issue_input = _issue_input(
            teamId=team_id,
            title=title,
            description=description,
            priority=priority,
            assigneeId=assignee_id,
            labelIds=label_ids,
            projectId=project_id,
            stateId=state_id,
            dueDate=due_date,
        )
        response = await self.query_model(
            IssueCreateResponse, CREATE_ISSUE_MUTATION, {"input": issue_input}
        )
        self._check_mutation(response.issue_create, "create issue")
        return response.issue_create

    async def update_issue(
        self,
        issue_id: str,
        title: str | None = None,
        description: str | None = None,
        priority: int | None = None,
        assignee_id: str | None = None,
        label_ids: list[str] | None = None,
        project_id: str | None = None,
        state_id: str | None = None,
        due_date: str | None = None,
    ) -> IssuePayload:
        """Update an issue from IDs; fields left as None are not changed."""
        issue_input = _issue_input(
            title=title,
            description=description,
            priority=priority,
            assigneeId=assignee_id,
            labelIds=label_ids,
            projectId=project_id,
            stateId=state_id,
            dueDate=due_date,
        )
        response = await self.query_model(
            IssueUpdateResponse,
            UPDATE_ISSUE_MUTATION,
            {"id": issue_id, "input": issue_input},
        )
        self._check_mutation(response.issue_update, "update issue")
        return response.issue_update

    @staticmethod
    def _check_mutation(payload: IssuePayload, action: str) -> None:
        if not payload.success:
            raise MCPLinearError(f"Linear reported failure to {action}")

    async def _resolve_issue_names(
        self,
        team: LinearTeam,
        assignee_name: str | None,
        state_name: str | None,
        label_names: list[str] | None,
        project_name: str | None,
    ) -> dict[str, Any]:
        """Resolve names within ``team`` to IDs, fetching the independent lists concurrently."""

        async def assignee() -> str | None:
            return (await self.resolve_user(assignee_name)).id if assignee_name else None

        async def state() -> str | None:
            return (await self.resolve_state(state_name, team)).id if state_name else None

        async def labels() -> list[str] | None:
            if not label_names:
                return None
            return [label.id for label in await self.resolve_labels(label_names, team.id)]

        async def project() -> str | None:
            if not project_name:
                return None
            resolved = await self.resolve_project(project_name, team.id, team.name)
            return resolved.id

        assignee_id, state_id, label_ids, project_id = await asyncio.gather(
            assignee(), state(), labels(), project()
        )
        return {
            "assignee_id": assignee_id,
            "state_id": state_id,
            "label_ids": label_ids,
            "project_id": project_id,
        }

    async def create_issue_by_name(
        self,
        team_name: str,
        title: str,
        description: str | None = None,
        priority: int | None = None,
        assignee_name: str | None = None,
        label_names: list[str] | None = None,
        project_name: str | None = None,
        state_name: str | None = None,
        due_date: str | None = None,
    ) -> IssuePayload:
        """
        Create an issue, resolving every referenced entity by name.

        The team is resolved first because state, label and project names are
        scoped to it.

        Raises:
            MCPLinearNotFoundError: If any name cannot be resolved
        """
        team = await self.resolve_team(team_name)
        ids = await self._resolve_issue_names(
            team, assignee_name, state_name, label_names, project_name
        )
        logger.info(f"Creating issue '{title}' in team {team.key}")
        return await self.create_issue(
            team_id=team.id,
            title=title,
            description=description,
            priority=priority,
            due_date=due_date,
            **ids,
        )

    async def update_issue_by_name(
        self,
        identifier: str,
        title: str | None = None,
        description: str | None = None,
        priority: int | None = None,
        assignee_name: str | None = None,
        label_names: list[str] | None = None,
        project_name: str | None = None,
        state_name: str | None = None,
        due_date: str | None = None,
    ) -> IssuePayload:
        """
        Update an issue identified by its identifier (e.g. ``ENG-123``).

        The owning team is found from the identifier's key prefix, then the
        issue ID and the named entities are resolved.

        Raises:
            MCPLinearNotFoundError: If the team, issue or any name cannot be resolved
        """
        team_key = identifier.rsplit("-", 1)[0] if "-" in identifier else identifier
        team = await self.resolve_team_by_key(team_key)
        if team is None:
            raise MCPLinearNotFoundError("Team", identifier, "for identifier")
        issue_ref, ids = await asyncio.gather(
            self.get_issue_ref(identifier),
            self._resolve_issue_names(
                team, assignee_name, state_name, label_names, project_name
            ),
        )
        logger.info(f"Updating issue {issue_ref.identifier}")
        return await self.update_issue(
            issue_id=issue_ref.id,
            title=title,
            description=description,
            priority=priority,
            due_date=due_date,
            **ids,
        )
