"""Module for the Linear workspace overview."""

import asyncio
import logging

from ..models.base import Connection
from ..models.linear.workspace import WorkspaceOverview, WorkspaceQueryResponse
from .constants import CLOSED_PROJECT_STATES, OVERVIEW_ISSUE_LIMIT
from .issues import IssuesMixin

logger = logging.getLogger("mcp-linear.workspace")

WORKSPACE_OVERVIEW_QUERY = """
query GetWorkspaceOverview {
  teams {
    nodes {
      id
      name
      key
      states { nodes { name } }
      labels { nodes { name } }
      projects { nodes { name state } }
    }
  }
  issueLabels(filter: { team: { null: true } }) {
    nodes { name }
  }
  initiatives {
    nodes { name }
  }
  users(filter: { active: { eq: true } }) {
    nodes { id name }
  }
}
"""


class WorkspaceMixin(IssuesMixin):
    """Mixin for the workspace overview."""

    async def get_workspace_overview(self) -> WorkspaceOverview:
        """
        Get teams (with states, labels and open projects), workspace labels,
        initiatives, active users and the most relevant open issues.

        One aggregate query replaces a query per team; the open issues come
        from the regular issue listing with its default state filter.
        """
        response, active_issues = await asyncio.gather(
            self.query_model(WorkspaceQueryResponse, WORKSPACE_OVERVIEW_QUERY),
            self.list_issues(first=OVERVIEW_ISSUE_LIMIT),
        )
        teams = [
            team.model_copy(
                update={
                    "projects": Connection(
                        nodes=[
                            p
                            for p in team.projects.nodes
                            if p.state not in CLOSED_PROJECT_STATES
                        ]
                    )
                }
            )
            for team in response.teams.nodes
        ]
        return WorkspaceOverview(
            teams=teams,
            workspace_labels=[label.name for label in response.issue_labels.nodes],
            initiatives=[initiative.name for initiative in response.initiatives.nodes],
            users=response.users.nodes,
            active_issues=active_issues,
        )
