"""Module for Linear project operations."""

import logging

from ..exceptions import MCPLinearNotFoundError
from ..models.linear.common import (
    LinearProject,
    ProjectsResponse,
    TeamProjectsResponse,
)
from .client import LinearClient
from .constants import CLOSED_PROJECT_STATES
from .utils import find_by_name

logger = logging.getLogger("mcp-linear.projects")

TEAM_PROJECTS_QUERY = """
query TeamProjects($teamId: String!) {
  team(id: $teamId) {
    projects {
      nodes { id name state }
    }
  }
}
"""

PROJECTS_QUERY = """
query Projects($filter: ProjectFilter) {
  projects(filter: $filter) {
    nodes { id name state }
  }
}
"""


class ProjectsMixin(LinearClient):
    """Mixin for Linear project operations."""

    async def list_projects(
        self, team_id: str | None = None, include_completed: bool = False
    ) -> list[LinearProject]:
        """
        Get projects for a team or for the whole workspace.

        Args:
            team_id: Team ID; the whole workspace when omitted
            include_completed: Also return completed and canceled projects

        Returns:
            The projects
        """
        scope = team_id or "all"
        key = f"projects:{scope}:{'all' if include_completed else 'open'}"

        async def fetch() -> list[LinearProject]:
            if team_id:
                team_response = await self.query_model(
                    TeamProjectsResponse, TEAM_PROJECTS_QUERY, {"teamId": team_id}
                )
                if team_response.team is None:
                    raise MCPLinearNotFoundError("Team", team_id)
                projects = team_response.team.projects.nodes
                if include_completed:
                    return projects
                return [p for p in projects if p.state not in CLOSED_PROJECT_STATES]

            project_filter = (
                {} if include_completed else {"state": {"nin": list(CLOSED_PROJECT_STATES)}}
            )
            response = await self.query_model(
                ProjectsResponse, PROJECTS_QUERY, {"filter": project_filter}
            )
            return response.projects.nodes

        return await self.cache.get_or_fetch(key, fetch)

    async def resolve_project(
        self, name: str, team_id: str | None = None, team_name: str | None = None
    ) -> LinearProject:
        scope = f"in team {team_name}" if team_name else None
        return find_by_name(await self.list_projects(team_id), name, "Project", scope)
