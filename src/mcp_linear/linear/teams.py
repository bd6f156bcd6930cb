"""Module for Linear team and workflow state operations."""

import logging

from ..exceptions import MCPLinearNotFoundError
from ..models.linear.common import (
    LinearTeam,
    LinearWorkflowState,
    TeamsResponse,
    TeamStatesResponse,
)
from .client import LinearClient
from .utils import find_by_name

logger = logging.getLogger("mcp-linear.teams")

TEAMS_QUERY = """
query Teams {
  teams {
    nodes { id name key }
  }
}
"""

TEAM_STATES_QUERY = """
query TeamStates($teamId: String!) {
  team(id: $teamId) {
    states {
      nodes { id name type }
    }
  }
}
"""


class TeamsMixin(LinearClient):
    """Mixin for Linear team operations."""

    async def list_teams(self) -> list[LinearTeam]:
        async def fetch() -> list[LinearTeam]:
            response = await self.query_model(TeamsResponse, TEAMS_QUERY)
            return response.teams.nodes

        return await self.cache.get_or_fetch("teams", fetch)

    async def list_states(self, team_id: str) -> list[LinearWorkflowState]:
        """
        Get the workflow states of a team.

        Args:
            team_id: The team ID

        Returns:
            The team's workflow states, in Linear's order
        """

        async def fetch() -> list[LinearWorkflowState]:
            response = await self.query_model(
                TeamStatesResponse, TEAM_STATES_QUERY, {"teamId": team_id}
            )
            if response.team is None:
                raise MCPLinearNotFoundError("Team", team_id)
            return response.team.states.nodes

        return await self.cache.get_or_fetch(f"states:{team_id}", fetch)

    async def resolve_team(self, name: str) -> LinearTeam:
        return find_by_name(await self.list_teams(), name, "Team")

    async def resolve_team_by_key(self, key: str) -> LinearTeam | None:
        for team in await self.list_teams():
            if team.key == key:
                return team
        return None

    async def resolve_state(self, name: str, team: LinearTeam) -> LinearWorkflowState:
        return find_by_name(
            await self.list_states(team.id), name, "State", f"in team {team.name}"
        )
