"""Module for Linear issue label operations."""

import asyncio
import logging
from typing import Any

from ..exceptions import MCPLinearNotFoundError
from ..models.linear.common import LabelsResponse, LinearLabel
from .client import LinearClient

logger = logging.getLogger("mcp-linear.labels")

LABELS_QUERY = """
query IssueLabels($filter: IssueLabelFilter) {
  issueLabels(filter: $filter) {
    nodes { id name color }
  }
}
"""


class LabelsMixin(LinearClient):
    """Mixin for Linear label operations."""

    async def list_labels(self, team_id: str | None = None) -> list[LinearLabel]:
        """
        Get issue labels, optionally restricted to one team.

        Args:
            team_id: Team ID; all labels in the workspace when omitted

        Returns:
            The labels
        """
        label_filter: dict[str, Any] = {"team": {"id": {"eq": team_id}}} if team_id else {}

        async def fetch() -> list[LinearLabel]:
            response = await self.query_model(
                LabelsResponse, LABELS_QUERY, {"filter": label_filter}
            )
            return response.issue_labels.nodes

        key = f"labels:{team_id}" if team_id else "labels"
        return await self.cache.get_or_fetch(key, fetch)

    async def resolve_labels(
        self, names: list[str], team_id: str | None = None
    ) -> list[LinearLabel]:
        """
        Resolve label names, preferring the team's labels over workspace ones.

        Raises:
            MCPLinearNotFoundError: For the first name that matches neither
        """
        if not names:
            return []
        if team_id:
            candidates, workspace_labels = await asyncio.gather(
                self.list_labels(team_id), self.list_labels()
            )
        else:
            candidates, workspace_labels = [], await self.list_labels()
        resolved = []
        for name in names:
            match = next(
                (label for label in [*candidates, *workspace_labels] if label.name == name),
                None,
            )
            if match is None:
                raise MCPLinearNotFoundError("Label", name)
            resolved.append(match)
        return resolved
