"""Module for Linear initiative operations."""

import logging

from ..models.linear.common import InitiativesResponse, LinearInitiative
from .client import LinearClient
from .utils import find_by_name

logger = logging.getLogger("mcp-linear.initiatives")

INITIATIVES_QUERY = """
query Initiatives {
  initiatives {
    nodes { id name }
  }
}
"""


class InitiativesMixin(LinearClient):
    """Mixin for Linear initiative operations."""

    async def list_initiatives(self) -> list[LinearInitiative]:
        async def fetch() -> list[LinearInitiative]:
            response = await self.query_model(InitiativesResponse, INITIATIVES_QUERY)
            return response.initiatives.nodes

        return await self.cache.get_or_fetch("initiatives", fetch)

    async def resolve_initiative(self, name: str) -> LinearInitiative:
        return find_by_name(await self.list_initiatives(), name, "Initiative")
