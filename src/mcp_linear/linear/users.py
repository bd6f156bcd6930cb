"""Module for Linear user operations."""

import logging

from ..models.linear.common import LinearUser, LinearViewer, UsersResponse
from .client import LinearClient
from .utils import find_by_name

logger = logging.getLogger("mcp-linear.users")

VIEWER_QUERY = "query Viewer { viewer { id name email } }"

USERS_QUERY = """
query Users {
  users {
    nodes { id name active }
  }
}
"""


class UsersMixin(LinearClient):
    """Mixin for Linear user operations."""

    async def list_users(self) -> list[LinearUser]:
        async def fetch() -> list[LinearUser]:
            response = await self.query_model(UsersResponse, USERS_QUERY)
            return response.users.nodes

        return await self.cache.get_or_fetch("users", fetch)

    async def resolve_user(self, name: str) -> LinearUser:
        return find_by_name(await self.list_users(), name, "User")

    async def get_viewer(self) -> LinearViewer:
        """Get the user the current credential belongs to."""
        data = await self.execute(VIEWER_QUERY)
        return LinearViewer.from_api_response(data.get("viewer") or {})
