from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cachetools import TTLCache

from ..linear.cache import ReferenceCache
from ..utils.token_manager import TokenManager

if TYPE_CHECKING:
    import httpx

    from ..linear.config import LinearConfig
    from ..utils.credentials import CredentialStore
    from ..utils.oauth import LinearOAuthConfig

logger = logging.getLogger("mcp-linear.server.context")

# Idle sessions are forgotten after an hour
SESSION_TTL_SECONDS = 60 * 60
MAX_SESSIONS = 1000


@dataclass
class SessionState:
    """State owned by one MCP session: its reference cache and acting identity."""

    cache: ReferenceCache = field(default_factory=ReferenceCache)
    identity: str | None = None

    def bind_identity(self, identity: str) -> None:
        """Switch the session to ``identity``, dropping cached data of the previous one."""
        if self.identity is not None and self.identity != identity:
            logger.info("Session identity changed, clearing reference cache")
            self.cache.clear()
        self.identity = identity


@dataclass(frozen=True)
class MainAppContext:
    """Process-wide collaborators shared by every session."""

    linear_config: LinearConfig
    http_client: httpx.AsyncClient
    credential_store: CredentialStore | None = None
    oauth_config: LinearOAuthConfig | None = None
    read_only: bool = False
    sessions: TTLCache[str, SessionState] = field(
        default_factory=lambda: TTLCache(maxsize=MAX_SESSIONS, ttl=SESSION_TTL_SECONDS)
    )
    # One manager per OAuth identity so concurrent refreshes are shared across sessions
    token_managers: dict[str, TokenManager] = field(default_factory=dict)

    def session_for(self, session_id: str | None) -> SessionState:
        key = session_id or "default"
        session = self.sessions.get(key)
        if session is None:
            session = SessionState(cache=ReferenceCache(self.linear_config.cache_ttl))
            self.sessions[key] = session
        return session

    def static_token_manager(self, api_key: str) -> TokenManager:
        # Static keys have no refresh state; not registered
        return TokenManager.for_static_key(api_key)

    def oauth_token_manager(self, identity: str) -> TokenManager:
        manager = self.token_managers.get(identity)
        if manager is None:
            manager = TokenManager(
                identity=identity,
                store=self.credential_store,
                oauth_config=self.oauth_config,
                http_client=self.http_client,
            )
            self.token_managers[identity] = manager
        return manager
