"""Credential lifecycle: expiry classification, proactive and reactive refresh."""

import asyncio
import enum
import hashlib
import logging
import time
from collections.abc import Callable

import httpx

from ..exceptions import MCPLinearAuthenticationError, MCPLinearError
from ..logging_config import mask_sensitive
from .credentials import CredentialSet, CredentialStore
from .oauth import LinearOAuthConfig, credentials_from_token_response

logger = logging.getLogger("mcp-linear.token_manager")

# Refresh when the token has less than this much life left
REFRESH_HORIZON_MS = 5 * 60 * 1000

REAUTHENTICATE_HINT = "Please re-authenticate with Linear (run `mcp-linear --oauth-setup`)."


class TokenState(enum.Enum):
    VALID = "valid"
    NEAR_EXPIRY = "near_expiry"
    EXPIRED = "expired"
    NON_EXPIRING = "non_expiring"


def classify(credentials: CredentialSet, now_ms: int) -> TokenState:
    """Classify a credential set relative to ``now_ms`` (epoch milliseconds)."""
    if credentials.expires_at is None:
        return TokenState.NON_EXPIRING
    if now_ms >= credentials.expires_at:
        return TokenState.EXPIRED
    if credentials.expires_at - now_ms <= REFRESH_HORIZON_MS:
        return TokenState.NEAR_EXPIRY
    return TokenState.VALID


def static_identity(api_key: str) -> str:
    """Synthetic identity for a static key, stable and not reversible."""
    return f"static:{hashlib.sha256(api_key.encode('utf-8')).hexdigest()[:12]}"


class TokenManager:
    """Hands out a usable access credential for one identity.

    Concurrent refreshes are collapsed into one: the first caller starts a
    task, later callers await that same task, and the slot is cleared once it
    settles.
    """

    def __init__(
        self,
        identity: str,
        store: CredentialStore | None = None,
        oauth_config: LinearOAuthConfig | None = None,
        credentials: CredentialSet | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.identity = identity
        self.store = store
        self.oauth_config = oauth_config
        self.http_client = http_client
        self._credentials = credentials
        self._clock = clock
        self._refresh_task: asyncio.Task[str] | None = None

    @classmethod
    def for_static_key(cls, api_key: str) -> "TokenManager":
        """A manager for a non-expiring key; it never refreshes and needs no store."""
        return cls(
            identity=static_identity(api_key),
            credentials=CredentialSet(access_token=api_key),
        )

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @property
    def can_refresh(self) -> bool:
        return bool(
            self.oauth_config is not None
            and self._credentials is not None
            and self._credentials.refresh_token
        )

    async def _load(self) -> CredentialSet:
        if self._credentials is None and self.store is not None:
            self._credentials = await self.store.get(self.identity)
        if self._credentials is None:
            raise MCPLinearAuthenticationError(
                f"No Linear credentials found for {self.identity}. {REAUTHENTICATE_HINT}"
            )
        return self._credentials

    async def get_api_key(self) -> str:
        """Return a credential that is valid now, refreshing when due.

        Raises:
            MCPLinearAuthenticationError: If no credentials are stored, the token
                expired with no way to renew it, or the refresh failed
        """
        credentials = await self._load()
        state = classify(credentials, self._now_ms())
        has_refresh = bool(credentials.refresh_token) and self.oauth_config is not None

        match state:
            case TokenState.VALID:
                return credentials.access_token
            case TokenState.NON_EXPIRING if has_refresh:
                # Stored before expiries were tracked; renew once to learn the expiry
                logger.info(f"Refreshing legacy non-expiring credentials for {self.identity}")
                return await self.refresh()
            case TokenState.NON_EXPIRING:
                return credentials.access_token
            case TokenState.NEAR_EXPIRY | TokenState.EXPIRED if has_refresh:
                logger.debug(f"Access token for {self.identity} is {state.value}, refreshing")
                return await self.refresh()
            case TokenState.NEAR_EXPIRY:
                return credentials.access_token
            case _:
                raise MCPLinearAuthenticationError(
                    f"Linear access token for {self.identity} has expired and "
                    f"cannot be refreshed. {REAUTHENTICATE_HINT}"
                )

    async def refresh(self) -> str:
        """Refresh the access token, sharing one in-flight refresh between callers.

        Returns:
            The new access token

        Raises:
            MCPLinearAuthenticationError: If the refresh fails for any reason
        """
        if self._refresh_task is None:
            task = asyncio.create_task(self._do_refresh())
            task.add_done_callback(self._on_refresh_done)
            self._refresh_task = task
        else:
            logger.debug(f"Joining in-flight refresh for {self.identity}")
        # shield: one cancelled waiter must not cancel the refresh for the others
        return await asyncio.shield(self._refresh_task)

    def _on_refresh_done(self, task: "asyncio.Task[str]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Mark the exception retrieved; waiters re-raise it themselves
            task.exception()

    async def _do_refresh(self) -> str:
        credentials = await self._load()
        if self.oauth_config is None or not credentials.refresh_token:
            raise MCPLinearAuthenticationError(
                f"Credentials for {self.identity} cannot be refreshed. {REAUTHENTICATE_HINT}"
            )
        try:
            token = await self.oauth_config.refresh_access_token(
                credentials.refresh_token, self.http_client
            )
        except MCPLinearError as e:
            logger.error(f"Token refresh failed for {self.identity}: {e}")
            raise MCPLinearAuthenticationError(
                f"Refreshing the Linear access token failed. {REAUTHENTICATE_HINT}"
            ) from e

        new_credentials = credentials_from_token_response(
            token, self._now_ms(), previous_refresh_token=credentials.refresh_token
        )
        if self.store is not None:
            await self.store.set(self.identity, new_credentials)
        self._credentials = new_credentials
        logger.info(
            f"Refreshed access token for {self.identity} "
            f"(token {mask_sensitive(new_credentials.access_token)})"
        )
        return new_credentials.access_token
