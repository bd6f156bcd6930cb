"""OAuth 2.0 utilities for Linear.

This module covers the token side of Linear's OAuth flow:
- building the authorization URL
- exchanging an authorization code for a credential set and persisting it
- refreshing an access token
- signing the ``state`` parameter so a callback can be trusted
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
import urllib.parse
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from ..exceptions import MCPLinearAuthenticationError, MCPLinearTransportError
from ..linear.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_OAUTH_SCOPE,
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    LINEAR_API_URL,
    LINEAR_AUTHORIZE_URL,
    LINEAR_TOKEN_URL,
)
from ..models.linear.common import LinearViewer
from .credentials import CredentialSet, CredentialStore

logger = logging.getLogger("mcp-linear.oauth")


class TokenResponse(BaseModel):
    """Body of a successful response from the OAuth token endpoint."""

    access_token: str
    token_type: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    scope: str | list[str] | None = None


@dataclass(frozen=True)
class AuthorizedIdentity:
    """Result of a completed authorization: who the user is and what was stored."""

    identity: str
    user_id: str
    name: str
    email: str | None
    credentials: CredentialSet


def user_identity(user_id: str) -> str:
    return f"user:{user_id}"


def credentials_from_token_response(
    token: TokenResponse,
    now_ms: int,
    previous_refresh_token: str | None = None,
) -> CredentialSet:
    """Build a credential set from a token endpoint response.

    A grant that ends up with no refresh token cannot be renewed, so it is
    stored without an expiry rather than one that would strand the user.

    Args:
        token: Parsed token endpoint response
        now_ms: Current time in epoch milliseconds
        previous_refresh_token: Refresh token to keep when the response does
            not rotate it

    Returns:
        The new credential set
    """
    refresh_token = token.refresh_token or previous_refresh_token
    if not refresh_token:
        return CredentialSet(access_token=token.access_token)
    lifetime = token.expires_in or DEFAULT_TOKEN_LIFETIME_SECONDS
    return CredentialSet(
        access_token=token.access_token,
        refresh_token=refresh_token,
        expires_at=now_ms + lifetime * 1000,
    )


@dataclass
class LinearOAuthConfig:
    """OAuth application settings for Linear."""

    client_id: str
    client_secret: str
    redirect_uri: str
    scope: str = DEFAULT_OAUTH_SCOPE
    authorize_url: str = LINEAR_AUTHORIZE_URL
    token_url: str = LINEAR_TOKEN_URL
    api_url: str = LINEAR_API_URL
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @classmethod
    def from_linear_config(cls, config: Any) -> "LinearOAuthConfig | None":
        """Build from a :class:`~mcp_linear.linear.config.LinearConfig`.

        Returns:
            The OAuth settings, or None when no OAuth application is configured
        """
        if not config.is_oauth_configured:
            return None
        return cls(
            client_id=config.oauth_client_id,
            client_secret=config.oauth_client_secret,
            redirect_uri=config.oauth_redirect_uri,
            scope=config.oauth_scope,
            api_url=config.api_url,
            timeout=config.http_timeout,
        )

    def get_authorization_url(self, state: str) -> str:
        """Get the authorization URL for the OAuth 2.0 flow.

        Args:
            state: Opaque state echoed back on the callback

        Returns:
            The URL to send the user to
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_url}?{urllib.parse.urlencode(params)}"

    async def _request_token(
        self, payload: dict[str, str], http_client: httpx.AsyncClient | None
    ) -> TokenResponse:
        grant = payload["grant_type"]
        logger.debug(f"Requesting token ({grant}) at {self.token_url}")
        try:
            if http_client is None:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.token_url, data=payload)
            else:
                response = await http_client.post(self.token_url, data=payload)
        except httpx.RequestError as e:
            raise MCPLinearTransportError(
                f"Network error during token request: {e}"
            ) from e

        if not response.is_success:
            logger.error(
                f"Token request ({grant}) failed with status {response.status_code}"
            )
            raise MCPLinearAuthenticationError(
                f"Token request failed: {response.status_code} {response.reason_phrase}"
                f" - {response.text}"
            )
        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise MCPLinearAuthenticationError(
                f"Token endpoint returned an unexpected response: {e}"
            ) from e

    async def exchange_code_for_tokens(
        self, code: str, http_client: httpx.AsyncClient | None = None
    ) -> TokenResponse:
        """Exchange the authorization code for tokens.

        Raises:
            MCPLinearAuthenticationError: If the token endpoint rejects the code
        """
        return await self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            http_client,
        )

    async def refresh_access_token(
        self, refresh_token: str, http_client: httpx.AsyncClient | None = None
    ) -> TokenResponse:
        """Trade a refresh token for a new access token.

        Raises:
            MCPLinearAuthenticationError: If the token endpoint rejects the refresh
        """
        return await self._request_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            http_client,
        )

    async def fetch_viewer(
        self, access_token: str, http_client: httpx.AsyncClient | None = None
    ) -> LinearViewer:
        """Look up the user a freshly issued access token belongs to."""
        from ..linear.client import execute_query
        from ..linear.users import VIEWER_QUERY

        if http_client is None:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                data = await execute_query(
                    client, VIEWER_QUERY, {}, access_token, url=self.api_url
                )
        else:
            data = await execute_query(
                http_client, VIEWER_QUERY, {}, access_token, url=self.api_url
            )
        return LinearViewer.from_api_response(data.get("viewer") or {})

    async def complete_authorization(
        self,
        code: str,
        store: CredentialStore,
        http_client: httpx.AsyncClient | None = None,
        clock: Any = time.time,
    ) -> AuthorizedIdentity:
        """Finish the authorization-code flow.

        Exchanges ``code``, identifies the user and stores the resulting
        credential set under ``user:<linear user id>``.

        Args:
            code: Authorization code from the callback
            store: Where to persist the credentials
            http_client: Optional shared HTTP client
            clock: Returns the current time in seconds

        Returns:
            The authorized identity
        """
        token = await self.exchange_code_for_tokens(code, http_client)
        if not token.refresh_token:
            logger.warning(
                "Linear returned no refresh token; the credential is stored "
                "without expiry and cannot be renewed"
            )
        credentials = credentials_from_token_response(token, int(clock() * 1000))
        viewer = await self.fetch_viewer(token.access_token, http_client)
        identity = user_identity(viewer.id)
        await store.set(identity, credentials)
        logger.info(f"Stored Linear credentials for {viewer.name} ({identity})")
        return AuthorizedIdentity(
            identity=identity,
            user_id=viewer.id,
            name=viewer.name,
            email=viewer.email,
            credentials=credentials,
        )


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def create_signed_state(payload: dict[str, Any], secret: str) -> str:
    """Serialize ``payload`` into a tamper-evident ``state`` value.

    Args:
        payload: JSON-serializable data to round-trip through the provider
        secret: HMAC key

    Returns:
        ``<base64url json>.<base64url hmac-sha256>``
    """
    body = _b64url(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signature = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256)
    return f"{body}.{_b64url(signature.digest())}"


def parse_signed_state(state: str, secret: str) -> dict[str, Any] | None:
    """Verify and decode a value produced by :func:`create_signed_state`.

    Returns:
        The payload, or None if the state is malformed or the signature does
        not match
    """
    body, sep, signature = state.partition(".")
    if not sep or not body or not signature:
        return None
    expected = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256)
    try:
        provided = _b64url_decode(signature)
    except (binascii.Error, ValueError):
        return None
    if not hmac.compare_digest(expected.digest(), provided):
        logger.warning("Rejected OAuth state with an invalid signature")
        return None
    try:
        payload = json.loads(_b64url_decode(body))
    except (binascii.Error, ValueError):
        return None
    return payload if isinstance(payload, dict) else None
