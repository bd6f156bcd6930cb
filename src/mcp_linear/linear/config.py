"""Configuration module for Linear API interactions."""

import os
from dataclasses import dataclass, field
from typing import Literal

from ..exceptions import MCPLinearConfigurationError
from ..utils.env import get_env_float, get_env_int
from ..utils.io import is_multi_user_mode
from .constants import (
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_OAUTH_SCOPE,
    DEFAULT_REDIRECT_URI,
    LINEAR_API_URL,
)
from .retry import RetryPolicy

AuthType = Literal["api_key", "oauth", "request"]


@dataclass
class LinearConfig:
    """Linear API configuration.

    Three ways of authenticating are supported:

    - ``api_key``: one static personal API key for the whole server.
    - ``oauth``: an OAuth application plus the identity whose stored,
      encrypted credentials the server acts as.
    - ``request``: no server-wide credential; every HTTP request carries its
      own ``Authorization: Bearer`` header (multi-user mode).
    """

    auth_type: AuthType
    api_url: str = LINEAR_API_URL
    api_key: str | None = None
    oauth_client_id: str | None = None
    oauth_client_secret: str | None = None
    oauth_redirect_uri: str = DEFAULT_REDIRECT_URI
    oauth_scope: str = DEFAULT_OAUTH_SCOPE
    oauth_identity: str | None = None
    encryption_key: str | None = None
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    @property
    def is_oauth_configured(self) -> bool:
        return bool(self.oauth_client_id and self.oauth_client_secret)

    @classmethod
    def from_env(cls) -> "LinearConfig":
        """Create configuration from environment variables.

        Returns:
            LinearConfig with values from environment variables.

        Raises:
            MCPLinearConfigurationError: If no usable credential configuration
                is present, or OAuth is configured without an encryption key.
        """
        api_key = os.getenv("LINEAR_API_KEY", "").strip() or None
        client_id = os.getenv("LINEAR_OAUTH_CLIENT_ID", "").strip() or None
        client_secret = os.getenv("LINEAR_OAUTH_CLIENT_SECRET", "").strip() or None
        identity = os.getenv("LINEAR_OAUTH_IDENTITY", "").strip() or None
        encryption_key = os.getenv("CREDENTIAL_ENCRYPTION_KEY", "").strip() or None

        match (bool(api_key), bool(client_id and client_secret and identity)):
            case (True, _):
                auth_type: AuthType = "api_key"
            case (False, True):
                auth_type = "oauth"
            case (False, False) if is_multi_user_mode():
                auth_type = "request"
            case _:
                msg = (
                    "No Linear credentials configured. Set LINEAR_API_KEY, or "
                    "LINEAR_OAUTH_CLIENT_ID, LINEAR_OAUTH_CLIENT_SECRET and "
                    "LINEAR_OAUTH_IDENTITY (run `mcp-linear --oauth-setup`)."
                )
                raise MCPLinearConfigurationError(msg)

        if auth_type == "oauth" and not encryption_key:
            msg = "CREDENTIAL_ENCRYPTION_KEY is required when using OAuth credentials"
            raise MCPLinearConfigurationError(msg)

        try:
            retry_policy = RetryPolicy(
                max_attempts=get_env_int("LINEAR_MAX_RETRIES", 3),
                max_wait_seconds=get_env_float("LINEAR_MAX_RETRY_WAIT", 30.0),
                max_total_wait_seconds=get_env_float(
                    "LINEAR_MAX_TOTAL_RETRY_WAIT", 60.0
                ),
            )
            cache_ttl = get_env_float("LINEAR_CACHE_TTL", DEFAULT_CACHE_TTL_SECONDS)
            http_timeout = get_env_float(
                "LINEAR_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_SECONDS
            )
        except ValueError as e:
            raise MCPLinearConfigurationError(str(e)) from e

        return cls(
            auth_type=auth_type,
            api_url=os.getenv("LINEAR_API_URL", "").strip() or LINEAR_API_URL,
            api_key=api_key,
            oauth_client_id=client_id,
            oauth_client_secret=client_secret,
            oauth_redirect_uri=os.getenv("LINEAR_OAUTH_REDIRECT_URI", "").strip()
            or DEFAULT_REDIRECT_URI,
            oauth_scope=os.getenv("LINEAR_OAUTH_SCOPE", "").strip()
            or DEFAULT_OAUTH_SCOPE,
            oauth_identity=identity,
            encryption_key=encryption_key,
            cache_ttl=cache_ttl,
            http_timeout=http_timeout,
            retry_policy=retry_policy,
        )
