"""Dependency provider for LinearFetcher with request and session awareness.

Provides get_linear_fetcher for use in tool functions.
"""

from __future__ import annotations

import logging

from fastmcp import Context
from fastmcp.server.dependencies import get_http_request

from ..exceptions import MCPLinearConfigurationError
from ..linear import LinearFetcher
from ..logging_config import ContextualLogger
from ..utils.token_manager import TokenManager
from .context import MainAppContext

logger = logging.getLogger("mcp-linear.servers.dependencies")


def get_app_context(ctx: Context) -> MainAppContext:
    lifespan_ctx_dict = ctx.request_context.lifespan_context
    app_context = (
        lifespan_ctx_dict.get("app_lifespan_context")
        if isinstance(lifespan_ctx_dict, dict)
        else None
    )
    if not isinstance(app_context, MainAppContext):
        raise MCPLinearConfigurationError(
            "Linear server context is not available; the server lifespan did not start"
        )
    return app_context


def _request_token() -> str | None:
    """Bearer token placed on the request by UserTokenMiddleware, if any."""
    try:
        request = get_http_request()
    except RuntimeError:
        # stdio transport: there is no HTTP request
        return None
    return getattr(request.state, "user_linear_token", None)


def _token_manager_for(app_context: MainAppContext) -> TokenManager:
    request_token = _request_token()
    if request_token:
        logger.debug("Using per-request Linear credential")
        return app_context.static_token_manager(request_token)

    config = app_context.linear_config
    if config.auth_type == "api_key" and config.api_key:
        return app_context.static_token_manager(config.api_key)
    if config.auth_type == "oauth" and config.oauth_identity:
        return app_context.oauth_token_manager(config.oauth_identity)
    raise MCPLinearConfigurationError(
        "No Linear credential for this request. Send 'Authorization: Bearer <token>' "
        "or configure LINEAR_API_KEY / LINEAR_OAUTH_IDENTITY on the server."
    )


async def get_linear_fetcher(ctx: Context) -> LinearFetcher:
    """Returns a LinearFetcher acting for the identity of the current request.

    Raises:
        MCPLinearConfigurationError: If no credential is available for the request
    """
    app_context = get_app_context(ctx)
    token_manager = _token_manager_for(app_context)

    session = app_context.session_for(ctx.session_id)
    session.bind_identity(token_manager.identity)
    if isinstance(logger, ContextualLogger):
        logger.set_context(identity=token_manager.identity)

    return LinearFetcher(
        config=app_context.linear_config,
        token_manager=token_manager,
        http_client=app_context.http_client,
        cache=session.cache,
    )
