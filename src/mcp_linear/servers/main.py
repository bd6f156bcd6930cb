"""Main FastMCP server setup for Linear integration."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Literal

import httpx
from fastmcp import FastMCP
from fastmcp.tools import Tool as FastMCPTool
from mcp.types import Tool as MCPTool
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..linear.config import LinearConfig
from ..logging_config import mask_sensitive
from ..utils.credentials import CredentialStore, KeyringKeyValueStore
from ..utils.io import is_read_only_mode
from ..utils.oauth import LinearOAuthConfig
from .context import MainAppContext
from .linear import linear_mcp

logger = logging.getLogger("mcp-linear.server.main")


async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def build_app_context(
    config: LinearConfig, http_client: httpx.AsyncClient, read_only: bool
) -> MainAppContext:
    credential_store = (
        CredentialStore(KeyringKeyValueStore(), config.encryption_key)
        if config.encryption_key
        else None
    )
    return MainAppContext(
        linear_config=config,
        http_client=http_client,
        credential_store=credential_store,
        oauth_config=LinearOAuthConfig.from_linear_config(config),
        read_only=read_only,
    )


@asynccontextmanager
async def main_lifespan(app: FastMCP[MainAppContext]) -> AsyncIterator[dict]:
    logger.info("Main Linear MCP server lifespan starting...")
    config = LinearConfig.from_env()
    read_only = is_read_only_mode()

    async with httpx.AsyncClient(timeout=config.http_timeout) as http_client:
        app_context = build_app_context(config, http_client, read_only)
        logger.info(f"Linear authentication: {config.auth_type}")
        logger.info(f"Read-only mode: {'ENABLED' if read_only else 'DISABLED'}")
        try:
            yield {"app_lifespan_context": app_context}
        finally:
            logger.info("Main Linear MCP server lifespan shutting down...")


class LinearMCP(FastMCP[MainAppContext]):
    """Custom FastMCP server class for Linear integration with tool filtering."""

    async def _mcp_list_tools(self) -> list[MCPTool]:
        # Hide write tools in read-only mode; the lifespan context carries the flag.
        req_context = self._mcp_server.request_context
        if req_context is None or req_context.lifespan_context is None:
            logger.warning("Lifespan context not available during _mcp_list_tools call.")
            return []

        lifespan_ctx_dict = req_context.lifespan_context
        app_lifespan_state: MainAppContext | None = (
            lifespan_ctx_dict.get("app_lifespan_context")
            if isinstance(lifespan_ctx_dict, dict)
            else None
        )
        read_only = getattr(app_lifespan_state, "read_only", False)

        all_tools: dict[str, FastMCPTool] = await self.get_tools()
        filtered_tools: list[MCPTool] = []
        for registered_name, tool_obj in all_tools.items():
            if read_only and "write" in tool_obj.tags:
                logger.debug(
                    f"Excluding tool '{registered_name}' due to read-only mode and 'write' tag"
                )
                continue
            filtered_tools.append(tool_obj.to_mcp_tool(name=registered_name))

        logger.debug(f"Listing {len(filtered_tools)} of {len(all_tools)} tools")
        return filtered_tools

    def http_app(
        self,
        path: str | None = None,
        middleware: list[Middleware] | None = None,
        transport: Literal["streamable-http", "sse", "http"] = "http",
        **kwargs: Any,
    ) -> "Starlette":
        user_token_mw = Middleware(UserTokenMiddleware)
        final_middleware_list = [user_token_mw]
        if middleware:
            final_middleware_list.extend(middleware)
        return super().http_app(
            path=path, middleware=final_middleware_list, transport=transport, **kwargs
        )


class UserTokenMiddleware(BaseHTTPMiddleware):
    """Middleware extracting a per-request Linear credential from the Authorization header.

    ``Authorization: Bearer <token>`` makes that request act as the owner of
    the token (OAuth access token or personal API key). Requests without the
    header fall back to the server-wide credential.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.user_linear_token = None
        auth_header = request.headers.get("Authorization")
        if auth_header:
            scheme, _, token = auth_header.partition(" ")
            token = token.strip()
            if scheme.lower() != "bearer":
                logger.warning(f"Unsupported Authorization scheme for {request.url.path}: {scheme}")
                return JSONResponse(
                    {"error": "Unauthorized: only 'Bearer <token>' is supported."},
                    status_code=401,
                )
            if not token:
                return JSONResponse(
                    {"error": "Unauthorized: Empty Bearer token"}, status_code=401
                )
            request.state.user_linear_token = token
            logger.debug(f"UserTokenMiddleware: Bearer token extracted ({mask_sensitive(token)})")
        return await call_next(request)


main_mcp = LinearMCP(name="Linear MCP", lifespan=main_lifespan)
main_mcp.mount(linear_mcp, prefix="linear")


@main_mcp.custom_route("/healthz", methods=["GET"], include_in_schema=False)
async def _health_check_route(request: Request) -> JSONResponse:
    return await health_check(request)
