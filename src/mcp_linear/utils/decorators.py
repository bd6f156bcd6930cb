import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from fastmcp import Context
from fastmcp.exceptions import ToolError
from pydantic import ValidationError

from ..exceptions import (
    MCPLinearAuthenticationError,
    MCPLinearConfigurationError,
    MCPLinearError,
    MCPLinearNotFoundError,
    MCPLinearRateLimitError,
)

logger = logging.getLogger("mcp-linear.utils.decorators")


F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def check_write_access(func: F) -> F:
    """
    Decorator for FastMCP tools to check if the application is in read-only mode.
    If in read-only mode, it raises a ValueError.
    Assumes the decorated function is async and has `ctx: Context` as its first argument.
    """

    @wraps(func)
    async def wrapper(ctx: Context, *args: Any, **kwargs: Any) -> Any:
        lifespan_ctx_dict = ctx.request_context.lifespan_context
        app_lifespan_ctx = (
            lifespan_ctx_dict.get("app_lifespan_context")
            if isinstance(lifespan_ctx_dict, dict)
            else None
        )
        if app_lifespan_ctx is not None and app_lifespan_ctx.read_only:
            tool_name = func.__name__
            action_description = tool_name.replace("_", " ")
            logger.warning(f"Attempted to call tool '{tool_name}' in read-only mode.")
            raise ValueError(f"Cannot {action_description} in read-only mode.")

        return await func(ctx, *args, **kwargs)

    return wrapper  # type: ignore


def _describe(error: Exception) -> str:
    match error:
        case MCPLinearAuthenticationError():
            return f"Authentication failed: {error}"
        case MCPLinearRateLimitError(retry_after_seconds=int() as seconds):
            return f"Rate limited by Linear; try again in {seconds}s. {error}"
        case MCPLinearRateLimitError():
            return f"Rate limited by Linear. {error}"
        case MCPLinearNotFoundError() | MCPLinearConfigurationError():
            return str(error)
        case MCPLinearError():
            return f"Linear API error: {error}"
        case ValidationError():
            return f"Invalid input: {error}"
        case _:
            return str(error) or type(error).__name__


def handle_tool_errors(func: F) -> F:
    """
    Decorator turning any exception raised by a tool into a FastMCP ToolError.

    The message is reported to the client as an error result (``isError``),
    never as a crashed request.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except ToolError:
            raise
        except (MCPLinearError, ValueError) as e:
            logger.warning(f"Tool '{func.__name__}' failed: {e}")
            raise ToolError(_describe(e)) from e
        except Exception as e:
            logger.error(f"Unexpected error in tool '{func.__name__}': {e}", exc_info=True)
            raise ToolError(f"Unexpected error: {_describe(e)}") from e

    return wrapper  # type: ignore


def convert_empty_defaults_to_none(func: F) -> F:
    """
    Decorator that converts empty string arguments to None.
    This is useful for FastMCP tools where empty strings should be treated as None.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        for key, value in kwargs.items():
            if value == "":
                kwargs[key] = None
        return await func(*args, **kwargs)

    return wrapper  # type: ignore
