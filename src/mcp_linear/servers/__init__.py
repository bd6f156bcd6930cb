"""MCP Linear server package."""

from .main import main_mcp

__all__ = ["main_mcp"]
