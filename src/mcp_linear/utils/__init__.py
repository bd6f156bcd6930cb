"""
Utility functions for the MCP Linear integration.
"""

from .env import get_env_float, get_env_int, is_env_truthy
from .io import is_multi_user_mode, is_read_only_mode

__all__ = [
    "get_env_float",
    "get_env_int",
    "is_env_truthy",
    "is_multi_user_mode",
    "is_read_only_mode",
]
