"""I/O utility functions for MCP Linear."""

from .env import is_env_truthy


def is_read_only_mode() -> bool:
    """Check if the server is running in read-only mode.

    Read-only mode rejects every write tool (create/update issue, document
    or comment) while leaving the read tools available.

    Returns:
        True if read-only mode is enabled, False otherwise
    """
    return is_env_truthy("READ_ONLY_MODE", "false")


def is_multi_user_mode() -> bool:
    """Check if the server accepts per-request credentials instead of a server-wide one.

    Returns:
        True if multi-user mode is enabled, False otherwise
    """
    return is_env_truthy("MCP_LINEAR_MULTI_USER", "false")
