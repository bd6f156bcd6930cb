"""Environment variable utility functions for MCP Linear."""

import os


def is_env_truthy(env_var_name: str, default: str = "") -> bool:
    """Check if environment variable is set to a standard truthy value.

    Considers 'true', '1', 'yes', 'y', 'on' as truthy values (case-insensitive).

    Args:
        env_var_name: Name of the environment variable to check
        default: Default value if environment variable is not set

    Returns:
        True if the environment variable is set to a truthy value, False otherwise
    """
    return os.getenv(env_var_name, default).strip().lower() in (
        "true",
        "1",
        "yes",
        "y",
        "on",
    )


def get_env_int(env_var_name: str, default: int) -> int:
    """Read an integer environment variable, falling back to ``default`` when unset or blank.

    Raises:
        ValueError: If the variable is set to something that is not an integer
    """
    raw = os.getenv(env_var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{env_var_name} must be an integer, got {raw!r}") from e


def get_env_float(env_var_name: str, default: float) -> float:
    """Float counterpart of :func:`get_env_int`."""
    raw = os.getenv(env_var_name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{env_var_name} must be a number, got {raw!r}") from e
