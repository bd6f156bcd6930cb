import asyncio
import os
import sys

import click
from dotenv import load_dotenv

__version__ = "0.3.0"

from .logging_config import log_operation, setup_logger

logger = setup_logger()


@click.command()
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (can be used multiple times)",
)
@click.option(
    "--env-file", type=click.Path(exists=True, dir_okay=False), help="Path to .env file"
)
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    help="Transport type (stdio, sse or streamable-http)",
)
@click.option(
    "--port",
    default=8000,
    help="Port to listen on for SSE or Streamable HTTP transport",
)
@click.option(
    "--host",
    default="0.0.0.0",  # noqa: S104
    help="Host to bind to for SSE or Streamable HTTP transport",
)
@click.option(
    "--log-dir",
    help="Directory to store log files",
)
@click.option(
    "--log-to-file/--no-log-to-file",
    default=False,
    help="Enable/disable file logging",
)
@click.option(
    "--read-only",
    is_flag=True,
    default=False,
    help="Hide and refuse every tool that writes to Linear",
)
@click.option("--linear-api-key", help="Linear personal API key (lin_api_...)")
@click.option(
    "--oauth-setup",
    is_flag=True,
    help="Run the OAuth 2.0 setup wizard and exit",
)
def main(
    verbose: int,
    env_file: str | None,
    transport: str,
    port: int,
    host: str,
    log_dir: str | None,
    log_to_file: bool,
    read_only: bool,
    linear_api_key: str | None,
    oauth_setup: bool,
) -> None:
    """MCP Linear Server - Linear issues, documents and workspace data for MCP

    Authenticates with a personal API key or with OAuth 2.0 credentials
    stored by the setup wizard.
    """
    logging_level = "DEBUG" if verbose >= 2 else "INFO"
    if verbose == 0 and os.getenv("LOG_LEVEL"):
        logging_level = os.environ["LOG_LEVEL"]

    setup_logger(
        name="mcp-linear",
        level=logging_level,
        log_to_file=log_to_file,
        log_dir=log_dir,
    )

    if env_file:
        logger.info(f"Loading environment from file: {env_file}")
        load_dotenv(env_file)
    else:
        logger.debug("Attempting to load environment from default .env file")
        load_dotenv()

    if oauth_setup:
        from .utils.oauth_setup import run_oauth_setup

        logger.info("Starting OAuth 2.0 setup wizard")
        sys.exit(run_oauth_setup())

    if linear_api_key:
        os.environ["LINEAR_API_KEY"] = linear_api_key
    if read_only:
        os.environ["READ_ONLY_MODE"] = "true"
    if log_dir:
        os.environ["LOG_DIR"] = log_dir

    with log_operation(logger, "application_startup", app_version=__version__):
        from .servers import main_mcp

        logger.info(f"Starting MCP Linear v{__version__} with {transport} transport")

        run_kwargs: dict = {"transport": transport}
        if transport != "stdio":
            run_kwargs.update(host=host, port=port)
        asyncio.run(main_mcp.run_async(**run_kwargs))


__all__ = ["main", "__version__", "setup_logger", "log_operation"]

if __name__ == "__main__":
    main()
