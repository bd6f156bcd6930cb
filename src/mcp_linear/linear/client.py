"""Base client module for Linear GraphQL API interactions."""

import json
import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..exceptions import (
    MCPLinearAuthenticationError,
    MCPLinearConfigurationError,
    MCPLinearError,
    MCPLinearRateLimitError,
    MCPLinearTransportError,
)
from .cache import ReferenceCache
from .config import LinearConfig
from .constants import LINEAR_API_URL, STATIC_KEY_PREFIX
from .retry import SleepFn, execute_with_retry

if TYPE_CHECKING:
    from ..utils.token_manager import TokenManager

logger = logging.getLogger("mcp-linear.client")

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class GraphQLResponse(BaseModel):
    data: dict[str, Any] | None = None
    errors: list[dict[str, Any]] | None = None


def build_authorization_header(credential: str) -> str:
    """Static keys go verbatim; OAuth access tokens use the Bearer scheme."""
    if credential.startswith(STATIC_KEY_PREFIX) or credential.startswith("Bearer "):
        return credential
    return f"Bearer {credential}"


def _parse_retry_after(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return max(int(value.strip()), 0)
    except ValueError:
        return None


async def execute_query(
    http_client: httpx.AsyncClient,
    query: str,
    variables: dict[str, Any] | None,
    credential: str,
    *,
    url: str = LINEAR_API_URL,
) -> dict[str, Any]:
    """Send one GraphQL request to Linear and classify the outcome.

    Args:
        http_client: Client to send the request with
        query: GraphQL document
        variables: GraphQL variables
        credential: Static key or OAuth access token
        url: GraphQL endpoint

    Returns:
        The ``data`` member of the response

    Raises:
        MCPLinearConfigurationError: If ``credential`` is empty (nothing is sent)
        MCPLinearAuthenticationError: On HTTP 401
        MCPLinearRateLimitError: On HTTP 429
        MCPLinearTransportError: On any other failure
    """
    if not credential:
        raise MCPLinearConfigurationError("No Linear API credential available")

    try:
        response = await http_client.post(
            url,
            json={"query": query, "variables": variables or {}},
            headers={
                "Authorization": build_authorization_header(credential),
                "Content-Type": "application/json",
            },
        )
    except httpx.RequestError as e:
        logger.error(f"Request error for {url}: {e}")
        raise MCPLinearTransportError(f"Network error talking to Linear: {e}") from e

    if response.status_code == 401:
        raise MCPLinearAuthenticationError(
            "Linear rejected the credential (401 Unauthorized)"
        )
    if response.status_code == 429:
        retry_after = _parse_retry_after(response.headers.get("Retry-After"))
        raise MCPLinearRateLimitError(
            "Linear rate limit exceeded (429 Too Many Requests)",
            retry_after_seconds=retry_after,
        )
    if not response.is_success:
        logger.error(f"HTTP error {response.status_code} for {url}: {response.text}")
        raise MCPLinearTransportError(
            f"Linear API request failed: {response.status_code} "
            f"{response.reason_phrase} - {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        payload = GraphQLResponse.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        raise MCPLinearTransportError(
            f"Linear returned a response that is not GraphQL JSON: {e}",
            status_code=response.status_code,
            body=response.text,
        ) from e

    if payload.errors:
        raise MCPLinearTransportError(
            f"GraphQL errors: {json.dumps(payload.errors)}",
            status_code=response.status_code,
            body=response.text,
        )
    return payload.data or {}


class LinearClient:
    """Base client for Linear API interactions.

    Each instance acts for exactly one identity (through its token manager)
    and resolves reference data through the session's cache.
    """

    def __init__(
        self,
        config: LinearConfig,
        token_manager: "TokenManager",
        http_client: httpx.AsyncClient,
        cache: ReferenceCache | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        """Initialize the Linear client.

        Args:
            config: Linear configuration
            token_manager: Supplies (and refreshes) the credential
            http_client: Shared HTTP client; the caller owns its lifetime
            cache: Reference-data cache; a private one is created if omitted
            sleep: Override for rate-limit backoff sleeps
        """
        self.config = config
        self.token_manager = token_manager
        self.http_client = http_client
        self.cache = cache if cache is not None else ReferenceCache(config.cache_ttl)
        self._sleep = sleep

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL query with credential refresh and rate-limit retries."""
        credential = await self.token_manager.get_api_key()
        refresh = self.token_manager.refresh if self.token_manager.can_refresh else None

        async def call(current: str) -> dict[str, Any]:
            return await execute_query(
                self.http_client, query, variables, current, url=self.config.api_url
            )

        kwargs: dict[str, Any] = {"refresh": refresh, "policy": self.config.retry_policy}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        return await execute_with_retry(call, credential, **kwargs)

    async def query_model(
        self,
        model: type[ResponseT],
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> ResponseT:
        """Run a query and validate its ``data`` into ``model``.

        Raises:
            MCPLinearError: If the response does not have the expected shape
        """
        data = await self.execute(query, variables)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected response shape for {model.__name__}: {e}")
            raise MCPLinearError(
                f"Unexpected response from Linear ({model.__name__}): "
                f"{e.error_count()} validation error(s)"
            ) from e
