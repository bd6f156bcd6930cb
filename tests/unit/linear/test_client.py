"""Tests for the GraphQL executor and the base LinearClient."""

import httpx
import pytest

from mcp_linear.exceptions import (
    MCPLinearAuthenticationError,
    MCPLinearConfigurationError,
    MCPLinearError,
    MCPLinearRateLimitError,
    MCPLinearTransportError,
)
from mcp_linear.linear.client import (
    LinearClient,
    build_authorization_header,
    execute_query,
)
from mcp_linear.linear.config import LinearConfig
from mcp_linear.linear.retry import RetryPolicy
from mcp_linear.models.linear.common import TeamsResponse
from mcp_linear.utils.credentials import CredentialSet
from mcp_linear.utils.oauth import LinearOAuthConfig
from mcp_linear.utils.token_manager import TokenManager
from tests.fixtures.linear_mocks import TEAMS, TEST_API_KEY

QUERY = "query Teams { teams { nodes { id name key } } }"


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestBuildAuthorizationHeader:
    def test_static_key_is_sent_verbatim(self):
        assert build_authorization_header(TEST_API_KEY) == TEST_API_KEY

    def test_access_token_uses_bearer_scheme(self):
        assert build_authorization_header("oauth-token") == "Bearer oauth-token"

    def test_existing_bearer_prefix_is_not_doubled(self):
        assert build_authorization_header("Bearer abc") == "Bearer abc"


class TestExecuteQuery:
    @pytest.mark.asyncio
    async def test_returns_data_and_sends_credential(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["content_type"] = request.headers["Content-Type"]
            return httpx.Response(200, json={"data": TEAMS})

        data = await execute_query(client_for(handler), QUERY, None, "token-1")

        assert data == TEAMS
        assert seen["auth"] == "Bearer token-1"
        assert seen["content_type"] == "application/json"

    @pytest.mark.asyncio
    async def test_empty_credential_sends_nothing(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"data": {}})

        with pytest.raises(MCPLinearConfigurationError):
            await execute_query(client_for(handler), QUERY, None, "")
        assert calls == []

    @pytest.mark.asyncio
    async def test_401_is_authentication_error(self):
        client = client_for(lambda request: httpx.Response(401, text="bad token"))
        with pytest.raises(MCPLinearAuthenticationError):
            await execute_query(client, QUERY, None, "token")

    @pytest.mark.asyncio
    async def test_429_carries_retry_after(self):
        client = client_for(
            lambda request: httpx.Response(429, headers={"Retry-After": "7"})
        )
        with pytest.raises(MCPLinearRateLimitError) as exc_info:
            await execute_query(client, QUERY, None, "token")
        assert exc_info.value.retry_after_seconds == 7

    @pytest.mark.asyncio
    async def test_429_without_hint(self):
        client = client_for(lambda request: httpx.Response(429))
        with pytest.raises(MCPLinearRateLimitError) as exc_info:
            await execute_query(client, QUERY, None, "token")
        assert exc_info.value.retry_after_seconds is None

    @pytest.mark.asyncio
    async def test_server_error_is_transport_error_with_body(self):
        client = client_for(lambda request: httpx.Response(502, text="upstream down"))
        with pytest.raises(MCPLinearTransportError) as exc_info:
            await execute_query(client, QUERY, None, "token")
        assert exc_info.value.status_code == 502
        assert "upstream down" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_graphql_errors_are_transport_errors(self):
        client = client_for(
            lambda request: httpx.Response(
                200, json={"errors": [{"message": "Field 'foo' doesn't exist"}]}
            )
        )
        with pytest.raises(MCPLinearTransportError, match="GraphQL errors"):
            await execute_query(client, QUERY, None, "token")

    @pytest.mark.asyncio
    async def test_non_json_body_is_transport_error(self):
        client = client_for(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(MCPLinearTransportError):
            await execute_query(client, QUERY, None, "token")

    @pytest.mark.asyncio
    async def test_network_failure_is_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(MCPLinearTransportError, match="Network error"):
            await execute_query(client_for(handler), QUERY, None, "token")


class TestLinearClient:
    @pytest.mark.asyncio
    async def test_query_model_validates_response(self, linear_fetcher, graphql):
        graphql.on("Teams", TEAMS)
        response = await linear_fetcher.query_model(TeamsResponse, QUERY)
        assert [team.key for team in response.teams.nodes] == ["ENG", "DES"]
        assert graphql.calls[0].authorization == TEST_API_KEY

    @pytest.mark.asyncio
    async def test_query_model_reports_unexpected_shape(self, linear_fetcher, graphql):
        graphql.on("Teams", {"teams": {"nodes": [{"id": "t1"}]}})
        with pytest.raises(MCPLinearError, match="Unexpected response"):
            await linear_fetcher.query_model(TeamsResponse, QUERY)

    @pytest.mark.asyncio
    async def test_rate_limit_then_success_waits_retry_after(
        self, linear_fetcher, graphql, sleeps
    ):
        graphql.on(
            "Teams",
            [httpx.Response(429, headers={"Retry-After": "2"}), TEAMS],
        )
        data = await linear_fetcher.execute(QUERY)
        assert data == TEAMS
        assert sleeps == [2.0]
        assert len(graphql.calls) == 2

    @pytest.mark.asyncio
    async def test_401_refreshes_once_and_retries(self):
        token_requests = []
        api_auth_headers = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/oauth/token":
                token_requests.append(request)
                return httpx.Response(
                    200,
                    json={
                        "access_token": "fresh-token",
                        "refresh_token": "refresh-2",
                        "expires_in": 3600,
                    },
                )
            api_auth_headers.append(request.headers["Authorization"])
            if len(api_auth_headers) == 1:
                return httpx.Response(401)
            return httpx.Response(200, json={"data": TEAMS})

        http_client = client_for(handler)
        now = 1_800_000_000.0
        manager = TokenManager(
            identity="user:abc",
            oauth_config=LinearOAuthConfig(
                client_id="cid", client_secret="secret", redirect_uri="http://localhost/cb"
            ),
            credentials=CredentialSet(
                access_token="revoked-token",
                refresh_token="refresh-1",
                expires_at=int(now * 1000) + 3_600_000,
            ),
            http_client=http_client,
            clock=lambda: now,
        )
        client = LinearClient(
            config=LinearConfig(auth_type="oauth"),
            token_manager=manager,
            http_client=http_client,
        )

        data = await client.execute(QUERY)

        assert data == TEAMS
        assert api_auth_headers == ["Bearer revoked-token", "Bearer fresh-token"]
        assert len(token_requests) == 1

    @pytest.mark.asyncio
    async def test_401_with_static_key_is_not_retried(self, linear_fetcher, graphql):
        graphql.on("Teams", httpx.Response(401))
        with pytest.raises(MCPLinearAuthenticationError):
            await linear_fetcher.execute(QUERY)
        assert len(graphql.calls) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_budget_exhausted(self, graphql, sleeps):
        graphql.on("Teams", httpx.Response(429, headers={"Retry-After": "1"}))

        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)

        client = LinearClient(
            config=LinearConfig(
                auth_type="api_key",
                api_key=TEST_API_KEY,
                retry_policy=RetryPolicy(max_attempts=3),
            ),
            token_manager=TokenManager.for_static_key(TEST_API_KEY),
            http_client=client_for(graphql.handler),
            sleep=fake_sleep,
        )
        with pytest.raises(MCPLinearRateLimitError):
            await client.execute(QUERY)
        assert len(graphql.calls) == 3
        assert sleeps == [1.0, 1.0]
