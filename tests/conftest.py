"""Shared fixtures: a scriptable fake of Linear's GraphQL endpoint."""

import json
import re
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from mcp_linear.linear import LinearFetcher
from mcp_linear.linear.cache import ReferenceCache
from mcp_linear.linear.config import LinearConfig
from mcp_linear.utils.token_manager import TokenManager
from tests.fixtures.linear_mocks import (
    ENG_PROJECTS,
    ENG_STATES,
    INITIATIVES,
    TEAMS,
    TEST_API_KEY,
    USERS,
    WORKSPACE_PROJECTS,
    labels_response,
)

_OPERATION_RE = re.compile(r"\b(?:query|mutation)\s+(\w+)")


@dataclass
class RecordedCall:
    operation: str
    variables: dict[str, Any]
    authorization: str | None


@dataclass
class GraphQLStub:
    """Answers GraphQL requests by operation name.

    A responder is the ``data`` dict, a ready ``httpx.Response``, a callable
    taking the variables and returning one of those, or a list of responders
    consumed in order (the last one repeats).
    """

    responders: dict[str, Any] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)

    def on(self, operation: str, responder: Any) -> None:
        self.responders[operation] = responder

    def operations(self) -> list[str]:
        return [call.operation for call in self.calls]

    def variables_for(self, operation: str) -> list[dict[str, Any]]:
        return [call.variables for call in self.calls if call.operation == operation]

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        match = _OPERATION_RE.search(payload["query"])
        operation = match.group(1) if match else "anonymous"
        variables = payload.get("variables") or {}
        self.calls.append(
            RecordedCall(operation, variables, request.headers.get("Authorization"))
        )

        responder = self.responders.get(operation)
        if responder is None:
            return httpx.Response(
                200, json={"errors": [{"message": f"unexpected operation {operation}"}]}
            )
        if isinstance(responder, list):
            responder = responder.pop(0) if len(responder) > 1 else responder[0]
        if callable(responder):
            responder = responder(variables)
        if isinstance(responder, httpx.Response):
            return responder
        return httpx.Response(200, json={"data": responder})


@pytest.fixture
def graphql() -> GraphQLStub:
    return GraphQLStub()


@pytest.fixture
def sleeps() -> list[float]:
    """Durations passed to the fetcher's sleep; nothing actually waits."""
    return []


@pytest.fixture
def linear_config() -> LinearConfig:
    return LinearConfig(auth_type="api_key", api_key=TEST_API_KEY)


@pytest.fixture
def linear_fetcher(graphql, sleeps, linear_config) -> LinearFetcher:
    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return LinearFetcher(
        config=linear_config,
        token_manager=TokenManager.for_static_key(TEST_API_KEY),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(graphql.handler)),
        cache=ReferenceCache(),
        sleep=fake_sleep,
    )


@pytest.fixture
def reference_data(graphql: GraphQLStub) -> GraphQLStub:
    """Registers teams, states, users, labels, projects and initiatives."""
    graphql.on("Teams", TEAMS)
    graphql.on("TeamStates", ENG_STATES)
    graphql.on("Users", USERS)
    graphql.on("IssueLabels", labels_response)
    graphql.on("TeamProjects", ENG_PROJECTS)
    graphql.on("Projects", WORKSPACE_PROJECTS)
    graphql.on("Initiatives", INITIATIVES)
    return graphql
