"""Tests for loading LinearConfig from the environment."""

import pytest

from mcp_linear.exceptions import MCPLinearConfigurationError
from mcp_linear.linear.config import LinearConfig
from mcp_linear.linear.constants import LINEAR_API_URL

ENV_VARS = [
    "LINEAR_API_KEY",
    "LINEAR_OAUTH_CLIENT_ID",
    "LINEAR_OAUTH_CLIENT_SECRET",
    "LINEAR_OAUTH_IDENTITY",
    "CREDENTIAL_ENCRYPTION_KEY",
    "LINEAR_API_URL",
    "LINEAR_CACHE_TTL",
    "LINEAR_MAX_RETRIES",
    "MCP_LINEAR_MULTI_USER",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_api_key(monkeypatch):
    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_abc")
    config = LinearConfig.from_env()
    assert config.auth_type == "api_key"
    assert config.api_key == "lin_api_abc"
    assert config.api_url == LINEAR_API_URL
    assert config.cache_ttl == 300


def test_oauth(monkeypatch):
    monkeypatch.setenv("LINEAR_OAUTH_CLIENT_ID", "cid")
    monkeypatch.setenv("LINEAR_OAUTH_CLIENT_SECRET", "secret")
    monkeypatch.setenv("LINEAR_OAUTH_IDENTITY", "user:1")
    monkeypatch.setenv("CREDENTIAL_ENCRYPTION_KEY", "key")
    config = LinearConfig.from_env()
    assert config.auth_type == "oauth"
    assert config.is_oauth_configured


def test_oauth_without_encryption_key(monkeypatch):
    monkeypatch.setenv("LINEAR_OAUTH_CLIENT_ID", "cid")
    monkeypatch.setenv("LINEAR_OAUTH_CLIENT_SECRET", "secret")
    monkeypatch.setenv("LINEAR_OAUTH_IDENTITY", "user:1")
    with pytest.raises(MCPLinearConfigurationError, match="CREDENTIAL_ENCRYPTION_KEY"):
        LinearConfig.from_env()


def test_multi_user_mode_needs_no_server_credential(monkeypatch):
    monkeypatch.setenv("MCP_LINEAR_MULTI_USER", "true")
    assert LinearConfig.from_env().auth_type == "request"


def test_nothing_configured(monkeypatch):
    with pytest.raises(MCPLinearConfigurationError, match="No Linear credentials"):
        LinearConfig.from_env()


def test_numeric_settings(monkeypatch):
    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_abc")
    monkeypatch.setenv("LINEAR_CACHE_TTL", "60")
    monkeypatch.setenv("LINEAR_MAX_RETRIES", "5")
    config = LinearConfig.from_env()
    assert config.cache_ttl == 60.0
    assert config.retry_policy.max_attempts == 5


def test_invalid_number_is_configuration_error(monkeypatch):
    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_abc")
    monkeypatch.setenv("LINEAR_MAX_RETRIES", "many")
    with pytest.raises(MCPLinearConfigurationError):
        LinearConfig.from_env()
