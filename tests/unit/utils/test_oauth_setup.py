"""Tests for the OAuth setup wizard."""

from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from mcp_linear.utils.credentials import CredentialSet
from mcp_linear.utils.oauth import AuthorizedIdentity
from mcp_linear.utils.oauth_setup import (
    OAuthSetupArgs,
    parse_redirect_uri,
    run_oauth_flow,
    run_oauth_setup,
)

IDENTITY = AuthorizedIdentity(
    identity="user:u-42",
    user_id="u-42",
    name="Ada",
    email="ada@example.com",
    credentials=CredentialSet(access_token="at"),
)


@pytest.fixture
def setup_args():
    return OAuthSetupArgs(
        client_id="cid",
        client_secret="secret",
        redirect_uri="http://localhost:8080/callback",
        encryption_key="key",
    )


class FakeBrowser:
    """Stands in for the user: answers the authorization URL with a callback."""

    def __init__(self, state_override=None, error=None):
        self.state_override = state_override
        self.error = error
        self.result = None

    def start_server(self, port, result):
        self.port = port
        self.result = result
        return MagicMock()

    def open(self, url):
        params = parse_qs(urlparse(url).query)
        if self.error:
            self.result.error = self.error
        else:
            self.result.code = "auth-code"
            self.result.state = self.state_override or params["state"][0]
        self.result.received.set()
        return True


def run_with(browser, args):
    with (
        patch(
            "mcp_linear.utils.oauth_setup.start_callback_server",
            side_effect=browser.start_server,
        ),
        patch("mcp_linear.utils.oauth_setup.webbrowser.open", side_effect=browser.open),
        patch(
            "mcp_linear.utils.oauth_setup.LinearOAuthConfig.complete_authorization",
            new=AsyncMock(return_value=IDENTITY),
        ) as complete,
    ):
        return run_oauth_flow(args), complete


@pytest.mark.parametrize(
    ("uri", "expected"),
    [
        ("http://localhost:8080/callback", ("localhost", 8080)),
        ("http://127.0.0.1/callback", ("127.0.0.1", 80)),
        ("https://example.com/cb", ("example.com", 443)),
    ],
)
def test_parse_redirect_uri(uri, expected):
    assert parse_redirect_uri(uri) == expected


def test_parse_redirect_uri_without_host():
    with pytest.raises(ValueError):
        parse_redirect_uri("/callback")


def test_flow_completes_authorization(setup_args):
    browser = FakeBrowser()
    identity, complete = run_with(browser, setup_args)

    assert identity == IDENTITY
    assert browser.port == 8080
    assert complete.await_args.args[0] == "auth-code"


def test_flow_rejects_state_mismatch(setup_args):
    identity, complete = run_with(FakeBrowser(state_override="forged.state"), setup_args)
    assert identity is None
    complete.assert_not_awaited()


def test_flow_reports_provider_error(setup_args):
    identity, complete = run_with(FakeBrowser(error="access_denied"), setup_args)
    assert identity is None
    complete.assert_not_awaited()


def test_flow_requires_localhost_redirect(setup_args):
    setup_args.redirect_uri = "https://example.com/callback"
    with patch("mcp_linear.utils.oauth_setup.start_callback_server") as start:
        assert run_oauth_flow(setup_args) is None
    start.assert_not_called()


def test_wizard_requires_client_id(monkeypatch):
    for name in (
        "LINEAR_OAUTH_CLIENT_ID",
        "LINEAR_OAUTH_CLIENT_SECRET",
        "LINEAR_OAUTH_REDIRECT_URI",
        "LINEAR_OAUTH_SCOPE",
        "CREDENTIAL_ENCRYPTION_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    with patch("builtins.input", return_value=""):
        assert run_oauth_setup() == 1


def test_wizard_prints_identity(monkeypatch, capsys):
    monkeypatch.setenv("LINEAR_OAUTH_CLIENT_ID", "cid")
    monkeypatch.setenv("LINEAR_OAUTH_CLIENT_SECRET", "secret")
    monkeypatch.setenv("LINEAR_OAUTH_REDIRECT_URI", "http://localhost:8080/callback")
    monkeypatch.setenv("CREDENTIAL_ENCRYPTION_KEY", "key")
    with (
        patch("builtins.input", return_value=""),
        patch("mcp_linear.utils.oauth_setup.run_oauth_flow", return_value=IDENTITY) as flow,
    ):
        assert run_oauth_setup() == 0

    assert flow.call_args.args[0].client_id == "cid"
    assert "LINEAR_OAUTH_IDENTITY=user:u-42" in capsys.readouterr().out
