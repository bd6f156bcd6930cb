"""
OAuth 2.0 Authorization Flow Helper for MCP Linear

This module runs Linear's OAuth 2.0 authorization flow from the command line:
1. Opens a browser to the authorization URL
2. Starts a local server to receive the callback with the authorization code
3. Exchanges the code, identifies the user and stores the encrypted credentials
4. Prints the settings the server needs to act as that user
"""

import asyncio
import http.server
import logging
import os
import secrets
import socketserver
import threading
import urllib.parse
import webbrowser
from dataclasses import dataclass, field

from ..exceptions import MCPLinearError
from ..linear.constants import DEFAULT_OAUTH_SCOPE, DEFAULT_REDIRECT_URI
from .credentials import CredentialStore, KeyringKeyValueStore
from .oauth import AuthorizedIdentity, LinearOAuthConfig, create_signed_state, parse_signed_state

logger = logging.getLogger("mcp-linear.oauth-setup")

CALLBACK_TIMEOUT_SECONDS = 300


@dataclass
class CallbackResult:
    """What the browser redirect delivered."""

    code: str | None = None
    state: str | None = None
    error: str | None = None
    received: threading.Event = field(default_factory=threading.Event)


class CallbackHandler(http.server.BaseHTTPRequestHandler):
    """HTTP request handler for the OAuth callback."""

    result: CallbackResult

    def do_GET(self) -> None:  # noqa: N802
        params = urllib.parse.parse_qs(urllib.parse.urlparse(self.path).query)
        if "error" in params:
            self.result.error = params["error"][0]
            self._send_response(f"Authorization failed: {self.result.error}", status=400)
            self.result.received.set()
            return
        if "code" not in params:
            self._send_response("Invalid callback: authorization code missing", status=400)
            return
        self.result.code = params["code"][0]
        self.result.state = params.get("state", [None])[0]
        self._send_response("Authorization successful! You can close this window now.")
        self.result.received.set()

    def _send_response(self, message: str, status: int = 200) -> None:
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.end_headers()
        html = (
            "<!DOCTYPE html><html><head><title>Linear OAuth Authorization</title></head>"
            f"<body style='font-family: sans-serif; text-align: center; padding: 40px'>"
            f"<h2>{message}</h2></body></html>"
        )
        self.wfile.write(html.encode("utf-8"))

    def log_message(self, format: str, *args: str) -> None:
        return


def parse_redirect_uri(redirect_uri: str) -> tuple[str, int]:
    """Parse the redirect URI to extract host and port."""
    parsed = urllib.parse.urlparse(redirect_uri)
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    hostname = parsed.hostname
    if not hostname:
        raise ValueError(f"Invalid redirect URI (missing hostname): {redirect_uri!r}")
    return hostname, port


def start_callback_server(port: int, result: CallbackResult) -> socketserver.TCPServer:
    """Start a local server in a daemon thread to receive the OAuth callback."""
    handler = type("BoundCallbackHandler", (CallbackHandler,), {"result": result})
    httpd = socketserver.TCPServer(("127.0.0.1", port), handler)
    threading.Thread(target=httpd.serve_forever, daemon=True).start()
    return httpd


@dataclass
class OAuthSetupArgs:
    """Arguments for the OAuth setup flow."""

    client_id: str
    client_secret: str
    redirect_uri: str
    encryption_key: str
    scope: str = DEFAULT_OAUTH_SCOPE


def run_oauth_flow(args: OAuthSetupArgs, open_browser: bool = True) -> AuthorizedIdentity | None:
    """Run the OAuth 2.0 authorization flow.

    Returns:
        The authorized identity, or None if the flow failed
    """
    oauth_config = LinearOAuthConfig(
        client_id=args.client_id,
        client_secret=args.client_secret,
        redirect_uri=args.redirect_uri,
        scope=args.scope,
    )
    state = create_signed_state({"nonce": secrets.token_urlsafe(16)}, args.encryption_key)

    try:
        hostname, port = parse_redirect_uri(args.redirect_uri)
    except ValueError as e:
        logger.error(str(e))
        return None
    if hostname not in ("localhost", "127.0.0.1"):
        logger.error(
            "The setup wizard needs a localhost redirect URI to receive the callback "
            f"(got {args.redirect_uri})"
        )
        return None

    result = CallbackResult()
    httpd = start_callback_server(port, result)
    try:
        auth_url = oauth_config.get_authorization_url(state)
        print(f"\nOpening the browser for authorization. If it does not open, visit:\n{auth_url}\n")
        if open_browser:
            webbrowser.open(auth_url)

        if not result.received.wait(CALLBACK_TIMEOUT_SECONDS):
            logger.error(
                f"Timed out waiting for authorization callback after {CALLBACK_TIMEOUT_SECONDS} seconds"
            )
            return None
    finally:
        httpd.shutdown()
        httpd.server_close()

    if result.error or not result.code:
        logger.error(f"Authorization error: {result.error or 'no code received'}")
        return None
    if result.state != state or parse_signed_state(result.state, args.encryption_key) is None:
        logger.error("State mismatch in the OAuth callback; possible CSRF attempt")
        return None

    store = CredentialStore(KeyringKeyValueStore(), args.encryption_key)
    try:
        return asyncio.run(oauth_config.complete_authorization(result.code, store))
    except MCPLinearError as e:
        logger.error(f"Failed to complete authorization: {e}")
        return None


def _prompt_for_input(prompt: str, env_var: str | None = None, is_secret: bool = False) -> str:
    """Prompt the user for input, offering the environment value as the default."""
    value = (os.getenv(env_var, "") if env_var else "").strip()
    if value:
        shown = value[:3] + "*" * max(len(value) - 6, 4) + value[-3:] if is_secret else value
        user_input = input(f"{prompt} [{shown}]: ").strip()
        return user_input or value
    return input(f"{prompt}: ").strip()


def run_oauth_setup() -> int:
    """Run the OAuth 2.0 setup wizard interactively."""
    print("\n=== Linear OAuth 2.0 Setup Wizard ===")
    print("You need an OAuth application created in Linear (Settings > API > OAuth applications).")
    print("\nPlease provide the following information:\n")

    client_id = _prompt_for_input("OAuth Client ID", "LINEAR_OAUTH_CLIENT_ID")
    client_secret = _prompt_for_input(
        "OAuth Client Secret", "LINEAR_OAUTH_CLIENT_SECRET", is_secret=True
    )
    redirect_uri = (
        _prompt_for_input("OAuth Redirect URI", "LINEAR_OAUTH_REDIRECT_URI")
        or DEFAULT_REDIRECT_URI
    )
    scope = _prompt_for_input("OAuth Scopes (comma-separated)", "LINEAR_OAUTH_SCOPE") or DEFAULT_OAUTH_SCOPE
    encryption_key = _prompt_for_input(
        "Credential encryption key", "CREDENTIAL_ENCRYPTION_KEY", is_secret=True
    )

    if not client_id:
        logger.error("OAuth Client ID is required")
        return 1
    if not client_secret:
        logger.error("OAuth Client Secret is required")
        return 1
    if not encryption_key:
        logger.error("A credential encryption key is required to store the tokens")
        return 1

    identity = run_oauth_flow(
        OAuthSetupArgs(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            encryption_key=encryption_key,
            scope=scope,
        )
    )
    if identity is None:
        return 1

    print(f"\nAuthorized as {identity.name}. Add these to your environment or .env file:\n")
    print(f"LINEAR_OAUTH_CLIENT_ID={client_id}")
    print("LINEAR_OAUTH_CLIENT_SECRET=<your client secret>")
    print(f"LINEAR_OAUTH_REDIRECT_URI={redirect_uri}")
    print(f"LINEAR_OAUTH_IDENTITY={identity.identity}")
    print("CREDENTIAL_ENCRYPTION_KEY=<the key you entered>")
    return 0
