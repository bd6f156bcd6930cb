class MCPLinearError(Exception):
    """Base class for errors raised while talking to Linear."""

    pass


class MCPLinearAuthenticationError(MCPLinearError):
    """Raised when Linear rejects the credential (401) or it cannot be renewed."""

    pass


class MCPLinearRateLimitError(MCPLinearError):
    """Raised when Linear answers with 429 Too Many Requests."""

    def __init__(self, message: str, retry_after_seconds: int | None = None) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class MCPLinearTransportError(MCPLinearError):
    """Raised for any other upstream failure: non-2xx status, GraphQL errors or network errors."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MCPLinearNotFoundError(MCPLinearError):
    """Raised when a human-readable name does not match any entity."""

    def __init__(self, kind: str, name: str, scope: str | None = None) -> None:
        message = f"{kind} not found"
        if scope:
            message += f" {scope}"
        super().__init__(f"{message}: {name}")
        self.kind = kind
        self.name = name
        self.scope = scope


class MCPLinearConfigurationError(MCPLinearError):
    """Raised when a required setting or secret is missing."""

    pass
