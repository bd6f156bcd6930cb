"""Constants for the Linear GraphQL API."""

LINEAR_API_URL = "https://api.linear.app/graphql"
LINEAR_AUTHORIZE_URL = "https://linear.app/oauth/authorize"
LINEAR_TOKEN_URL = "https://api.linear.app/oauth/token"  # noqa: S105 - public endpoint URL

# Static personal API keys are sent without the Bearer scheme
STATIC_KEY_PREFIX = "lin_api_"

DEFAULT_OAUTH_SCOPE = "read,write"
DEFAULT_REDIRECT_URI = "http://localhost:8080/callback"

DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

# Linear does not always return expires_in; access tokens then live about a day
DEFAULT_TOKEN_LIFETIME_SECONDS = 23 * 60 * 60

DEFAULT_PAGE_SIZE = 25
OVERVIEW_ISSUE_LIMIT = 50

# Workflow state types hidden from issue listings unless asked for
COMPLETED_STATE_TYPES = ("completed", "canceled")
BACKLOG_STATE_TYPE = "backlog"

# Project states that count as closed
CLOSED_PROJECT_STATES = ("completed", "canceled")
