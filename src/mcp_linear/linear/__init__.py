"""Linear API module for MCP Linear.

This module provides various Linear API client implementations.
"""

from .cache import ReferenceCache
from .client import LinearClient, execute_query
from .comments import CommentsMixin
from .config import LinearConfig
from .documents import DocumentsMixin
from .issues import IssuesMixin
from .retry import RetryPolicy, execute_with_retry
from .workspace import WorkspaceMixin


class LinearFetcher(
    WorkspaceMixin,
    CommentsMixin,
    DocumentsMixin,
    IssuesMixin,
):
    """
    The main Linear client class providing access to all Linear operations.

    This class inherits from multiple mixins that provide specific functionality:
    - TeamsMixin, UsersMixin, LabelsMixin, ProjectsMixin, InitiativesMixin:
      cached reference data and name resolution
    - IssuesMixin: Issue search, retrieval, creation and updates
    - CommentsMixin: Comment listing, creation and updates
    - DocumentsMixin: Document search, retrieval, creation and updates
    - WorkspaceMixin: Workspace overview
    """

    pass


__all__ = [
    "LinearClient",
    "LinearConfig",
    "LinearFetcher",
    "ReferenceCache",
    "RetryPolicy",
    "execute_query",
    "execute_with_retry",
]
