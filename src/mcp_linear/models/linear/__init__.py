"""
Linear data models for the MCP Linear server.
"""

from .comment import CommentPayload, LinearComment
from .common import (
    LinearInitiative,
    LinearLabel,
    LinearProject,
    LinearTeam,
    LinearUser,
    LinearViewer,
    LinearWorkflowState,
)
from .document import DocumentPayload, LinearDocument
from .issue import IssuePayload, LinearIssue
from .workspace import TeamOverview, WorkspaceOverview

__all__ = [
    "CommentPayload",
    "DocumentPayload",
    "IssuePayload",
    "LinearComment",
    "LinearDocument",
    "LinearInitiative",
    "LinearIssue",
    "LinearLabel",
    "LinearProject",
    "LinearTeam",
    "LinearUser",
    "LinearViewer",
    "LinearWorkflowState",
    "TeamOverview",
    "WorkspaceOverview",
]
