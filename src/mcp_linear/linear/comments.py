"""Module for Linear comment operations."""

import logging

from ..exceptions import MCPLinearError, MCPLinearNotFoundError
from ..models.linear.comment import (
    CommentCreateResponse,
    CommentPayload,
    CommentUpdateResponse,
    IssueCommentsResponse,
    LinearComment,
)
from .issues import IssuesMixin

logger = logging.getLogger("mcp-linear.comments")

ISSUE_COMMENTS_QUERY = """
query GetIssueComments($id: String!) {
  issue(id: $id) {
    comments {
      nodes {
        id
        body
        createdAt
        updatedAt
        user { name }
      }
    }
  }
}
"""

CREATE_COMMENT_MUTATION = """
mutation CreateComment($input: CommentCreateInput!) {
  commentCreate(input: $input) {
    success
    comment { id body }
  }
}
"""

UPDATE_COMMENT_MUTATION = """
mutation UpdateComment($id: String!, $input: CommentUpdateInput!) {
  commentUpdate(id: $id, input: $input) {
    success
    comment { id body }
  }
}
"""


class CommentsMixin(IssuesMixin):
    """Mixin for Linear comment operations."""

    async def get_issue_comments(self, identifier: str) -> list[LinearComment]:
        """
        Get the comments of an issue.

        Args:
            identifier: The issue identifier (e.g. 'ENG-123')

        Returns:
            The comments, oldest first as Linear returns them

        Raises:
            MCPLinearNotFoundError: If the issue does not exist
        """
        response = await self.query_model(
            IssueCommentsResponse, ISSUE_COMMENTS_QUERY, {"id": identifier}
        )
        if response.issue is None:
            raise MCPLinearNotFoundError("Issue", identifier)
        return response.issue.comments.nodes

    async def create_comment(self, identifier: str, body: str) -> CommentPayload:
        """Add a markdown comment to the issue with the given identifier."""
        issue = await self.get_issue_ref(identifier)
        response = await self.query_model(
            CommentCreateResponse,
            CREATE_COMMENT_MUTATION,
            {"input": {"issueId": issue.id, "body": body}},
        )
        if not response.comment_create.success:
            raise MCPLinearError(f"Linear reported failure to comment on {identifier}")
        return response.comment_create

    async def update_comment(self, comment_id: str, body: str) -> CommentPayload:
        """Replace the body of an existing comment."""
        response = await self.query_model(
            CommentUpdateResponse,
            UPDATE_COMMENT_MUTATION,
            {"id": comment_id, "input": {"body": body}},
        )
        if not response.comment_update.success:
            raise MCPLinearError(f"Linear reported failure to update comment {comment_id}")
        return response.comment_update
