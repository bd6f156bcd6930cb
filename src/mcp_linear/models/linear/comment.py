"""
Linear comment models.
"""

from typing import Any

from pydantic import Field

from ..base import ApiModel, Connection, NamedRef, ref_name


class LinearComment(ApiModel):
    id: str
    body: str = ""
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    user: NamedRef | None = None

    def to_simplified_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "body": self.body,
            "user_name": ref_name(self.user),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class CommentRef(ApiModel):
    id: str
    body: str | None = None


class CommentPayload(ApiModel):
    success: bool
    comment: CommentRef | None = None

    def to_simplified_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.comment:
            result["comment_id"] = self.comment.id
        return result


class _IssueComments(ApiModel):
    comments: Connection[LinearComment]


class IssueCommentsResponse(ApiModel):
    issue: _IssueComments | None = None


class CommentCreateResponse(ApiModel):
    comment_create: CommentPayload = Field(alias="commentCreate")


class CommentUpdateResponse(ApiModel):
    comment_update: CommentPayload = Field(alias="commentUpdate")
