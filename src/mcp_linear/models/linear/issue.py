"""
Linear issue models.

Issues are denormalized projections: nested ``{ name }`` objects are
flattened into ``<field>_name`` keys and never cached.
"""

from typing import Any

from pydantic import BaseModel, Field

from ..base import ApiModel, Connection, NamedRef, ref_name


class IssueState(BaseModel):
    name: str
    type: str | None = None


class LinearIssue(ApiModel):
    """
    Model representing a Linear issue.
    """

    id: str | None = None
    identifier: str
    title: str
    description: str | None = None
    url: str | None = None
    priority: int | None = None
    due_date: str | None = Field(default=None, alias="dueDate")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    state: IssueState | None = None
    assignee: NamedRef | None = None
    creator: NamedRef | None = None
    project: NamedRef | None = None
    labels: Connection[NamedRef] | None = None

    @property
    def state_type(self) -> str | None:
        return self.state.type if self.state else None

    def to_summary_dict(self) -> dict[str, Any]:
        """The compact row used by issue listings."""
        return {
            "identifier": self.identifier,
            "title": self.title,
            "state": self.state.name if self.state else None,
            "priority": self.priority,
            "project_name": ref_name(self.project),
            "due_date": self.due_date,
        }

    def to_simplified_dict(self) -> dict[str, Any]:
        result = self.to_summary_dict()
        result.update(
            {
                "description": self.description,
                "assignee_name": ref_name(self.assignee),
                "creator_name": ref_name(self.creator),
                "labels": [label.name for label in self.labels.nodes]
                if self.labels
                else [],
                "created_at": self.created_at,
                "updated_at": self.updated_at,
            }
        )
        if self.url:
            result["url"] = self.url
        return result


class IssueRef(ApiModel):
    id: str
    identifier: str
    title: str
    url: str | None = None


class IssuePayload(ApiModel):
    """Result of an issue mutation."""

    success: bool
    issue: IssueRef | None = None

    def to_simplified_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.issue:
            result["issue"] = self.issue.to_simplified_dict()
        return result


class IssuesResponse(ApiModel):
    issues: Connection[LinearIssue]


class IssueResponse(ApiModel):
    issue: LinearIssue | None = None


class IssueIdResponse(ApiModel):
    issue: IssueRef | None = None


class IssueCreateResponse(ApiModel):
    issue_create: IssuePayload = Field(alias="issueCreate")


class IssueUpdateResponse(ApiModel):
    issue_update: IssuePayload = Field(alias="issueUpdate")
