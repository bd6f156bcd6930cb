"""
Linear workspace overview models.
"""

from typing import Any

from pydantic import Field

from ..base import ApiModel, Connection, NamedRef
from .common import LinearUser
from .issue import LinearIssue


class OverviewProject(ApiModel):
    name: str
    state: str | None = None


class TeamOverview(ApiModel):
    """A team with the names of its workflow states, labels and projects."""

    id: str
    name: str
    key: str
    states: Connection[NamedRef] = Field(default_factory=Connection)
    labels: Connection[NamedRef] = Field(default_factory=Connection)
    projects: Connection[OverviewProject] = Field(default_factory=Connection)

    def to_simplified_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "key": self.key,
            "states": [state.name for state in self.states.nodes],
            "labels": [label.name for label in self.labels.nodes],
            "projects": [project.name for project in self.projects.nodes],
        }


class WorkspaceQueryResponse(ApiModel):
    teams: Connection[TeamOverview]
    issue_labels: Connection[NamedRef] = Field(alias="issueLabels")
    initiatives: Connection[NamedRef]
    users: Connection[LinearUser]


class WorkspaceOverview(ApiModel):
    """Everything a caller needs to orient itself in the workspace, in one payload."""

    teams: list[TeamOverview]
    workspace_labels: list[str]
    initiatives: list[str]
    users: list[LinearUser]
    active_issues: list[LinearIssue]

    def to_simplified_dict(self) -> dict[str, Any]:
        return {
            "teams": [team.to_simplified_dict() for team in self.teams],
            "workspace_labels": self.workspace_labels,
            "initiatives": self.initiatives,
            "users": [{"id": user.id, "name": user.name} for user in self.users],
            "active_issues": [issue.to_summary_dict() for issue in self.active_issues],
        }
