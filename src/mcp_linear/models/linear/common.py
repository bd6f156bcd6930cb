"""
Linear reference-data models.

Teams, users, labels, projects, initiatives and workflow states are small
records that are resolved by name over and over, so they are cached.
"""

from typing import Any

from pydantic import Field

from ..base import ApiModel, Connection


class LinearTeam(ApiModel):
    id: str
    name: str
    key: str


class LinearUser(ApiModel):
    id: str
    name: str
    active: bool = True
    email: str | None = None


class LinearLabel(ApiModel):
    id: str
    name: str
    color: str | None = None


class LinearProject(ApiModel):
    id: str
    name: str
    state: str | None = None


class LinearInitiative(ApiModel):
    id: str
    name: str


class LinearWorkflowState(ApiModel):
    """A workflow state; ``type`` is one of triage, backlog, unstarted, started, completed, canceled."""

    id: str
    name: str
    type: str | None = None


class LinearViewer(ApiModel):
    """The user an access token belongs to."""

    id: str
    name: str
    email: str | None = None


class TeamsResponse(ApiModel):
    teams: Connection[LinearTeam]


class _TeamStates(ApiModel):
    states: Connection[LinearWorkflowState]


class TeamStatesResponse(ApiModel):
    team: _TeamStates | None = None


class UsersResponse(ApiModel):
    users: Connection[LinearUser]


class LabelsResponse(ApiModel):
    issue_labels: Connection[LinearLabel] = Field(alias="issueLabels")


class ProjectsResponse(ApiModel):
    projects: Connection[LinearProject]


class _TeamProjects(ApiModel):
    projects: Connection[LinearProject]


class TeamProjectsResponse(ApiModel):
    team: _TeamProjects | None = None


class InitiativesResponse(ApiModel):
    initiatives: Connection[LinearInitiative]


def simplify_all(items: list[ApiModel]) -> list[dict[str, Any]]:
    return [item.to_simplified_dict() for item in items]
