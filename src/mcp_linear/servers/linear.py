"""Linear FastMCP server instance and tool definitions."""

import json
import logging
from typing import Annotated, Any

from fastmcp import Context, FastMCP
from pydantic import Field

from ..linear.constants import DEFAULT_PAGE_SIZE
from ..utils.decorators import (
    check_write_access,
    convert_empty_defaults_to_none,
    handle_tool_errors,
)
from .dependencies import get_linear_fetcher

logger = logging.getLogger("mcp-linear.server.linear")

ISSUE_IDENTIFIER_PATTERN = r"^[A-Za-z][A-Za-z0-9]*-\d+$"

linear_mcp = FastMCP(
    name="Linear MCP Service",
    instructions="Provides tools for searching and editing Linear issues, documents and comments.",
)


def _dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _split_names(value: str | None) -> list[str] | None:
    if not value:
        return None
    names = [name.strip() for name in value.split(",") if name.strip()]
    return names or None


Priority = Annotated[
    int | None,
    Field(
        description="(Optional) Priority: 0 = none, 1 = urgent, 2 = high, 3 = medium, 4 = low",
        ge=0,
        le=4,
        default=None,
    ),
]


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "Get Workspace Overview", "readOnlyHint": True},
)
@handle_tool_errors
async def get_workspace_overview(ctx: Context) -> str:
    """Get an overview of the Linear workspace: teams with their workflow states,
    labels and open projects, workspace labels, initiatives, active users and
    up to 50 open issues.

    Call this first to learn the names other tools accept.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON string with the overview.
    """
    linear = await get_linear_fetcher(ctx)
    overview = await linear.get_workspace_overview()
    return _dumps(overview.to_simplified_dict())


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "List Issues", "readOnlyHint": True},
)
@handle_tool_errors
@convert_empty_defaults_to_none
async def list_issues(
    ctx: Context,
    query: Annotated[
        str | None,
        Field(
            description="(Optional) Text to search for in issue titles and descriptions",
            default=None,
        ),
    ] = None,
    team_name: Annotated[
        str | None, Field(description="(Optional) Team name, e.g. 'Engineering'", default=None)
    ] = None,
    assignee_name: Annotated[
        str | None, Field(description="(Optional) Assignee's display name", default=None)
    ] = None,
    state: Annotated[
        str | None,
        Field(description="(Optional) Workflow state name, e.g. 'In Progress'", default=None),
    ] = None,
    priority: Priority = None,
    include_completed: Annotated[
        bool,
        Field(description="Include completed and canceled issues", default=False),
    ] = False,
    include_backlog: Annotated[
        bool, Field(description="Include backlog issues", default=False)
    ] = False,
    updated_since: Annotated[
        str | None,
        Field(
            description="(Optional) ISO-8601 date or timestamp; only issues updated since then",
            default=None,
        ),
    ] = None,
    limit: Annotated[
        int,
        Field(description="Maximum number of issues (1-100)", default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    ] = DEFAULT_PAGE_SIZE,
) -> str:
    """Search Linear issues. Completed, canceled and backlog issues are hidden unless requested.

    Args:
        ctx: The FastMCP context.
        query: Text to search for.
        team_name: Team to restrict to.
        assignee_name: Assignee to restrict to.
        state: Workflow state name to restrict to.
        priority: Priority to restrict to.
        include_completed: Include completed and canceled issues.
        include_backlog: Include backlog issues.
        updated_since: Only issues updated at or after this time.
        limit: Maximum number of results.

    Returns:
        JSON string with a list of issue summaries.
    """
    linear = await get_linear_fetcher(ctx)
    team_id = (await linear.resolve_team(team_name)).id if team_name else None
    assignee_id = (await linear.resolve_user(assignee_name)).id if assignee_name else None
    issues = await linear.list_issues(
        query=query,
        team_id=team_id,
        assignee_id=assignee_id,
        state=state,
        priority=priority,
        include_completed=include_completed,
        include_backlog=include_backlog,
        updated_since=updated_since,
        first=limit,
    )
    return _dumps([issue.to_summary_dict() for issue in issues])


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "Get Issue", "readOnlyHint": True},
)
@handle_tool_errors
async def get_issue(
    ctx: Context,
    identifier: Annotated[
        str,
        Field(
            description="Issue identifier (e.g., 'ENG-123')",
            pattern=ISSUE_IDENTIFIER_PATTERN,
        ),
    ],
) -> str:
    """Get full details of a Linear issue.

    Args:
        ctx: The FastMCP context.
        identifier: The issue identifier.

    Returns:
        JSON string with the issue.
    """
    linear = await get_linear_fetcher(ctx)
    issue = await linear.get_issue(identifier)
    return _dumps(issue.to_simplified_dict())


@linear_mcp.tool(
    tags={"linear", "write"},
    annotations={"title": "Create Issue", "destructiveHint": True},
)
@handle_tool_errors
@check_write_access
async def create_issue(
    ctx: Context,
    team_name: Annotated[str, Field(description="Name of the team that owns the issue")],
    title: Annotated[str, Field(description="Issue title", min_length=1)],
    description: Annotated[
        str | None, Field(description="(Optional) Description in Markdown", default=None)
    ] = None,
    priority: Priority = None,
    assignee_name: Annotated[
        str | None, Field(description="(Optional) Assignee's display name", default=None)
    ] = None,
    labels: Annotated[
        str | None,
        Field(description="(Optional) Comma-separated label names, e.g. 'Bug,Frontend'", default=None),
    ] = None,
    project_name: Annotated[
        str | None, Field(description="(Optional) Open project of the team", default=None)
    ] = None,
    state_name: Annotated[
        str | None, Field(description="(Optional) Workflow state name, e.g. 'Todo'", default=None)
    ] = None,
    due_date: Annotated[
        str | None, Field(description="(Optional) Due date, YYYY-MM-DD", default=None)
    ] = None,
) -> str:
    """Create a Linear issue. Team, assignee, labels, project and state are given by name.

    Args:
        ctx: The FastMCP context.
        team_name: The team.
        title: The title.
        description: The description.
        priority: The priority.
        assignee_name: The assignee.
        labels: Comma-separated label names.
        project_name: The project.
        state_name: The workflow state.
        due_date: The due date.

    Returns:
        JSON string with the created issue's identifier and URL.
    """
    linear = await get_linear_fetcher(ctx)
    result = await linear.create_issue_by_name(
        team_name=team_name,
        title=title,
        description=description,
        priority=priority,
        assignee_name=assignee_name,
        label_names=_split_names(labels),
        project_name=project_name,
        state_name=state_name,
        due_date=due_date,
    )
    return _dumps(result.to_simplified_dict())


@linear_mcp.tool(
    tags={"linear", "write"},
    annotations={"title": "Update Issue", "destructiveHint": True},
)
@handle_tool_errors
@check_write_access
@convert_empty_defaults_to_none
async def update_issue(
    ctx: Context,
    identifier: Annotated[
        str,
        Field(description="Issue identifier (e.g., 'ENG-123')", pattern=ISSUE_IDENTIFIER_PATTERN),
    ],
    title: Annotated[str | None, Field(description="(Optional) New title", default=None)] = None,
    description: Annotated[
        str | None, Field(description="(Optional) New description in Markdown", default=None)
    ] = None,
    priority: Priority = None,
    assignee_name: Annotated[
        str | None, Field(description="(Optional) New assignee's display name", default=None)
    ] = None,
    labels: Annotated[
        str | None,
        Field(description="(Optional) Comma-separated label names; replaces the current labels", default=None),
    ] = None,
    project_name: Annotated[
        str | None, Field(description="(Optional) New project", default=None)
    ] = None,
    state_name: Annotated[
        str | None, Field(description="(Optional) New workflow state, e.g. 'Done'", default=None)
    ] = None,
    due_date: Annotated[
        str | None, Field(description="(Optional) New due date, YYYY-MM-DD", default=None)
    ] = None,
) -> str:
    """Update a Linear issue. Only the fields given are changed.

    Args:
        ctx: The FastMCP context.
        identifier: The issue identifier.
        title: New title.
        description: New description.
        priority: New priority.
        assignee_name: New assignee.
        labels: New comma-separated label names.
        project_name: New project.
        state_name: New workflow state.
        due_date: New due date.

    Returns:
        JSON string with the updated issue's identifier and URL.
    """
    linear = await get_linear_fetcher(ctx)
    result = await linear.update_issue_by_name(
        identifier=identifier,
        title=title,
        description=description,
        priority=priority,
        assignee_name=assignee_name,
        label_names=_split_names(labels),
        project_name=project_name,
        state_name=state_name,
        due_date=due_date,
    )
    return _dumps(result.to_simplified_dict())


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "List Teams", "readOnlyHint": True},
)
@handle_tool_errors
async def list_teams(ctx: Context) -> str:
    """List all teams in the workspace.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON string with id, name and key of every team.
    """
    linear = await get_linear_fetcher(ctx)
    return _dumps([team.to_simplified_dict() for team in await linear.list_teams()])


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "List Workflow States", "readOnlyHint": True},
)
@handle_tool_errors
async def list_states(
    ctx: Context,
    team_name: Annotated[str, Field(description="Team name")],
) -> str:
    """List the workflow states of a team.

    Args:
        ctx: The FastMCP context.
        team_name: The team.

    Returns:
        JSON string with id, name and type of every state.
    """
    linear = await get_linear_fetcher(ctx)
    team = await linear.resolve_team(team_name)
    states = await linear.list_states(team.id)
    return _dumps([state.to_simplified_dict() for state in states])


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "List Users", "readOnlyHint": True},
)
@handle_tool_errors
async def list_users(ctx: Context) -> str:
    """List users of the workspace.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON string with id, name and active flag of every user.
    """
    linear = await get_linear_fetcher(ctx)
    return _dumps([user.to_simplified_dict() for user in await linear.list_users()])


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "List Labels", "readOnlyHint": True},
)
@handle_tool_errors
@convert_empty_defaults_to_none
async def list_labels(
    ctx: Context,
    team_name: Annotated[
        str | None,
        Field(description="(Optional) Team name; all labels when omitted", default=None),
    ] = None,
) -> str:
    """List issue labels.

    Args:
        ctx: The FastMCP context.
        team_name: Restrict to this team's labels.

    Returns:
        JSON string with id, name and color of every label.
    """
    linear = await get_linear_fetcher(ctx)
    team_id = (await linear.resolve_team(team_name)).id if team_name else None
    return _dumps([label.to_simplified_dict() for label in await linear.list_labels(team_id)])


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "List Projects", "readOnlyHint": True},
)
@handle_tool_errors
@convert_empty_defaults_to_none
async def list_projects(
    ctx: Context,
    team_name: Annotated[
        str | None,
        Field(description="(Optional) Team name; all projects when omitted", default=None),
    ] = None,
    include_completed: Annotated[
        bool, Field(description="Include completed and canceled projects", default=False)
    ] = False,
) -> str:
    """List projects.

    Args:
        ctx: The FastMCP context.
        team_name: Restrict to this team's projects.
        include_completed: Include completed and canceled projects.

    Returns:
        JSON string with id, name and state of every project.
    """
    linear = await get_linear_fetcher(ctx)
    team_id = (await linear.resolve_team(team_name)).id if team_name else None
    projects = await linear.list_projects(team_id, include_completed=include_completed)
    return _dumps([project.to_simplified_dict() for project in projects])


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "List Initiatives", "readOnlyHint": True},
)
@handle_tool_errors
async def list_initiatives(ctx: Context) -> str:
    """List initiatives.

    Args:
        ctx: The FastMCP context.

    Returns:
        JSON string with id and name of every initiative.
    """
    linear = await get_linear_fetcher(ctx)
    initiatives = await linear.list_initiatives()
    return _dumps([initiative.to_simplified_dict() for initiative in initiatives])


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "List Documents", "readOnlyHint": True},
)
@handle_tool_errors
@convert_empty_defaults_to_none
async def list_documents(
    ctx: Context,
    query: Annotated[
        str | None, Field(description="(Optional) Text to search for in titles", default=None)
    ] = None,
    project_name: Annotated[
        str | None, Field(description="(Optional) Project name", default=None)
    ] = None,
    initiative_name: Annotated[
        str | None, Field(description="(Optional) Initiative name", default=None)
    ] = None,
    include_archived: Annotated[
        bool, Field(description="Include archived documents", default=False)
    ] = False,
    limit: Annotated[
        int,
        Field(description="Maximum number of documents (1-100)", default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    ] = DEFAULT_PAGE_SIZE,
) -> str:
    """Search Linear documents. Use get_document with a slug_id for the content.

    Args:
        ctx: The FastMCP context.
        query: Text to search for.
        project_name: Project to restrict to.
        initiative_name: Initiative to restrict to.
        include_archived: Include archived documents.
        limit: Maximum number of results.

    Returns:
        JSON string with title and slug_id of matching documents.
    """
    linear = await get_linear_fetcher(ctx)
    project_id = (await linear.resolve_project(project_name)).id if project_name else None
    initiative_id = (
        (await linear.resolve_initiative(initiative_name)).id if initiative_name else None
    )
    documents = await linear.list_documents(
        query=query,
        project_id=project_id,
        initiative_id=initiative_id,
        include_archived=include_archived,
        first=limit,
    )
    return _dumps([document.to_summary_dict() for document in documents])


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "Get Document", "readOnlyHint": True},
)
@handle_tool_errors
async def get_document(
    ctx: Context,
    slug_id: Annotated[str, Field(description="Document slug ID, as returned by list_documents")],
) -> str:
    """Get a Linear document including its content.

    Args:
        ctx: The FastMCP context.
        slug_id: The document slug ID.

    Returns:
        JSON string with the document.
    """
    linear = await get_linear_fetcher(ctx)
    document = await linear.get_document(slug_id)
    return _dumps(document.to_simplified_dict())


@linear_mcp.tool(
    tags={"linear", "write"},
    annotations={"title": "Create Document", "destructiveHint": True},
)
@handle_tool_errors
@check_write_access
async def create_document(
    ctx: Context,
    title: Annotated[str, Field(description="Document title", min_length=1)],
    project_name: Annotated[str, Field(description="Name of the open project to file it under")],
    content: Annotated[
        str | None, Field(description="(Optional) Content in Markdown", default=None)
    ] = None,
) -> str:
    """Create a Linear document in a project.

    Args:
        ctx: The FastMCP context.
        title: The title.
        project_name: The project.
        content: The content.

    Returns:
        JSON string with the created document's slug_id and URL.
    """
    linear = await get_linear_fetcher(ctx)
    result = await linear.create_document_by_name(
        title=title, project_name=project_name, content=content
    )
    return _dumps(result.to_simplified_dict())


@linear_mcp.tool(
    tags={"linear", "write"},
    annotations={"title": "Update Document", "destructiveHint": True},
)
@handle_tool_errors
@check_write_access
@convert_empty_defaults_to_none
async def update_document(
    ctx: Context,
    slug_id: Annotated[str, Field(description="Document slug ID")],
    title: Annotated[str | None, Field(description="(Optional) New title", default=None)] = None,
    content: Annotated[
        str | None, Field(description="(Optional) New content in Markdown", default=None)
    ] = None,
    project_name: Annotated[
        str | None, Field(description="(Optional) Move to this project", default=None)
    ] = None,
    initiative_name: Annotated[
        str | None, Field(description="(Optional) Attach to this initiative", default=None)
    ] = None,
) -> str:
    """Update a Linear document. Only the fields given are changed.

    Args:
        ctx: The FastMCP context.
        slug_id: The document slug ID.
        title: New title.
        content: New content.
        project_name: New project.
        initiative_name: New initiative.

    Returns:
        JSON string with the updated document's slug_id and URL.
    """
    linear = await get_linear_fetcher(ctx)
    result = await linear.update_document_by_name(
        slug_id=slug_id,
        title=title,
        content=content,
        project_name=project_name,
        initiative_name=initiative_name,
    )
    return _dumps(result.to_simplified_dict())


@linear_mcp.tool(
    tags={"linear", "read"},
    annotations={"title": "Get Issue Comments", "readOnlyHint": True},
)
@handle_tool_errors
async def get_issue_comments(
    ctx: Context,
    identifier: Annotated[
        str,
        Field(description="Issue identifier (e.g., 'ENG-123')", pattern=ISSUE_IDENTIFIER_PATTERN),
    ],
) -> str:
    """Get the comments of a Linear issue.

    Args:
        ctx: The FastMCP context.
        identifier: The issue identifier.

    Returns:
        JSON string with the comments.
    """
    linear = await get_linear_fetcher(ctx)
    comments = await linear.get_issue_comments(identifier)
    return _dumps([comment.to_simplified_dict() for comment in comments])


@linear_mcp.tool(
    tags={"linear", "write"},
    annotations={"title": "Create Comment", "destructiveHint": True},
)
@handle_tool_errors
@check_write_access
async def create_comment(
    ctx: Context,
    identifier: Annotated[
        str,
        Field(description="Issue identifier (e.g., 'ENG-123')", pattern=ISSUE_IDENTIFIER_PATTERN),
    ],
    body: Annotated[str, Field(description="Comment text in Markdown", min_length=1)],
) -> str:
    """Add a comment to a Linear issue.

    Args:
        ctx: The FastMCP context.
        identifier: The issue identifier.
        body: The comment text.

    Returns:
        JSON string with the new comment's ID.
    """
    linear = await get_linear_fetcher(ctx)
    result = await linear.create_comment(identifier, body)
    return _dumps(result.to_simplified_dict())


@linear_mcp.tool(
    tags={"linear", "write"},
    annotations={"title": "Update Comment", "destructiveHint": True},
)
@handle_tool_errors
@check_write_access
async def update_comment(
    ctx: Context,
    comment_id: Annotated[str, Field(description="ID of the comment to edit")],
    body: Annotated[str, Field(description="New comment text in Markdown", min_length=1)],
) -> str:
    """Replace the text of a comment on a Linear issue.

    Args:
        ctx: The FastMCP context.
        comment_id: The comment ID.
        body: The new text.

    Returns:
        JSON string with the comment's ID.
    """
    linear = await get_linear_fetcher(ctx)
    result = await linear.update_comment(comment_id, body)
    return _dumps(result.to_simplified_dict())
