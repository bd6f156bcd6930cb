"""Tests for the Linear issues mixin."""

import pytest

from mcp_linear.exceptions import MCPLinearError, MCPLinearNotFoundError
from mcp_linear.linear.issues import build_issue_filter, excluded_state_types
from tests.fixtures.linear_mocks import (
    ISSUE_DETAIL,
    ISSUE_REF,
    SEARCH_ISSUES,
    issue_mutation,
)


class TestBuildIssueFilter:
    def test_default_excludes_completed_canceled_and_backlog(self):
        assert build_issue_filter() == {
            "state": {"type": {"nin": ["completed", "canceled", "backlog"]}}
        }

    def test_include_everything_drops_state_filter(self):
        assert build_issue_filter(include_completed=True, include_backlog=True) == {}

    def test_state_name_is_combined_with_exclusion(self):
        issue_filter = build_issue_filter(state="In Progress")
        assert issue_filter["state"] == {
            "name": {"eq": "In Progress"},
            "type": {"nin": ["completed", "canceled", "backlog"]},
        }

    def test_query_matches_title_or_description(self):
        issue_filter = build_issue_filter(query="login", include_completed=True, include_backlog=True)
        assert issue_filter == {
            "or": [
                {"title": {"containsIgnoreCase": "login"}},
                {"description": {"containsIgnoreCase": "login"}},
            ]
        }

    def test_scalar_filters(self):
        issue_filter = build_issue_filter(
            team_id="team-eng",
            assignee_id="user-ada",
            priority=0,
            updated_since="2026-10-01",
            include_completed=True,
            include_backlog=True,
        )
        assert issue_filter == {
            "team": {"id": {"eq": "team-eng"}},
            "assignee": {"id": {"eq": "user-ada"}},
            "priority": {"eq": 0},
            "updatedAt": {"gte": "2026-10-01"},
        }

    def test_excluded_state_types(self):
        assert excluded_state_types(True, False) == ["backlog"]
        assert excluded_state_types(False, True) == ["completed", "canceled"]


class TestListIssues:
    @pytest.mark.asyncio
    async def test_default_listing_returns_only_open_started_work(
        self, linear_fetcher, graphql
    ):
        graphql.on("SearchIssues", SEARCH_ISSUES)

        issues = await linear_fetcher.list_issues()

        assert [issue.identifier for issue in issues] == ["ENG-1"]
        sent = graphql.variables_for("SearchIssues")[0]
        assert sent["first"] == 25
        assert sent["filter"]["state"]["type"]["nin"] == ["completed", "canceled", "backlog"]

    @pytest.mark.asyncio
    async def test_include_flags_keep_all_issues(self, linear_fetcher, graphql):
        graphql.on("SearchIssues", SEARCH_ISSUES)
        issues = await linear_fetcher.list_issues(include_completed=True, include_backlog=True)
        assert [issue.identifier for issue in issues] == ["ENG-1", "ENG-2", "ENG-3"]

    @pytest.mark.asyncio
    async def test_summary_projection(self, linear_fetcher, graphql):
        graphql.on("SearchIssues", SEARCH_ISSUES)
        issues = await linear_fetcher.list_issues()
        assert issues[0].to_summary_dict() == {
            "identifier": "ENG-1",
            "title": "Fix login redirect",
            "state": "In Progress",
            "priority": 2,
            "project_name": "API v2",
            "due_date": "2026-11-01",
        }


class TestGetIssue:
    @pytest.mark.asyncio
    async def test_returns_flattened_issue(self, linear_fetcher, graphql):
        graphql.on("GetIssue", ISSUE_DETAIL)

        issue = await linear_fetcher.get_issue("ENG-1")
        simplified = issue.to_simplified_dict()

        assert graphql.variables_for("GetIssue") == [{"id": "ENG-1"}]
        assert simplified["assignee_name"] == "Ada Lovelace"
        assert simplified["creator_name"] == "Alan Turing"
        assert simplified["labels"] == ["Bug"]
        assert simplified["url"] == "https://linear.app/acme/issue/ENG-1"

    @pytest.mark.asyncio
    async def test_missing_issue_is_not_found(self, linear_fetcher, graphql):
        graphql.on("GetIssue", {"issue": None})
        with pytest.raises(MCPLinearNotFoundError, match="Issue not found: ENG-999"):
            await linear_fetcher.get_issue("ENG-999")


class TestCreateIssueByName:
    @pytest.mark.asyncio
    async def test_resolves_every_name_to_an_id(self, linear_fetcher, reference_data):
        reference_data.on("CreateIssue", issue_mutation("issueCreate"))

        result = await linear_fetcher.create_issue_by_name(
            team_name="Engineering",
            title="New issue",
            description="Steps to reproduce",
            priority=1,
            assignee_name="Ada Lovelace",
            label_names=["Bug", "Feature"],
            project_name="API v2",
            state_name="Todo",
            due_date="2026-12-01",
        )

        sent = reference_data.variables_for("CreateIssue")[0]["input"]
        assert sent == {
            "teamId": "team-eng",
            "title": "New issue",
            "description": "Steps to reproduce",
            "priority": 1,
            "assigneeId": "user-ada",
            "labelIds": ["label-eng-bug", "label-ws-feature"],
            "projectId": "project-api",
            "stateId": "state-todo",
            "dueDate": "2026-12-01",
        }
        assert result.to_simplified_dict()["issue"]["identifier"] == "ENG-42"

    @pytest.mark.asyncio
    async def test_minimal_create_sends_only_team_and_title(
        self, linear_fetcher, reference_data
    ):
        reference_data.on("CreateIssue", issue_mutation("issueCreate"))
        await linear_fetcher.create_issue_by_name(team_name="Engineering", title="Bare")
        assert reference_data.variables_for("CreateIssue")[0]["input"] == {
            "teamId": "team-eng",
            "title": "Bare",
        }

    @pytest.mark.asyncio
    async def test_unknown_team_sends_no_mutation(self, linear_fetcher, reference_data):
        with pytest.raises(MCPLinearNotFoundError, match="Team not found: Platform"):
            await linear_fetcher.create_issue_by_name(team_name="Platform", title="x")
        assert "CreateIssue" not in reference_data.operations()

    @pytest.mark.asyncio
    async def test_unknown_state_names_the_team(self, linear_fetcher, reference_data):
        with pytest.raises(MCPLinearNotFoundError) as exc_info:
            await linear_fetcher.create_issue_by_name(
                team_name="Engineering", title="x", state_name="Shipped"
            )
        assert str(exc_info.value) == "State not found in team Engineering: Shipped"
        assert "CreateIssue" not in reference_data.operations()

    @pytest.mark.asyncio
    async def test_unknown_label_is_reported(self, linear_fetcher, reference_data):
        with pytest.raises(MCPLinearNotFoundError, match="Label not found: Urgent"):
            await linear_fetcher.create_issue_by_name(
                team_name="Engineering", title="x", label_names=["Urgent"]
            )

    @pytest.mark.asyncio
    async def test_closed_project_is_not_resolvable(self, linear_fetcher, reference_data):
        with pytest.raises(MCPLinearNotFoundError, match="Project not found in team Engineering"):
            await linear_fetcher.create_issue_by_name(
                team_name="Engineering", title="x", project_name="Legacy"
            )

    @pytest.mark.asyncio
    async def test_reference_data_is_cached_between_calls(
        self, linear_fetcher, reference_data
    ):
        reference_data.on("CreateIssue", issue_mutation("issueCreate"))
        for _ in range(2):
            await linear_fetcher.create_issue_by_name(
                team_name="Engineering", title="x", assignee_name="Alan Turing"
            )
        operations = reference_data.operations()
        assert operations.count("Teams") == 1
        assert operations.count("Users") == 1
        assert operations.count("CreateIssue") == 2

    @pytest.mark.asyncio
    async def test_unsuccessful_mutation_raises(self, linear_fetcher, reference_data):
        reference_data.on("CreateIssue", {"issueCreate": {"success": False, "issue": None}})
        with pytest.raises(MCPLinearError, match="failure to create issue"):
            await linear_fetcher.create_issue_by_name(team_name="Engineering", title="x")


class TestUpdateIssueByName:
    @pytest.mark.asyncio
    async def test_updates_only_given_fields(self, linear_fetcher, reference_data):
        reference_data.on("GetIssueId", ISSUE_REF)
        reference_data.on("UpdateIssue", issue_mutation("issueUpdate", identifier="ENG-1"))

        result = await linear_fetcher.update_issue_by_name(
            "ENG-1", state_name="Done", priority=3
        )

        sent = reference_data.variables_for("UpdateIssue")[0]
        assert sent == {
            "id": "issue-uuid-1",
            "input": {"priority": 3, "stateId": "state-done"},
        }
        assert result.success is True

    @pytest.mark.asyncio
    async def test_unknown_team_key(self, linear_fetcher, reference_data):
        with pytest.raises(MCPLinearNotFoundError) as exc_info:
            await linear_fetcher.update_issue_by_name("OPS-7", title="x")
        assert str(exc_info.value) == "Team not found for identifier: OPS-7"
        assert "UpdateIssue" not in reference_data.operations()

    @pytest.mark.asyncio
    async def test_missing_issue(self, linear_fetcher, reference_data):
        reference_data.on("GetIssueId", {"issue": None})
        with pytest.raises(MCPLinearNotFoundError, match="Issue not found: ENG-404"):
            await linear_fetcher.update_issue_by_name("ENG-404", title="x")
        assert "UpdateIssue" not in reference_data.operations()
