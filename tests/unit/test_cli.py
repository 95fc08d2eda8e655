"""Unit tests for the command line interface."""

from typing import Any, Sequence
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from bitbucket_permissions_manager.configuration.cli import parse_index_selection, typer_app
from bitbucket_permissions_manager.permissions.exceptions import MutationAbortedError, RemoteRejectionError, TransportError
from bitbucket_permissions_manager.permissions.models import AccessLevel, AddIntent, NoOpIntent, Permission, PrincipalKind, RemoveIntent
from bitbucket_permissions_manager.permissions.results import ReconciliationResult, RemovalResult

runner = CliRunner()

GLOBAL_OPTIONS = ["-u", "octocat", "-p", "app-password", "-w", "acme"]
CLEAN_ENV: dict[str, str | None] = {
    "BITBUCKET_USERNAME": None,
    "BITBUCKET_APP_PASSWORD": None,
    "BITBUCKET_WORKSPACE": None,
    "BITBUCKET_API_URL": None,
    "OUTPUT": None,
    "DEBUG": None,
}

DEVS = Permission(principal_kind=PrincipalKind.GROUP, id="devs", display_name="Developers", level=AccessLevel.WRITE)
OCTOCAT = Permission(principal_kind=PrincipalKind.USER, id="{u-1}", display_name="octocat", level=AccessLevel.ADMIN)


@pytest.fixture(autouse=True)
def no_logging_configuration() -> Any:
    with patch("bitbucket_permissions_manager.configuration.cli.configure_logging"):
        yield


def invoke(*args: str, input: str | None = None) -> Any:
    return runner.invoke(typer_app, [*GLOBAL_OPTIONS, *args], input=input, env=CLEAN_ENV)


@pytest.mark.parametrize(
    "text, expected",
    [
        pytest.param("", set(), id="empty"),
        pytest.param("   ", set(), id="blank"),
        pytest.param("0,2", {0, 2}, id="commas"),
        pytest.param("3 1", {1, 3}, id="spaces"),
        pytest.param("1, 1,2", {1, 2}, id="duplicates"),
    ],
)
def test_parse_index_selection(text: str, expected: set[int]) -> None:
    """Test parsing the operator's index selection."""
    assert parse_index_selection(text) == expected


def test_parse_index_selection_rejects_non_numbers() -> None:
    """Test that a non-numeric token is rejected."""
    with pytest.raises(ValueError):
        parse_index_selection("1,two")


def test_list_text_output() -> None:
    """Test that list prints the repository header and one line per permission."""
    with patch("bitbucket_permissions_manager.configuration.cli.run_list_workflow", AsyncMock(return_value=(DEVS, OCTOCAT))):
        result = invoke("list", "widgets")

    assert result.exit_code == 0
    assert "Repository: widgets" in result.output
    assert "group, devs, Developers, write" in result.output
    assert "user, {u-1}, octocat, admin" in result.output


def test_list_json_output_has_no_header() -> None:
    """Test that structured output formats omit the repository header."""
    with patch("bitbucket_permissions_manager.configuration.cli.run_list_workflow", AsyncMock(return_value=(DEVS,))):
        result = invoke("-o", "json", "list", "widgets")

    assert result.exit_code == 0
    assert "Repository:" not in result.output
    assert '"permission": "write"' in result.output


def test_list_transport_error_exits_non_zero() -> None:
    """Test that a network failure is reported and fails the command."""
    error = TransportError("GET", "https://api.bitbucket.org/2.0/repositories/acme/widgets/permissions-config/groups", "timed out")
    with patch("bitbucket_permissions_manager.configuration.cli.run_list_workflow", AsyncMock(side_effect=error)):
        result = invoke("list", "widgets")

    assert result.exit_code == 1
    assert "Error listing permissions of widgets" in result.output


def test_missing_credentials_exit_non_zero() -> None:
    """Test that missing credentials are reported before any request is made."""
    mock_settings = MagicMock(DEBUG=False, OUTPUT="text", BITBUCKET_API_URL="https://api.bitbucket.org/2.0")
    mock_settings.BITBUCKET_USERNAME = None
    mock_settings.BITBUCKET_APP_PASSWORD = None
    mock_settings.BITBUCKET_WORKSPACE = None
    mock_list = AsyncMock()
    with (
        patch("bitbucket_permissions_manager.configuration.reconcile.settings", mock_settings),
        patch("bitbucket_permissions_manager.configuration.cli.run_list_workflow", mock_list),
    ):
        result = runner.invoke(typer_app, ["list", "widgets"], env=CLEAN_ENV)

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
    mock_list.assert_not_called()


def test_copy_declining_prompt_exits_zero() -> None:
    """Test that declining a prompt skips the intent and the command still succeeds."""
    prompts: list[bool] = []

    async def fake_copy(config: Any, src_repo: str, dest_repo: str, confirm: Any, request_recorder: Any = None) -> ReconciliationResult:
        prompts.append(confirm("Add group: id=devs, name=Developers, target=write. Continue?"))
        return ReconciliationResult(intents=[AddIntent(permission=DEVS)], applied=0, declined=1, destination_after=())

    with patch("bitbucket_permissions_manager.configuration.cli.run_copy_workflow", AsyncMock(side_effect=fake_copy)):
        result = invoke("copy", "source", "destination", input="n\n")

    assert result.exit_code == 0
    assert prompts == [False]
    assert "Skip" in result.output
    assert "Intents: 1 add, 0 update, 0 unchanged, 0 remove (applied 0, declined 1)" in result.output


def test_copy_yes_confirms_without_prompting() -> None:
    """Test that --yes accepts every intent without reading input."""
    prompts: list[bool] = []

    async def fake_copy(config: Any, src_repo: str, dest_repo: str, confirm: Any, request_recorder: Any = None) -> ReconciliationResult:
        prompts.append(confirm("Remove user: id={u-1}, name=octocat, current=admin. Continue?"))
        return ReconciliationResult(intents=[RemoveIntent(permission=OCTOCAT), NoOpIntent(id="devs")], applied=1, declined=0, destination_after=(DEVS,))

    with patch("bitbucket_permissions_manager.configuration.cli.run_copy_workflow", AsyncMock(side_effect=fake_copy)):
        result = invoke("copy", "--yes", "source", "destination")

    assert result.exit_code == 0
    assert prompts == [True]
    assert "Repository: destination" in result.output
    assert "group, devs, Developers, write" in result.output


def test_copy_aborted_exits_non_zero_after_printing_destination() -> None:
    """Test that an aborted copy still prints the destination and then fails."""
    cause = RemoteRejectionError("PUT", "https://example.test/groups/devs", 403, "Forbidden")
    error = MutationAbortedError(intent=AddIntent(permission=DEVS), applied=0)
    error.__cause__ = cause
    copy_result = ReconciliationResult(intents=[AddIntent(permission=DEVS)], applied=0, declined=0, destination_after=(OCTOCAT,), error=error)

    with patch("bitbucket_permissions_manager.configuration.cli.run_copy_workflow", AsyncMock(return_value=copy_result)):
        result = invoke("copy", "-y", "source", "destination")

    assert result.exit_code == 1
    assert "user, {u-1}, octocat, admin" in result.output
    assert "Copy aborted" in result.output


def test_remove_nothing_selected() -> None:
    """Test the message shown when the operator selects nothing."""
    shown: list[str] = []

    async def fake_remove(config: Any, repo: str, select: Any, request_recorder: Any = None) -> RemovalResult:
        labels: Sequence[str] = ["group - devs - Developers - write"]
        shown.extend(labels)
        assert select(labels) == set()
        return RemovalResult(removed_count=0)

    with patch("bitbucket_permissions_manager.configuration.cli.run_remove_workflow", AsyncMock(side_effect=fake_remove)):
        result = invoke("remove", "widgets", input="\n")

    assert result.exit_code == 0
    assert "[0] group - devs - Developers - write" in result.output
    assert "You did not select anything." in result.output


def test_remove_selected_permissions() -> None:
    """Test that the typed indices reach the workflow and the removal count is reported."""
    selections: list[set[int]] = []

    async def fake_remove(config: Any, repo: str, select: Any, request_recorder: Any = None) -> RemovalResult:
        selections.append(select(["group - devs - Developers - write", "user - {u-1} - octocat - admin"]))
        return RemovalResult(removed_count=2)

    with patch("bitbucket_permissions_manager.configuration.cli.run_remove_workflow", AsyncMock(side_effect=fake_remove)):
        result = invoke("remove", "widgets", input="0, 1\n")

    assert result.exit_code == 0
    assert selections == [{0, 1}]
    assert "Removed 2 permission(s) from widgets." in result.output


def test_remove_aborted_exits_non_zero() -> None:
    """Test that an aborted removal reports the completed count and fails."""
    error = MutationAbortedError(intent=RemoveIntent(permission=OCTOCAT), applied=1)
    with patch("bitbucket_permissions_manager.configuration.cli.run_remove_workflow", AsyncMock(return_value=RemovalResult(removed_count=1, error=error))):
        result = invoke("remove", "widgets")

    assert result.exit_code == 1
    assert "Removal aborted after 1 removal(s)" in result.output
