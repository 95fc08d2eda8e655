"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from typing import Sequence

import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from bitbucket_permissions_manager.bitbucket.adapter import RequestRecorder
from bitbucket_permissions_manager.configuration.exceptions import (
    BitbucketAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from bitbucket_permissions_manager.configuration.models import BaseConfig, OutputFormat
from bitbucket_permissions_manager.configuration.reconcile import reconcile_base_configuration
from bitbucket_permissions_manager.permissions.driver import run_copy_workflow, run_list_workflow, run_remove_workflow
from bitbucket_permissions_manager.permissions.exceptions import BitbucketPermissionsError
from bitbucket_permissions_manager.permissions.models import IntentAction
from bitbucket_permissions_manager.utils.log import configure_logging
from bitbucket_permissions_manager.utils.output import RequestRecord, format_permissions, format_request_record

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, no_args_is_help=True, help="Audit, copy and prune Bitbucket repository permissions.")

MUTATING_METHODS = ("PUT", "DELETE")


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    username: Annotated[str | None, Option("--username", "-u", envvar="BITBUCKET_USERNAME", help="Bitbucket username.")] = None,
    password: Annotated[str | None, Option("--password", "-p", envvar="BITBUCKET_APP_PASSWORD", help="Bitbucket app password.")] = None,
    workspace: Annotated[str | None, Option("--workspace", "-w", envvar="BITBUCKET_WORKSPACE", help="Bitbucket workspace.")] = None,
    output: Annotated[OutputFormat | None, Option("--output", "-o", envvar="OUTPUT", help="Output format.")] = None,
    api_url: Annotated[str | None, Option("--api-url", envvar="BITBUCKET_API_URL", help="Bitbucket API URL.")] = None,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Store the global options for the current context."""
    ctx.ensure_object(dict)
    ctx.obj["username"] = username
    ctx.obj["password"] = password
    ctx.obj["workspace"] = workspace
    ctx.obj["output"] = output
    ctx.obj["api_url"] = api_url
    ctx.obj["debug"] = debug
    configure_logging(debug=debug)


def resolve_configuration(ctx: typer.Context) -> BaseConfig:
    """Reconcile the global options with the environment, exiting on invalid configuration."""
    try:
        return asyncio.run(
            reconcile_base_configuration(
                cli_debug=ctx.obj["debug"],
                cli_bitbucket_api_url=ctx.obj["api_url"],
                cli_bitbucket_username=ctx.obj["username"],
                cli_bitbucket_app_password=ctx.obj["password"],
                cli_bitbucket_workspace=ctx.obj["workspace"],
                cli_output_format=ctx.obj["output"],
            )
        )
    except (BitbucketAuthenticationConfigurationUndefinedError, RequiredConfigurationElementError, ValueError) as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(1) from exc


def make_request_recorder(config: BaseConfig) -> RequestRecorder:
    """Echo records of mutating requests (and of every request in debug mode) to stderr."""

    def record_request(record: RequestRecord) -> None:
        if config.debug or record.method in MUTATING_METHODS:
            typer.echo(format_request_record(record, config.output_format), err=True)

    return record_request


def confirm_intent(prompt: str) -> bool:
    """Ask the operator to confirm a single intent, defaulting to yes."""
    confirmed = typer.confirm(prompt, default=True)
    typer.echo("Continue" if confirmed else "Skip")
    return confirmed


def parse_index_selection(text: str) -> set[int]:
    """Parse a comma or space separated list of indices; an empty string selects nothing."""
    tokens = [token for token in text.replace(",", " ").split() if token]
    try:
        return {int(token) for token in tokens}
    except ValueError as exc:
        raise ValueError(f"Selection must be a list of numbers, got: {text!r}") from exc


def select_permissions(labels: Sequence[str]) -> set[int]:
    """Show numbered labels and let the operator pick the ones to remove."""
    typer.echo("Pick the permissions you want to remove:")
    for index, label in enumerate(labels):
        typer.echo(f"  [{index}] {label}")
    answer: str = typer.prompt("Indices (comma separated, empty for none)", default="", show_default=False)
    return parse_index_selection(answer)


@typer_app.command(name="list")
def list_cli(
    ctx: typer.Context,
    repo: Annotated[str, Argument(help="Repository slug (or workspace/slug).")],
) -> None:
    """List the user and group permissions of a repository."""
    config = resolve_configuration(ctx)
    try:
        permissions = asyncio.run(run_list_workflow(config, repo, request_recorder=make_request_recorder(config)))
    except (BitbucketPermissionsError, ValueError) as exc:
        typer.echo(f"Error listing permissions of {repo}: {exc}", err=True)
        raise typer.Exit(1) from exc

    if config.output_format == OutputFormat.TEXT:
        typer.echo(f"Repository: {repo}")
    typer.echo(format_permissions(permissions, config.output_format))


@typer_app.command(name="copy")
def copy_cli(
    ctx: typer.Context,
    src_repo: Annotated[str, Argument(help="Repository to copy permissions from.")],
    dest_repo: Annotated[str, Argument(help="Repository to copy permissions to.")],
    yes: Annotated[bool, Option("--yes", "-y", help="Apply every change without asking for confirmation.")] = False,
) -> None:
    """Copy permission settings from src_repo to dest_repo, removing grants src_repo does not have."""
    config = resolve_configuration(ctx)
    confirm = (lambda prompt: True) if yes else confirm_intent
    try:
        result = asyncio.run(
            run_copy_workflow(
                config,
                src_repo,
                dest_repo,
                confirm=confirm,
                request_recorder=make_request_recorder(config),
            )
        )
    except (BitbucketPermissionsError, ValueError) as exc:
        typer.echo(f"Error copying permissions from {src_repo} to {dest_repo}: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(
        f"Intents: {result.count(IntentAction.ADD)} add, {result.count(IntentAction.UPDATE)} update, "
        f"{result.count(IntentAction.NOOP)} unchanged, {result.count(IntentAction.REMOVE)} remove "
        f"(applied {result.applied}, declined {result.declined})",
        err=True,
    )
    if config.output_format == OutputFormat.TEXT:
        typer.echo(f"Repository: {dest_repo}")
    typer.echo(format_permissions(result.destination_after, config.output_format))

    if result.error is not None:
        typer.echo(f"Copy aborted: {result.error}", err=True)
        raise typer.Exit(1)


@typer_app.command(name="remove")
def remove_cli(
    ctx: typer.Context,
    repo: Annotated[str, Argument(help="Repository to remove permissions from.")],
) -> None:
    """Interactively pick permissions of a repository and remove them."""
    config = resolve_configuration(ctx)
    try:
        result = asyncio.run(run_remove_workflow(config, repo, select=select_permissions, request_recorder=make_request_recorder(config)))
    except (BitbucketPermissionsError, ValueError) as exc:
        typer.echo(f"Error removing permissions of {repo}: {exc}", err=True)
        raise typer.Exit(1) from exc

    if result.error is not None:
        typer.echo(f"Removal aborted after {result.removed_count} removal(s): {result.error}", err=True)
        raise typer.Exit(1)
    if result.removed_count == 0:
        typer.echo("You did not select anything.")
        return
    typer.echo(f"Removed {result.removed_count} permission(s) from {repo}.")


if __name__ == "__main__":
    typer_app()
