"""Orchestrates the list, copy and remove permission workflows."""

import asyncio
import time
from contextlib import AsyncExitStack

import structlog

from bitbucket_permissions_manager.bitbucket.adapter import BitbucketAdapter, RequestRecorder
from bitbucket_permissions_manager.configuration.models import BaseConfig
from bitbucket_permissions_manager.permissions.directory import fetch_permission_directory
from bitbucket_permissions_manager.permissions.exceptions import MutationAbortedError
from bitbucket_permissions_manager.permissions.models import IntentAction, PermissionSet
from bitbucket_permissions_manager.permissions.reconcile import apply_intents, diff, select_and_remove
from bitbucket_permissions_manager.permissions.results import ReconciliationResult, RemovalResult
from bitbucket_permissions_manager.permissions.types import ConfirmCallback, SelectCallback

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def create_adapter(config: BaseConfig, repo: str, request_recorder: RequestRecorder | None = None) -> BitbucketAdapter:
    """Create an adapter for a repository using the reconciled configuration."""
    return await BitbucketAdapter.create(
        repo=repo,
        workspace=config.bitbucket_workspace,
        bitbucket_username=config.bitbucket_username,
        bitbucket_app_password=config.bitbucket_app_password,
        bitbucket_api_url=config.bitbucket_api_url,
        request_recorder=request_recorder,
    )


async def run_list_workflow(config: BaseConfig, repo: str, request_recorder: RequestRecorder | None = None) -> PermissionSet:
    """Run the list workflow: fetch the permission directory of a repository."""
    adapter = await create_adapter(config, repo, request_recorder)
    try:
        return await fetch_permission_directory(adapter)
    finally:
        await adapter.aclose()


async def fetch_directories_concurrently(source_adapter: BitbucketAdapter, destination_adapter: BitbucketAdapter) -> tuple[PermissionSet, PermissionSet]:
    """Fetch two permission directories at once.

    If either fetch fails the other is cancelled before the error propagates.
    """
    try:
        async with asyncio.TaskGroup() as task_group:
            source_task = task_group.create_task(fetch_permission_directory(source_adapter))
            destination_task = task_group.create_task(fetch_permission_directory(destination_adapter))
    except ExceptionGroup as exc_group:
        raise exc_group.exceptions[0]
    return source_task.result(), destination_task.result()


async def run_copy_workflow(
    config: BaseConfig,
    src_repo: str,
    dest_repo: str,
    confirm: ConfirmCallback,
    request_recorder: RequestRecorder | None = None,
) -> ReconciliationResult:
    """Run the copy workflow: make the destination's permissions match the source's.

    The destination is always fetched again once the apply loop ends, also when
    a failing mutation aborted it, so the result reports the remote state.
    """
    async with AsyncExitStack() as stack:
        source_adapter = await create_adapter(config, src_repo, request_recorder)
        stack.push_async_callback(source_adapter.aclose)
        destination_adapter = await create_adapter(config, dest_repo, request_recorder)
        stack.push_async_callback(destination_adapter.aclose)

        start_time = time.time()
        logger.info("Fetching permission directories", source=source_adapter.repository, destination=destination_adapter.repository)
        source, destination_before = await fetch_directories_concurrently(source_adapter, destination_adapter)
        logger.info(
            "Fetched permission directories",
            source_count=len(source),
            destination_count=len(destination_before),
            duration=round(time.time() - start_time, 2),
        )

        intents = diff(source, destination_before)
        logger.info(
            "Computed reconciliation intents",
            add=sum(1 for intent in intents if intent.action == IntentAction.ADD),
            update=sum(1 for intent in intents if intent.action == IntentAction.UPDATE),
            noop=sum(1 for intent in intents if intent.action == IntentAction.NOOP),
            remove=sum(1 for intent in intents if intent.action == IntentAction.REMOVE),
        )

        error: MutationAbortedError | None = None
        try:
            outcome = await apply_intents(intents, confirm, destination_adapter)
            applied, declined = outcome.applied, outcome.declined
        except MutationAbortedError as exc:
            error = exc
            applied, declined = exc.applied, exc.declined

        logger.info("Refreshing destination permission directory", destination=destination_adapter.repository)
        destination_after = await fetch_permission_directory(destination_adapter)
        return ReconciliationResult(
            intents=intents,
            applied=applied,
            declined=declined,
            destination_after=destination_after,
            error=error,
        )


async def run_remove_workflow(
    config: BaseConfig,
    repo: str,
    select: SelectCallback,
    request_recorder: RequestRecorder | None = None,
) -> RemovalResult:
    """Run the remove workflow: delete an operator-selected subset of a repository's permissions."""
    adapter = await create_adapter(config, repo, request_recorder)
    try:
        directory = await fetch_permission_directory(adapter)
        try:
            removed = await select_and_remove(directory, select, adapter)
        except MutationAbortedError as exc:
            return RemovalResult(removed_count=exc.applied, error=exc)
        return RemovalResult(removed_count=len(removed))
    finally:
        await adapter.aclose()
