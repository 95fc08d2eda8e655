"""Computes and applies the intents that make one repository's permissions match another's."""

from dataclasses import dataclass
from typing import Collection, Sequence

import structlog

from bitbucket_permissions_manager.permissions.exceptions import BitbucketPermissionsError, MutationAbortedError
from bitbucket_permissions_manager.permissions.models import (
    AddIntent,
    NoOpIntent,
    Permission,
    PermissionSet,
    PrincipalKind,
    ReconciliationIntent,
    RemoveIntent,
    UpdateIntent,
)
from bitbucket_permissions_manager.permissions.types import ConfirmCallback, PermissionMutator, SelectCallback
from bitbucket_permissions_manager.utils.output import permission_label

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ApplyOutcome:
    """Counts of a completed apply loop."""

    applied: int
    declined: int


def diff(source: PermissionSet, destination_before: PermissionSet) -> list[ReconciliationIntent]:
    """Compute the intents that make `destination_before` match `source`.

    Intents for source entries come first, in source order, followed by
    removals in destination order. Neither input is modified.
    """
    destination_by_key: dict[tuple[PrincipalKind, str], Permission] = {}
    for permission in destination_before:
        destination_by_key[(permission.principal_kind, permission.id)] = permission

    intents: list[ReconciliationIntent] = []
    live_keys: set[tuple[PrincipalKind, str]] = set()
    for permission in source:
        key = (permission.principal_kind, permission.id)
        live_keys.add(key)
        current = destination_by_key.get(key)
        if current is None:
            intents.append(AddIntent(permission=permission))
        elif current.level == permission.level:
            intents.append(NoOpIntent(id=permission.id, display_name=permission.display_name))
        else:
            intents.append(
                UpdateIntent(
                    id=permission.id,
                    display_name=permission.display_name,
                    principal_kind=permission.principal_kind,
                    from_level=current.level,
                    to_level=permission.level,
                )
            )

    for permission in destination_before:
        if (permission.principal_kind, permission.id) not in live_keys:
            intents.append(RemoveIntent(permission=permission))
    return intents


def describe_intent(intent: ReconciliationIntent) -> str:
    """Build the confirmation prompt for an intent.

    `current` is always the destination's level and `target` the level the
    destination will have once the intent is applied.
    """
    if isinstance(intent, AddIntent):
        p = intent.permission
        return f"Add {p.principal_kind.value}: id={p.id}, name={p.display_name}, target={p.level.value}. Continue?"
    if isinstance(intent, UpdateIntent):
        return (
            f"Update {intent.principal_kind.value}: id={intent.id}, name={intent.display_name}, "
            f"current={intent.from_level.value}, target={intent.to_level.value}. Continue?"
        )
    if isinstance(intent, RemoveIntent):
        p = intent.permission
        return f"Remove {p.principal_kind.value}: id={p.id}, name={p.display_name}, current={p.level.value}. Continue?"
    return f"No change: id={intent.id}, name={intent.display_name}"


async def dispatch_intent(intent: ReconciliationIntent, mutator: PermissionMutator) -> None:
    """Send the mutation an intent stands for; Add and Update share the same upsert call."""
    if isinstance(intent, AddIntent):
        p = intent.permission
        await mutator.set_permission(p.principal_kind, p.id, p.level)
    elif isinstance(intent, UpdateIntent):
        await mutator.set_permission(intent.principal_kind, intent.id, intent.to_level)
    elif isinstance(intent, RemoveIntent):
        p = intent.permission
        await mutator.delete_permission(p.principal_kind, p.id)


async def apply_intents(intents: Sequence[ReconciliationIntent], confirm: ConfirmCallback, mutator: PermissionMutator) -> ApplyOutcome:
    """Apply intents one at a time, asking for confirmation before each mutation.

    A declined intent is skipped. The first failing mutation aborts the loop
    with MutationAbortedError; mutations already applied are not rolled back.
    """
    applied = 0
    declined = 0
    for intent in intents:
        if isinstance(intent, NoOpIntent):
            logger.info("Permission unchanged", principal_id=intent.id, name=intent.display_name)
            continue

        if not confirm(describe_intent(intent)):
            logger.info("Intent declined", action=intent.action.value, principal_id=intent.id)
            declined += 1
            continue

        try:
            await dispatch_intent(intent, mutator)
        except BitbucketPermissionsError as exc:
            logger.error(
                "Mutation failed, aborting remaining intents",
                action=intent.action.value,
                principal_id=intent.id,
                applied=applied,
                error=str(exc),
            )
            raise MutationAbortedError(intent=intent, applied=applied, declined=declined) from exc
        applied += 1
        logger.info("Intent applied", action=intent.action.value, principal_id=intent.id)

    logger.info("Applied intents", intent_count=len(intents), applied=applied, declined=declined)
    return ApplyOutcome(applied=applied, declined=declined)


def resolve_selection(directory: PermissionSet, indices: Collection[int]) -> list[Permission]:
    """Map selected indices back to permissions, deduplicated and in directory order."""
    unique_indices = sorted(set(indices))
    out_of_range = [index for index in unique_indices if not 0 <= index < len(directory)]
    if out_of_range:
        raise ValueError(f"Selection contains indices outside of the directory (0-{len(directory) - 1}): {out_of_range}")
    return [directory[index] for index in unique_indices]


async def select_and_remove(directory: PermissionSet, select: SelectCallback, mutator: PermissionMutator) -> list[Permission]:
    """Let the operator pick permissions from a directory and delete them in directory order.

    Returns the removed permissions; an empty list means nothing was selected.
    The first failing deletion aborts the rest with MutationAbortedError.
    """
    labels = [permission_label(permission) for permission in directory]
    selected = resolve_selection(directory, list(select(labels)))
    if not selected:
        logger.info("No permissions selected for removal")
        return []

    removed: list[Permission] = []
    for permission in selected:
        try:
            await mutator.delete_permission(permission.principal_kind, permission.id)
        except BitbucketPermissionsError as exc:
            logger.error(
                "Deletion failed, aborting remaining removals",
                principal_id=permission.id,
                removed=len(removed),
                error=str(exc),
            )
            raise MutationAbortedError(intent=RemoveIntent(permission=permission), applied=len(removed)) from exc
        removed.append(permission)
        logger.info("Removed permission", principal_kind=permission.principal_kind.value, principal_id=permission.id)
    return removed
