"""Reads the full permission directory of one repository into a PermissionSet."""

from dataclasses import dataclass
from typing import Callable

import structlog

from bitbucket_permissions_manager.permissions.exceptions import PermissionDecodeError, RemoteRejectionError
from bitbucket_permissions_manager.permissions.models import AccessLevel, Permission, PermissionSet, PrincipalKind
from bitbucket_permissions_manager.permissions.types import PermissionReader
from bitbucket_permissions_manager.schemas.permissions import GroupPermissionModel, UserPermissionModel

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_ACCESS_LEVEL = AccessLevel.READ
DEFAULT_PRINCIPAL_KIND = PrincipalKind.USER


@dataclass(frozen=True)
class SubFetchResult:
    """Outcome of reading one permission collection (groups or users) of a repository."""

    collection: str
    permissions: PermissionSet = ()
    error: RemoteRejectionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


RejectionPolicy = Callable[[SubFetchResult], PermissionSet]


def empty_on_rejection(result: SubFetchResult) -> PermissionSet:
    """Treat a rejected collection read as contributing no permissions.

    An empty contribution is indistinguishable from a repository that truly
    has no grants in that collection, so the rejection is logged loudly.
    """
    logger.warning(
        "Permission collection could not be read, treating it as empty",
        collection=result.collection,
        status_code=result.error.status_code if result.error else None,
        url=result.error.url if result.error else None,
        message=result.error.message if result.error else None,
    )
    return ()


def raise_on_rejection(result: SubFetchResult) -> PermissionSet:
    """Fail the whole directory read when a collection read is rejected."""
    if result.error is not None:
        raise result.error
    return result.permissions


def decode_access_level(value: str) -> AccessLevel:
    """Decode a remote permission string ("read", "write" or "admin", case-sensitive)."""
    try:
        return AccessLevel(value)
    except ValueError as exc:
        raise PermissionDecodeError("permission level", value) from exc


def decode_principal_kind(value: str) -> PrincipalKind:
    """Decode a remote principal type string ("user" or "group", case-sensitive)."""
    try:
        return PrincipalKind(value)
    except ValueError as exc:
        raise PermissionDecodeError("principal type", value) from exc


def lenient_access_level(value: str, principal_id: str) -> AccessLevel:
    """Decode a permission level, substituting the lowest privilege for unrecognized values."""
    try:
        return decode_access_level(value)
    except PermissionDecodeError:
        logger.warning(
            "Unrecognized permission level, defaulting",
            principal_id=principal_id,
            value=value,
            default=DEFAULT_ACCESS_LEVEL.value,
        )
        return DEFAULT_ACCESS_LEVEL


def lenient_principal_kind(value: str, principal_id: str) -> PrincipalKind:
    """Decode a principal type, substituting a user for unrecognized values."""
    try:
        return decode_principal_kind(value)
    except PermissionDecodeError:
        logger.warning(
            "Unrecognized principal type, defaulting",
            principal_id=principal_id,
            value=value,
            default=DEFAULT_PRINCIPAL_KIND.value,
        )
        return DEFAULT_PRINCIPAL_KIND


def group_permission_to_permission(group_permission: GroupPermissionModel) -> Permission:
    group = group_permission.group
    return Permission(
        principal_kind=lenient_principal_kind(group.type, group.slug),
        id=group.slug,
        display_name=group.name,
        level=lenient_access_level(group_permission.permission, group.slug),
    )


def user_permission_to_permission(user_permission: UserPermissionModel) -> Permission:
    user = user_permission.user
    return Permission(
        principal_kind=lenient_principal_kind(user.type, user.uuid),
        id=user.uuid,
        display_name=user.nickname,
        level=lenient_access_level(user_permission.permission, user.uuid),
    )


async def fetch_group_permissions(reader: PermissionReader) -> SubFetchResult:
    try:
        group_permissions = await reader.list_group_permissions()
    except RemoteRejectionError as exc:
        return SubFetchResult(collection="groups", error=exc)
    return SubFetchResult(collection="groups", permissions=tuple(group_permission_to_permission(p) for p in group_permissions))


async def fetch_user_permissions(reader: PermissionReader) -> SubFetchResult:
    try:
        user_permissions = await reader.list_user_permissions()
    except RemoteRejectionError as exc:
        return SubFetchResult(collection="users", error=exc)
    return SubFetchResult(collection="users", permissions=tuple(user_permission_to_permission(p) for p in user_permissions))


async def fetch_permission_directory(reader: PermissionReader, on_rejection: RejectionPolicy = empty_on_rejection) -> PermissionSet:
    """Fetch the group and user permissions of a repository as one PermissionSet.

    Groups always come before users. A rejected collection read is resolved by
    `on_rejection`; a TransportError propagates and no partial set is returned.
    """
    permissions: list[Permission] = []
    for fetch in (fetch_group_permissions, fetch_user_permissions):
        result = await fetch(reader)
        permissions.extend(result.permissions if result.ok else on_rejection(result))
    logger.info("Fetched permission directory", permission_count=len(permissions))
    return tuple(permissions)
