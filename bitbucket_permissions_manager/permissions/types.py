"""Type hints for the permissions module."""

from typing import Any, Callable, Collection, Protocol, Sequence, runtime_checkable

from bitbucket_permissions_manager.permissions.models import AccessLevel, PrincipalKind
from bitbucket_permissions_manager.schemas.permissions import GroupPermissionModel, UserPermissionModel


@runtime_checkable
class PermissionReader(Protocol):
    """Protocol for objects that can list the permissions of one repository."""

    async def list_group_permissions(self) -> list[GroupPermissionModel]: ...

    async def list_user_permissions(self) -> list[UserPermissionModel]: ...


@runtime_checkable
class PermissionMutator(Protocol):
    """Protocol for objects that can grant and revoke permissions on one repository."""

    async def set_permission(self, principal_kind: PrincipalKind, principal_id: str, level: AccessLevel) -> Any: ...

    async def delete_permission(self, principal_kind: PrincipalKind, principal_id: str) -> None: ...


ConfirmCallback = Callable[[str], bool]
"""Asked once per side-effecting intent; returning False skips the intent."""

SelectCallback = Callable[[Sequence[str]], Collection[int]]
"""Given one label per permission, returns the indices of the permissions to remove."""
