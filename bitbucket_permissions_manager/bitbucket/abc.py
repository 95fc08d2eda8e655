"""Base ABC for Bitbucket clients."""

from abc import ABC, abstractmethod
from typing import Any

from bitbucket_permissions_manager.permissions.models import AccessLevel, PrincipalKind
from bitbucket_permissions_manager.schemas.permissions import GroupPermissionModel, UserPermissionModel


class BitbucketClientBase(ABC):
    """Base ABC for Bitbucket clients bound to a single repository."""

    # Permission reads
    @abstractmethod
    async def list_group_permissions(self) -> list[GroupPermissionModel]:
        """List the group permissions of the repository."""
        pass

    @abstractmethod
    async def list_user_permissions(self) -> list[UserPermissionModel]:
        """List the user permissions of the repository."""
        pass

    # Permission mutations
    @abstractmethod
    async def set_permission(self, principal_kind: PrincipalKind, principal_id: str, level: AccessLevel) -> Any:
        """Grant or update the permission of a user or group on the repository."""
        pass

    @abstractmethod
    async def delete_permission(self, principal_kind: PrincipalKind, principal_id: str) -> None:
        """Revoke the permission of a user or group on the repository."""
        pass
