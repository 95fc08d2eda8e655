"""Internal model of repository permissions and the intents derived from comparing them."""

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import ClassVar, TypeAlias


class PrincipalKind(str, Enum):
    """Kind of principal a permission is granted to."""

    USER = "user"
    GROUP = "group"


@total_ordering
class AccessLevel(Enum):
    """Repository access level, ordered by increasing privilege."""

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        """Position of the level in the privilege order."""
        return _ACCESS_LEVEL_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank < other.rank


_ACCESS_LEVEL_ORDER = (AccessLevel.READ, AccessLevel.WRITE, AccessLevel.ADMIN)


@dataclass(frozen=True)
class Permission:
    """A single permission grant on a repository.

    `id` is the group slug or the user UUID and is the join key between two
    directories. `display_name` is only meant for humans.
    """

    principal_kind: PrincipalKind
    id: str
    display_name: str
    level: AccessLevel


PermissionSet: TypeAlias = tuple[Permission, ...]


class IntentAction(str, Enum):
    """Action a reconciliation intent stands for."""

    ADD = "add"
    UPDATE = "update"
    NOOP = "noop"
    REMOVE = "remove"


@dataclass(frozen=True)
class AddIntent:
    """Grant a permission that exists in the source but not in the destination."""

    action: ClassVar[IntentAction] = IntentAction.ADD

    permission: Permission

    @property
    def id(self) -> str:
        return self.permission.id


@dataclass(frozen=True)
class UpdateIntent:
    """Change the level of a permission present in both directories.

    `from_level` is the destination's current level, `to_level` the source's level.
    """

    action: ClassVar[IntentAction] = IntentAction.UPDATE

    id: str
    display_name: str
    principal_kind: PrincipalKind
    from_level: AccessLevel
    to_level: AccessLevel


@dataclass(frozen=True)
class NoOpIntent:
    """A permission present in both directories with the same level."""

    action: ClassVar[IntentAction] = IntentAction.NOOP

    id: str
    display_name: str = ""


@dataclass(frozen=True)
class RemoveIntent:
    """Revoke a permission that exists in the destination but not in the source."""

    action: ClassVar[IntentAction] = IntentAction.REMOVE

    permission: Permission

    @property
    def id(self) -> str:
        return self.permission.id


ReconciliationIntent: TypeAlias = AddIntent | UpdateIntent | NoOpIntent | RemoveIntent
