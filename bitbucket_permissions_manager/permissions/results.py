"""Contains results of the permission workflows."""

from bitbucket_permissions_manager.permissions.exceptions import BitbucketPermissionsError
from bitbucket_permissions_manager.permissions.models import IntentAction, PermissionSet, ReconciliationIntent


class ReconciliationResult:
    """Contains results of the copy workflow."""

    def __init__(
        self,
        intents: list[ReconciliationIntent],
        applied: int,
        declined: int,
        destination_after: PermissionSet,
        error: BitbucketPermissionsError | None = None,
    ) -> None:
        """Initialize the result with the computed intents, the apply counts, and the destination's final state."""
        self.intents = intents
        self.applied = applied
        self.declined = declined
        self.destination_after = destination_after
        self.error = error

    def count(self, action: IntentAction) -> int:
        """Number of intents of the given action."""
        return sum(1 for intent in self.intents if intent.action == action)


class RemovalResult:
    """Contains results of the remove workflow."""

    def __init__(self, removed_count: int, error: BitbucketPermissionsError | None = None) -> None:
        """Initialize the result with the number of removed permissions and the error that aborted the run, if any."""
        self.removed_count = removed_count
        self.error = error
