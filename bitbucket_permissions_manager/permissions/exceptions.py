"""Custom exceptions for the permissions module."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bitbucket_permissions_manager.permissions.models import ReconciliationIntent


class BitbucketPermissionsError(Exception):
    """Base class for errors raised while reading or mutating repository permissions."""

    pass


class TransportError(BitbucketPermissionsError):
    """Raised when a request to the Bitbucket API could not be completed at the network layer."""

    def __init__(self, method: str, url: str, reason: str) -> None:
        """Initialize the exception with the request that failed and the reason."""
        super().__init__(f"{method} {url} could not be completed: {reason}")
        self.method = method
        self.url = url
        self.reason = reason


class RemoteRejectionError(BitbucketPermissionsError):
    """Raised when the Bitbucket API answers a request with a non-success status."""

    def __init__(self, method: str, url: str, status_code: int, message: str | None = None) -> None:
        """Initialize the exception with the rejected request, its status code and the remote message."""
        detail = f": {message}" if message else ""
        super().__init__(f"{method} {url} was rejected with status {status_code}{detail}")
        self.method = method
        self.url = url
        self.status_code = status_code
        self.message = message


class PermissionDecodeError(BitbucketPermissionsError):
    """Raised when a remote permission level or principal type is not recognized."""

    def __init__(self, field: str, value: object) -> None:
        """Initialize the exception with the field being decoded and the offending value."""
        super().__init__(f"Unrecognized {field}: {value!r}")
        self.field = field
        self.value = value


class MutationAbortedError(BitbucketPermissionsError):
    """Raised when a mutation fails and the remaining queue of mutations is abandoned."""

    def __init__(self, intent: "ReconciliationIntent", applied: int, declined: int = 0) -> None:
        """Initialize the exception with the intent that failed and how many mutations were applied before it."""
        super().__init__(f"Aborted after {applied} applied mutation(s); failed on {intent.action.value} of {intent.id}")
        self.intent = intent
        self.applied = applied
        self.declined = declined
