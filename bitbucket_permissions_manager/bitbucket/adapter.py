"""Bitbucket client adapter for the repository permissions-config API."""

import time
from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Awaitable, Callable, Self, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from bitbucket_permissions_manager.permissions.exceptions import (
    PermissionDecodeError,
    RemoteRejectionError,
    TransportError,
)
from bitbucket_permissions_manager.permissions.models import AccessLevel, PrincipalKind
from bitbucket_permissions_manager.schemas.permissions import (
    GroupPermissionModel,
    GroupPermissionPageModel,
    UserPermissionModel,
    UserPermissionPageModel,
)
from bitbucket_permissions_manager.utils.bitbucket import split_repository_in_configuration
from bitbucket_permissions_manager.utils.constants import PERMISSIONS_CONFIG_GROUPS, PERMISSIONS_CONFIG_USERS
from bitbucket_permissions_manager.utils.output import RequestRecord

from .abc import BitbucketClientBase
from .client import DEFAULT_BITBUCKET_API_URL, get_bitbucket_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

RequestRecorder = Callable[[RequestRecord], None]

COLLECTION_BY_KIND: dict[PrincipalKind, str] = {
    PrincipalKind.USER: PERMISSIONS_CONFIG_USERS,
    PrincipalKind.GROUP: PERMISSIONS_CONFIG_GROUPS,
}


def handle_bitbucket_transport_errors(func: F) -> F:
    """Decorator translating httpx network failures into TransportError, logging the details."""

    @wraps(func)
    async def wrapper(self: "BitbucketAdapter", method: str, url: str, *args: Any, **kwargs: Any) -> Any:
        try:
            return await func(self, method, url, *args, **kwargs)
        except httpx.TransportError as exc:
            logger.error(
                "Bitbucket request could not be completed",
                function=func.__name__,
                method=method,
                url=url,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise TransportError(method=method, url=url, reason=str(exc) or type(exc).__name__) from exc

    return wrapper  # type: ignore


def extract_error_message(response: httpx.Response) -> str | None:
    """Pull the human-readable message out of a Bitbucket error payload, if there is one."""
    try:
        error_data = response.json()
    except ValueError:
        return response.text or None
    if isinstance(error_data, dict):
        error = error_data.get("error")
        if isinstance(error, dict):
            return error.get("message")
    return None


class BitbucketAdapter(BitbucketClientBase):
    """Bitbucket client adapter bound to a single repository."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        workspace: str,
        repo_slug: str,
        request_recorder: RequestRecorder | None = None,
    ) -> None:
        """Initialize the Bitbucket client adapter with an already-initialized client."""
        self.client = client
        self.workspace = workspace
        self.repo_slug = repo_slug
        self.request_recorder = request_recorder

    @classmethod
    async def create(
        cls,
        repo: str,
        workspace: str,
        bitbucket_username: str,
        bitbucket_app_password: str,
        bitbucket_api_url: str = DEFAULT_BITBUCKET_API_URL,
        request_recorder: RequestRecorder | None = None,
    ) -> Self:
        """Create a new Bitbucket client adapter.

        Args:
            repo: Repository slug, optionally prefixed with its workspace ('workspace/slug')
            workspace: Workspace used when repo does not carry one
            bitbucket_username: Username used for basic authentication
            bitbucket_app_password: App password used for basic authentication
            bitbucket_api_url: Bitbucket API URL (defaults to https://api.bitbucket.org/2.0)
            request_recorder: Optional callback receiving a record of every HTTP exchange

        Returns:
            Configured BitbucketAdapter instance

        Raises:
            ValueError: If the repository reference is malformed
        """
        workspace, repo_slug = await split_repository_in_configuration(repo=repo, default_workspace=workspace)
        logger.info(
            "Creating client for Bitbucket repository",
            bitbucket_api_url=bitbucket_api_url,
            workspace=workspace,
            repo_slug=repo_slug,
        )
        client = await get_bitbucket_client(
            bitbucket_username=bitbucket_username,
            bitbucket_app_password=bitbucket_app_password,
            bitbucket_api_url=bitbucket_api_url,
        )
        return cls(client, workspace, repo_slug, request_recorder=request_recorder)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    @property
    def repository(self) -> str:
        return f"{self.workspace}/{self.repo_slug}"

    def _permissions_config_path(self, *parts: str) -> str:
        return "/".join(("repositories", self.workspace, self.repo_slug, "permissions-config", *parts))

    @handle_bitbucket_transport_errors
    async def _request(self, method: str, url: str, json: dict[str, Any] | None = None) -> httpx.Response:
        """Send a request, record it, and raise RemoteRejectionError on a non-success status."""
        started_at = datetime.now()
        start_time = time.perf_counter()
        response = await self.client.request(method, url, json=json)
        elapsed = timedelta(seconds=time.perf_counter() - start_time)
        record = RequestRecord(
            datetime=started_at,
            method=method,
            url=str(response.request.url),
            status_code=response.status_code,
            elapsed=elapsed,
        )
        logger.debug(
            "Bitbucket request completed",
            method=record.method,
            url=record.url,
            status_code=record.status_code,
            response_time=record.response_time,
        )
        if self.request_recorder is not None:
            self.request_recorder(record)

        if not response.is_success:
            message = extract_error_message(response)
            logger.warning(
                "Bitbucket request was rejected",
                method=method,
                url=record.url,
                status_code=response.status_code,
                message=message,
            )
            raise RemoteRejectionError(method=method, url=record.url, status_code=response.status_code, message=message)
        return response

    async def _list_pages(self, collection: str, page_model: type[GroupPermissionPageModel] | type[UserPermissionPageModel]) -> list[Any]:
        """Read every page of a permissions-config collection by following `next` links."""
        values: list[Any] = []
        url: str | None = self._permissions_config_path(collection)
        while url is not None:
            response = await self._request("GET", url)
            try:
                page = page_model.model_validate(response.json())
            except (ValueError, ValidationError) as exc:
                raise PermissionDecodeError(f"{collection} permissions page", response.text) from exc
            values.extend(page.values)
            url = page.next
        logger.debug("Listed repository permissions", repository=self.repository, collection=collection, count=len(values))
        return values

    # Permission reads
    async def list_group_permissions(self) -> list[GroupPermissionModel]:
        """List all group permissions of the repository, handling pagination."""
        return await self._list_pages(PERMISSIONS_CONFIG_GROUPS, GroupPermissionPageModel)

    async def list_user_permissions(self) -> list[UserPermissionModel]:
        """List all user permissions of the repository, handling pagination."""
        return await self._list_pages(PERMISSIONS_CONFIG_USERS, UserPermissionPageModel)

    # Permission mutations
    async def set_permission(self, principal_kind: PrincipalKind, principal_id: str, level: AccessLevel) -> Any:
        """Grant or update the permission of a user or group; the remote call is an idempotent upsert."""
        url = self._permissions_config_path(COLLECTION_BY_KIND[principal_kind], principal_id)
        response = await self._request("PUT", url, json={"permission": level.value})
        logger.info(
            "Set repository permission",
            repository=self.repository,
            principal_kind=principal_kind.value,
            principal_id=principal_id,
            level=level.value,
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def delete_permission(self, principal_kind: PrincipalKind, principal_id: str) -> None:
        """Revoke the permission of a user or group on the repository."""
        url = self._permissions_config_path(COLLECTION_BY_KIND[principal_kind], principal_id)
        await self._request("DELETE", url)
        logger.info(
            "Deleted repository permission",
            repository=self.repository,
            principal_kind=principal_kind.value,
            principal_id=principal_id,
        )
