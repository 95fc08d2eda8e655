"""Sets up the authenticated httpx client for the Bitbucket Cloud REST API."""

import httpx

from bitbucket_permissions_manager.utils.constants import DEFAULT_BITBUCKET_API_URL, DEFAULT_TIMEOUT_SECONDS


async def get_bitbucket_client(
    bitbucket_username: str,
    bitbucket_app_password: str,
    bitbucket_api_url: str = DEFAULT_BITBUCKET_API_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Returns an httpx client authenticated with a Bitbucket username and app password."""
    if not (bitbucket_username and bitbucket_app_password):
        raise RuntimeError("Bitbucket authentication requires a username and an app password in config.")
    return httpx.AsyncClient(
        base_url=bitbucket_api_url.rstrip("/") + "/",
        auth=httpx.BasicAuth(bitbucket_username, bitbucket_app_password),
        headers={"Accept": "application/json"},
        timeout=timeout,
        transport=transport,
    )
