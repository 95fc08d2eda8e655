"""Reconciles configuration between CLI arguments and environment variables."""

from typing import cast

from bitbucket_permissions_manager.configuration.env import settings
from bitbucket_permissions_manager.configuration.exceptions import (
    BitbucketAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from bitbucket_permissions_manager.configuration.models import BaseConfig, OutputFormat


async def validate_bitbucket_authentication_configuration(
    bitbucket_username: str | None,
    bitbucket_app_password: str | None,
) -> None:
    """Validates the Bitbucket basic authentication configuration.

    Args:
        bitbucket_username (str | None): The Bitbucket username.
        bitbucket_app_password (str | None): The Bitbucket app password.

    Raises:
        BitbucketAuthenticationConfigurationUndefinedError: If the username, the app password, or both are missing.
    """
    if bitbucket_username and bitbucket_app_password:
        return

    if not bitbucket_username and not bitbucket_app_password:
        raise BitbucketAuthenticationConfigurationUndefinedError(
            "No Bitbucket authentication configuration provided. Please provide a username and an app password."
        )

    missing_settings: list[dict[str, str]] = []
    if not bitbucket_username:
        missing_settings.append({"name": "Bitbucket username", "cli_name": "--username", "env_name": "BITBUCKET_USERNAME"})
    if not bitbucket_app_password:
        missing_settings.append({"name": "Bitbucket app password", "cli_name": "--password", "env_name": "BITBUCKET_APP_PASSWORD"})
    msg = "Incomplete Bitbucket authentication configuration - missing settings include " + ", ".join(
        f"{setting['name']} (command line option {setting['cli_name']}, environment variable {setting['env_name']})"
        for setting in missing_settings
    )
    raise BitbucketAuthenticationConfigurationUndefinedError(msg)


async def reconcile_base_configuration(
    cli_debug: bool,
    cli_bitbucket_api_url: str | None,
    cli_bitbucket_username: str | None,
    cli_bitbucket_app_password: str | None,
    cli_bitbucket_workspace: str | None,
    cli_output_format: OutputFormat | str | None,
) -> BaseConfig:
    """Merge CLI arguments with environment settings, CLI values taking precedence.

    Raises:
        BitbucketAuthenticationConfigurationUndefinedError: If the credentials are incomplete.
        RequiredConfigurationElementError: If no workspace is configured.
        ValueError: If the output format is not one of text, csv or json.
    """
    debug = cli_debug or settings.DEBUG
    api_url = cli_bitbucket_api_url or settings.BITBUCKET_API_URL
    username = cli_bitbucket_username or settings.BITBUCKET_USERNAME
    app_password = cli_bitbucket_app_password or settings.BITBUCKET_APP_PASSWORD
    workspace = cli_bitbucket_workspace or settings.BITBUCKET_WORKSPACE
    output_format = OutputFormat(cli_output_format or settings.OUTPUT)

    await validate_bitbucket_authentication_configuration(bitbucket_username=username, bitbucket_app_password=app_password)
    if not workspace:
        raise RequiredConfigurationElementError(name="Bitbucket workspace", cli_name="--workspace", env_name="BITBUCKET_WORKSPACE")

    return BaseConfig(
        debug=debug,
        bitbucket_api_url=api_url.rstrip("/"),
        bitbucket_username=cast(str, username),
        bitbucket_app_password=cast(str, app_password),
        bitbucket_workspace=workspace,
        output_format=output_format,
    )
