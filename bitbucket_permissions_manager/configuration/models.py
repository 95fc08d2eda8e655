"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass
from enum import Enum


class OutputFormat(str, Enum):
    """Enum for the formats permission listings and request records are rendered in."""

    TEXT = "text"
    CSV = "csv"
    JSON = "json"


@dataclass(frozen=True)
class BaseConfig:
    """Configuration class for the Bitbucket Permissions Manager CLI."""

    debug: bool
    bitbucket_api_url: str
    bitbucket_username: str
    bitbucket_app_password: str
    bitbucket_workspace: str
    output_format: OutputFormat
