"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_BITBUCKET_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    PERMISSIONS_CONFIG_GROUPS,
    PERMISSIONS_CONFIG_USERS,
)
from .log import configure_logging

__all__ = [
    "DEFAULT_BITBUCKET_API_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "PERMISSIONS_CONFIG_GROUPS",
    "PERMISSIONS_CONFIG_USERS",
    "configure_logging",
]
