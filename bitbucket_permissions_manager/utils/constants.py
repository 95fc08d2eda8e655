"""Shared constants used across the application."""

# Bitbucket API Constants
# -----------------------

DEFAULT_BITBUCKET_API_URL = "https://api.bitbucket.org/2.0"
"""Default base URL of the Bitbucket Cloud REST API."""

DEFAULT_TIMEOUT_SECONDS = 30.0
"""Default timeout applied to every request made to the Bitbucket API."""

PERMISSIONS_CONFIG_GROUPS = "groups"
"""Collection of the permissions-config endpoint holding group grants."""

PERMISSIONS_CONFIG_USERS = "users"
"""Collection of the permissions-config endpoint holding user grants."""
