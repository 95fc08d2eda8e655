"""Pydantic schemas for the Bitbucket repository permissions-config payloads."""

from pydantic import BaseModel, ConfigDict


class GroupPrincipalModel(BaseModel):
    """Pydantic model for the group object nested in a group permission."""

    model_config = ConfigDict(extra="ignore")

    type: str = "group"
    name: str = ""
    slug: str


class UserPrincipalModel(BaseModel):
    """Pydantic model for the user object nested in a user permission."""

    model_config = ConfigDict(extra="ignore")

    type: str = "user"
    nickname: str = ""
    display_name: str | None = None
    uuid: str


class GroupPermissionModel(BaseModel):
    """Pydantic model for a repository group permission."""

    model_config = ConfigDict(extra="ignore")

    permission: str
    group: GroupPrincipalModel


class UserPermissionModel(BaseModel):
    """Pydantic model for a repository user permission."""

    model_config = ConfigDict(extra="ignore")

    permission: str
    user: UserPrincipalModel


class GroupPermissionPageModel(BaseModel):
    """Pydantic model for one page of repository group permissions."""

    model_config = ConfigDict(extra="ignore")

    values: list[GroupPermissionModel] = []
    next: str | None = None
    page: int | None = None
    pagelen: int | None = None
    size: int | None = None


class UserPermissionPageModel(BaseModel):
    """Pydantic model for one page of repository user permissions."""

    model_config = ConfigDict(extra="ignore")

    values: list[UserPermissionModel] = []
    next: str | None = None
    page: int | None = None
    pagelen: int | None = None
    size: int | None = None
