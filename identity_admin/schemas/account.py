"""
Pydantic schemas for account management.
"""

from datetime import datetime

from pydantic import Field, field_validator

from identity_admin.schemas.common import CamelModel
from identity_admin.schemas.role import RoleSummary


def _sorted_by_name(v):
    if isinstance(v, (set, frozenset)):
        return sorted(v, key=lambda item: item.name)
    return v


# --- Request Schemas ---

class AccountCreate(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(min_length=5, max_length=255)
    # bcrypt only looks at the first 72 bytes
    password: str = Field(min_length=8, max_length=72)
    role_ids: set[int] | None = None


class AccountUpdate(CamelModel):
    """Partial update. Fields left as None are not touched."""
    username: str | None = Field(default=None, min_length=3, max_length=50)
    email: str | None = Field(default=None, min_length=5, max_length=255)
    password: str | None = Field(default=None, min_length=8, max_length=72)
    enabled: bool | None = None
    account_expired: bool | None = None
    account_locked: bool | None = None
    credentials_expired: bool | None = None
    role_ids: set[int] | None = None


class BulkActionRequest(CamelModel):
    user_ids: list[int] = Field(min_length=1)


class BulkStatusRequest(CamelModel):
    user_ids: list[int] = Field(min_length=1)
    enabled: bool


# --- Response Schemas ---

class GroupSummary(CamelModel):
    id: int
    name: str


class AccountResponse(CamelModel):
    id: int
    username: str
    email: str
    enabled: bool
    account_expired: bool
    account_locked: bool
    credentials_expired: bool
    deleted_at: datetime | None
    created_at: datetime
    roles: list[RoleSummary]
    groups: list[GroupSummary]

    @field_validator("roles", "groups", mode="before")
    @classmethod
    def sort_by_name(cls, v):
        # ORM collections are sets; keep the output stable
        return _sorted_by_name(v)


class BulkActionResponse(CamelModel):
    affected: int
