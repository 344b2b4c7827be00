"""
Pydantic schemas for group management.
"""

from pydantic import Field, field_validator

from identity_admin.schemas.common import CamelModel
from identity_admin.schemas.role import RoleSummary


class GroupRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=255)
    role_ids: set[int] | None = None


class GroupAssignUsersRequest(CamelModel):
    user_ids: list[int] = Field(min_length=1)


class MemberSummary(CamelModel):
    id: int
    username: str


class GroupResponse(CamelModel):
    id: int
    name: str
    description: str | None
    roles: list[RoleSummary]
    members: list[MemberSummary]

    @field_validator("roles", mode="before")
    @classmethod
    def sort_roles(cls, v):
        return sorted(v, key=lambda r: r.name) if isinstance(v, (set, frozenset)) else v

    @field_validator("members", mode="before")
    @classmethod
    def sort_members(cls, v):
        return sorted(v, key=lambda m: m.username) if isinstance(v, (set, frozenset)) else v
