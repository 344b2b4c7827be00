"""
Pydantic schemas for roles and permissions.
"""

from pydantic import field_validator

from identity_admin.models.enums import PermissionResource, PermissionAction
from identity_admin.schemas.common import CamelModel


class PermissionResponse(CamelModel):
    id: int
    name: str
    resource: PermissionResource
    action: PermissionAction
    description: str | None


class RoleSummary(CamelModel):
    id: int
    name: str


class RoleResponse(CamelModel):
    id: int
    name: str
    description: str | None
    permissions: list[PermissionResponse]

    @field_validator("permissions", mode="before")
    @classmethod
    def sort_permissions(cls, v):
        # ORM collections are sets; keep the output stable
        return sorted(v, key=lambda p: p.name) if isinstance(v, (set, frozenset)) else v
