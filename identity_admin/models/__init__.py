"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from identity_admin.models.base import Base
from identity_admin.models.enums import PermissionResource, PermissionAction
from identity_admin.models.audit_log import AuditLog
from identity_admin.models.permission import Permission
from identity_admin.models.role import Role
from identity_admin.models.group import Group
from identity_admin.models.account import Account
from identity_admin.models.profile import Profile

__all__ = [
    "Base",
    "PermissionResource",
    "PermissionAction",
    "AuditLog",
    "Permission",
    "Role",
    "Group",
    "Account",
    "Profile",
]
