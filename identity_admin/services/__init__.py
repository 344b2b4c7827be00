"""Business logic services."""

from identity_admin.services.account_service import AccountService
from identity_admin.services.audit_service import (
    AuditDispatcher,
    AuditTrail,
    AuditLogService,
)
from identity_admin.services.auth_service import AuthService
from identity_admin.services.group_service import GroupService
from identity_admin.services.profile_service import ProfileService
from identity_admin.services.role_service import RoleService

__all__ = [
    "AccountService",
    "AuditDispatcher",
    "AuditTrail",
    "AuditLogService",
    "AuthService",
    "GroupService",
    "ProfileService",
    "RoleService",
]
