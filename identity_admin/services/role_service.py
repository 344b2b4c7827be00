"""
Role service: role/permission listing and reference data.

The permission catalogue is closed: one permission per
(resource, action) pair. seed_defaults() makes sure it exists,
together with the ADMIN and USER roles and the default group.
It is idempotent and safe to run on every startup.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from identity_admin.errors import NotFound
from identity_admin.models.account import Account
from identity_admin.models.enums import PermissionResource, PermissionAction
from identity_admin.models.group import Group, DEFAULT_GROUP
from identity_admin.models.permission import Permission, authority_for
from identity_admin.models.role import Role, ADMIN_ROLE, USER_ROLE
from identity_admin.schemas.account import AccountCreate
from identity_admin.services.account_service import AccountService

logger = logging.getLogger(__name__)

# Authorities the USER role starts with
USER_ROLE_AUTHORITIES = {"USER_READ"}


class RoleService:

    def __init__(self, db: Session):
        self.db = db

    def list_roles(self) -> list[Role]:
        roles = self.db.execute(
            select(Role).options(selectinload(Role.permissions)).order_by(Role.name)
        ).scalars().all()
        return list(roles)

    def list_permissions(self) -> list[Permission]:
        permissions = self.db.execute(
            select(Permission).order_by(Permission.name)
        ).scalars().all()
        return list(permissions)

    def get_role_by_name(self, name: str) -> Role | None:
        return self.db.execute(
            select(Role).options(selectinload(Role.permissions)).where(Role.name == name)
        ).scalar_one_or_none()

    def seed_defaults(self) -> None:
        """Create any missing permissions, roles and the default group."""
        existing = {p.name: p for p in self.list_permissions()}
        for resource in PermissionResource:
            for action in PermissionAction:
                name = authority_for(resource, action)
                if name not in existing:
                    permission = Permission(
                        resource=resource,
                        action=action,
                        description=f"{action.value.title()} {resource.value.lower()}",
                    )
                    self.db.add(permission)
                    existing[name] = permission

        admin = self._ensure_role(ADMIN_ROLE, "Full administrative access")
        admin.permissions = set(existing.values())

        user = self._ensure_role(USER_ROLE, "Standard user")
        if not user.permissions:
            user.permissions = {existing[a] for a in USER_ROLE_AUTHORITIES}

        default_group = self.db.execute(
            select(Group).where(Group.name == DEFAULT_GROUP)
        ).scalar_one_or_none()
        if not default_group:
            default_group = Group(
                name=DEFAULT_GROUP,
                description="Default group for new users",
                roles={user},
            )
            self.db.add(default_group)

        self.db.flush()
        logger.info("Reference data seeded: %d permissions", len(existing))

    def bootstrap_admin(self, username: str, email: str, password: str) -> Account | None:
        """
        Create the first administrator unless the username is taken.

        Returns the new account, or None when nothing was created.
        """
        accounts = AccountService(self.db)
        if accounts.get_by_username(username):
            return None

        admin_role = self.get_role_by_name(ADMIN_ROLE)
        if not admin_role:
            raise NotFound(f"Role not found: {ADMIN_ROLE}")

        account = accounts.create_account(AccountCreate(
            username=username,
            email=email,
            password=password,
            role_ids={admin_role.id},
        ))
        logger.info("Bootstrap administrator created: %s", username)
        return account

    def _ensure_role(self, name: str, description: str) -> Role:
        role = self.get_role_by_name(name)
        if not role:
            role = Role(name=name, description=description)
            self.db.add(role)
        return role
