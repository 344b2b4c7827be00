"""
Group service: group CRUD and membership.

Membership changes only go through Group.add_member() and
Group.remove_member(), which keep both sides of the
relationship in sync.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from identity_admin.errors import DuplicateIdentity, InvalidState, NotFound
from identity_admin.models.account import Account
from identity_admin.models.group import Group
from identity_admin.models.role import Role
from identity_admin.schemas.group import GroupRequest, GroupAssignUsersRequest
from identity_admin.services.audit_service import (
    AuditActor,
    AuditTrail,
    SYSTEM_ACTOR,
)

logger = logging.getLogger(__name__)

AUDIT_RESOURCE = "GROUP"


class GroupService:

    def __init__(
        self,
        db: Session,
        audit: AuditTrail | None = None,
        actor: AuditActor = SYSTEM_ACTOR,
    ):
        self.db = db
        self.audit = audit
        self.actor = actor

    def _record(self, action: str, resource_id=None, metadata=None) -> None:
        if self.audit is not None:
            self.audit.record(
                action, AUDIT_RESOURCE, resource_id, metadata, actor=self.actor
            )

    def _name_taken(self, name: str) -> bool:
        return self.db.execute(
            select(Group.id).where(Group.name == name)
        ).first() is not None

    def _load_roles(self, role_ids: set[int]) -> set[Role]:
        roles = set(self.db.execute(
            select(Role).where(Role.id.in_(role_ids))
        ).scalars().all())
        if len(roles) != len(role_ids):
            raise NotFound("One or more role IDs not found")
        return roles

    def list_groups(self) -> list[Group]:
        groups = self.db.execute(
            select(Group)
            .options(selectinload(Group.roles), selectinload(Group.members))
            .order_by(Group.name)
        ).scalars().all()
        return list(groups)

    def get_group(self, group_id: int) -> Group:
        group = self.db.execute(
            select(Group)
            .options(selectinload(Group.roles), selectinload(Group.members))
            .where(Group.id == group_id)
        ).scalar_one_or_none()
        if not group:
            raise NotFound(f"Group not found with id: {group_id}")
        return group

    def create_group(self, request: GroupRequest) -> Group:
        if self._name_taken(request.name):
            raise DuplicateIdentity(f"Group already exists with name: {request.name}")

        group = Group(name=request.name, description=request.description)
        if request.role_ids:
            group.roles = self._load_roles(request.role_ids)

        self.db.add(group)
        self.db.flush()
        logger.info("Group created: %s", group.name)
        self._record("GROUP_CREATED", group.id, {"name": group.name})
        return group

    def update_group(self, group_id: int, request: GroupRequest) -> Group:
        """
        Replace a group's name, description and roles.

        Omitting role_ids clears the group's roles.
        """
        group = self.get_group(group_id)

        if group.name != request.name and self._name_taken(request.name):
            raise DuplicateIdentity(f"Group already exists with name: {request.name}")

        group.name = request.name
        group.description = request.description
        group.roles = self._load_roles(request.role_ids) if request.role_ids else set()

        self.db.flush()
        logger.info("Group updated: %s", group.name)
        self._record(
            "GROUP_UPDATED",
            group.id,
            {"name": group.name, "roleIds": sorted(r.id for r in group.roles)},
        )
        return group

    def delete_group(self, group_id: int) -> None:
        group = self.get_group(group_id)

        if group.members:
            raise InvalidState(
                "Cannot delete group with existing users. Please remove all users first."
            )

        self.db.delete(group)
        self.db.flush()
        logger.info("Group deleted: %s", group.name)
        self._record("GROUP_DELETED", group_id, {"name": group.name})

    def assign_members(self, group_id: int, request: GroupAssignUsersRequest) -> Group:
        """Add live accounts to a group. Every id must resolve."""
        group = self.get_group(group_id)

        ids = set(request.user_ids)
        accounts = self.db.execute(
            select(Account).where(Account.id.in_(ids), Account.deleted_at.is_(None))
        ).scalars().all()
        if len(accounts) != len(ids):
            raise NotFound("One or more user IDs not found")

        added = [a.id for a in accounts if group.add_member(a)]

        self.db.flush()
        logger.info("Added %d users to group %s", len(added), group.name)
        self._record("GROUP_MEMBERS_ADDED", group.id, {"userIds": sorted(added)})
        return group

    def remove_member(self, group_id: int, account_id: int) -> None:
        group = self.get_group(group_id)

        account = self.db.get(Account, account_id)
        if not account:
            raise NotFound(f"User not found with id: {account_id}")

        group.remove_member(account)

        self.db.flush()
        logger.info("Removed user %s from group %s", account.username, group.name)
        self._record("GROUP_MEMBER_REMOVED", group.id, {"userId": account_id})
