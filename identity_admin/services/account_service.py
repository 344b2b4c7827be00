"""
Account service: manages accounts and their lifecycle.

    ACTIVE -> SOFT_DELETED -> ACTIVE (restore)
                           -> PURGED (terminal)

Rules:
1. Usernames and emails are unique among live accounts only
2. Only a soft-deleted account can be restored or purged; an
   active account always goes through delete-then-purge
3. A bulk delete may never remove every enabled administrator;
   the check and the deletion share one transaction and a lock
   on the ADMIN role row
4. Bulk status changes skip unknown ids; bulk deletes do not

Every state change is recorded on the audit trail. The caller
owns the transaction: nothing here commits.
"""

import logging
from datetime import datetime

from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import Session

from identity_admin.errors import DuplicateIdentity, InvalidState, NotFound
from identity_admin.models.account import Account
from identity_admin.models.group import Group, DEFAULT_GROUP
from identity_admin.models.role import Role, ADMIN_ROLE, USER_ROLE
from identity_admin.schemas.account import AccountCreate, AccountUpdate
from identity_admin.security.passwords import hash_password
from identity_admin.security.permissions import account_graph_options
from identity_admin.services.audit_service import (
    AuditActor,
    AuditTrail,
    SYSTEM_ACTOR,
)

logger = logging.getLogger(__name__)

AUDIT_RESOURCE = "USER"


def live_accounts():
    """Accounts that are not soft-deleted."""
    return Account.deleted_at.is_(None)


def holds_admin_role():
    """Accounts granted ADMIN directly or through any group."""
    return or_(
        Account.roles.any(Role.name == ADMIN_ROLE),
        Account.groups.any(Group.roles.any(Role.name == ADMIN_ROLE)),
    )


class AccountService:

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

    # --- Lookups ---

    def get_account(self, account_id: int) -> Account:
        """Get a live account by ID."""
        account = self.db.execute(
            select(Account)
            .options(*account_graph_options())
            .where(Account.id == account_id, live_accounts())
        ).scalar_one_or_none()
        if not account:
            raise NotFound(f"User not found with id: {account_id}")
        return account

    def get_by_username(self, username: str) -> Account | None:
        """Find a live account with its full role/group graph loaded."""
        return self.db.execute(
            select(Account)
            .options(*account_graph_options())
            .where(Account.username == username, live_accounts())
        ).scalar_one_or_none()

    def get_account_by_username(self, username: str) -> Account:
        account = self.get_by_username(username)
        if not account:
            raise NotFound(f"User not found with username: {username}")
        return account

    def find_by_email(self, email: str) -> Account | None:
        return self.db.execute(
            select(Account).where(Account.email == email, live_accounts())
        ).scalar_one_or_none()

    def list_accounts(
        self, page: int = 0, size: int = 20, deleted: bool = False
    ) -> tuple[list[Account], int]:
        """One page of live (or, with deleted=True, soft-deleted) accounts."""
        condition = (
            Account.deleted_at.is_not(None) if deleted else live_accounts()
        )
        total = self.db.execute(
            select(func.count(Account.id)).where(condition)
        ).scalar_one()
        accounts = self.db.execute(
            select(Account)
            .options(*account_graph_options())
            .where(condition)
            .order_by(Account.id)
            .offset(page * size)
            .limit(size)
        ).scalars().all()
        return list(accounts), total

    def _ensure_identity_free(
        self,
        username: str | None,
        email: str | None,
        exclude_id: int | None = None,
    ) -> None:
        """Raise DuplicateIdentity if a live account already uses either value."""
        if username is not None:
            existing = self.get_by_username(username)
            if existing and existing.id != exclude_id:
                raise DuplicateIdentity(f"Username already exists: {username}")
        if email is not None:
            existing = self.find_by_email(email)
            if existing and existing.id != exclude_id:
                raise DuplicateIdentity(f"Email already exists: {email}")

    def _load_roles(self, role_ids: set[int]) -> set[Role]:
        roles = set(self.db.execute(
            select(Role).where(Role.id.in_(role_ids))
        ).scalars().all())
        missing = set(role_ids) - {r.id for r in roles}
        if missing:
            raise NotFound(f"Roles not found: {sorted(missing)}")
        return roles

    # --- Creation and update ---

    def create_account(self, request: AccountCreate) -> Account:
        """
        Create a new live account.

        Without explicit role_ids the account gets the USER role.
        It also joins the default group when that group exists.
        """
        logger.debug("Creating user: %s", request.username)
        self._ensure_identity_free(request.username, request.email)

        account = Account(
            username=request.username,
            email=request.email,
            password_hash=hash_password(request.password),
        )

        if request.role_ids:
            account.roles = self._load_roles(request.role_ids)
        else:
            user_role = self.db.execute(
                select(Role).where(Role.name == USER_ROLE)
            ).scalar_one_or_none()
            if user_role:
                account.roles = {user_role}

        self.db.add(account)

        default_group = self.db.execute(
            select(Group).where(Group.name == DEFAULT_GROUP)
        ).scalar_one_or_none()
        if default_group:
            default_group.add_member(account)

        self.db.flush()
        logger.info("User created successfully: %s", account.username)
        self._record("USER_CREATED", account.id, {"username": account.username})
        return account

    def update_account(self, account_id: int, request: AccountUpdate) -> Account:
        """Apply a partial update to a live account."""
        logger.debug("Updating user with id: %s", account_id)
        account = self.get_account(account_id)

        new_username = (
            request.username if request.username not in (None, account.username) else None
        )
        new_email = (
            request.email if request.email not in (None, account.email) else None
        )
        self._ensure_identity_free(new_username, new_email, exclude_id=account.id)

        changed = []
        if new_username is not None:
            account.username = new_username
            changed.append("username")
        if new_email is not None:
            account.email = new_email
            changed.append("email")
        if request.password:
            account.password_hash = hash_password(request.password)
            changed.append("password")
        for flag in ("enabled", "account_expired", "account_locked", "credentials_expired"):
            value = getattr(request, flag)
            if value is not None and value != getattr(account, flag):
                setattr(account, flag, value)
                changed.append(flag)
        if request.role_ids is not None:
            account.roles = self._load_roles(request.role_ids)
            changed.append("roles")

        self.db.flush()
        logger.info("User updated successfully: %s", account.username)
        self._record("USER_UPDATED", account.id, {"changed": changed})
        return account

    # --- Lifecycle transitions ---

    def soft_delete(self, account_id: int) -> None:
        """
        Mark a live account as deleted.

        A single conditional UPDATE: if nothing matched, the account
        either does not exist or is already deleted.
        """
        logger.debug("Soft-deleting user with id: %s", account_id)
        result = self.db.execute(
            update(Account)
            .where(Account.id == account_id, live_accounts())
            .values(deleted_at=datetime.utcnow())
        )
        if result.rowcount == 0:
            raise NotFound(f"User not found with id: {account_id}")

        logger.info("User soft-deleted successfully with id: %s", account_id)
        self._record("USER_DELETED", account_id)

    def bulk_soft_delete(self, account_ids: list[int]) -> int:
        """
        Soft-delete a batch of live accounts, all or nothing.

        Fails with NotFound if any id is not a live account, and with
        InvalidState if the batch holds every enabled administrator.
        The ADMIN role row is locked first, so two concurrent batches
        cannot both pass the check against the same count.
        """
        ids = list(dict.fromkeys(account_ids))
        logger.debug("Bulk soft-deleting users: %s", ids)

        # A no-op write on the ADMIN role row takes the write lock before
        # anything is counted: a row lock on PostgreSQL, the database
        # write lock on SQLite (which ignores SELECT ... FOR UPDATE).
        # Concurrent bulk deletes queue here until the caller commits.
        self.db.execute(
            update(Role)
            .where(Role.name == ADMIN_ROLE)
            .values(name=Role.name)
            .execution_options(synchronize_session=False)
        )

        found = set(self.db.execute(
            select(Account.id).where(Account.id.in_(ids), live_accounts())
        ).scalars().all())
        missing = [i for i in ids if i not in found]
        if missing:
            raise NotFound(f"Users not found with ids: {missing}")

        admin_filter = (live_accounts(), Account.enabled.is_(True), holds_admin_role())
        admin_count = self.db.execute(
            select(func.count(Account.id)).where(*admin_filter)
        ).scalar_one()
        admins_in_batch = self.db.execute(
            select(func.count(Account.id)).where(*admin_filter, Account.id.in_(ids))
        ).scalar_one()

        if admin_count > 0 and admins_in_batch >= admin_count:
            raise InvalidState("Cannot delete the last admin user")

        result = self.db.execute(
            update(Account)
            .where(Account.id.in_(ids), live_accounts())
            .values(deleted_at=datetime.utcnow())
        )
        deleted = result.rowcount
        logger.info("Bulk soft-deleted %d users", deleted)
        self._record("USERS_BULK_DELETED", None, {"userIds": ids, "count": deleted})
        return deleted

    def restore(self, account_id: int) -> Account:
        """
        Bring a soft-deleted account back.

        Its username or email may have been taken by a live account
        in the meantime, in which case restoring would break
        uniqueness and fails with DuplicateIdentity.
        """
        logger.debug("Restoring user with id: %s", account_id)
        account = self.db.get(Account, account_id)
        if not account or account.deleted_at is None:
            raise NotFound(f"Deleted user not found with id: {account_id}")

        self._ensure_identity_free(account.username, account.email)

        result = self.db.execute(
            update(Account)
            .where(Account.id == account_id, Account.deleted_at.is_not(None))
            .values(deleted_at=None)
        )
        if result.rowcount == 0:
            raise NotFound(f"Deleted user not found with id: {account_id}")

        self.db.refresh(account)
        logger.info("User restored successfully: %s", account.username)
        self._record("USER_RESTORED", account.id)
        return account

    def purge(self, account_id: int) -> None:
        """
        Permanently remove a soft-deleted account.

        Role grants and group memberships go with it. An active
        account is reported as NotFound: it must be soft-deleted first.
        """
        logger.debug("Permanently deleting user with id: %s", account_id)
        account = self.db.get(Account, account_id)
        if not account or account.deleted_at is None:
            raise NotFound(f"Deleted user not found with id: {account_id}")

        username = account.username
        for group in list(account.groups):
            group.remove_member(account)
        self.db.delete(account)
        self.db.flush()

        logger.info("User permanently deleted: %s", username)
        self._record("USER_PURGED", account_id, {"username": username})

    def bulk_update_status(self, account_ids: list[int], enabled: bool) -> int:
        """
        Enable or disable a batch of live accounts.

        Ids that do not resolve to a live account are skipped
        silently. Returns how many accounts were updated.
        """
        ids = list(dict.fromkeys(account_ids))
        logger.debug("Bulk updating status for users: %s to enabled=%s", ids, enabled)

        accounts = self.db.execute(
            select(Account).where(Account.id.in_(ids), live_accounts())
        ).scalars().all()
        for account in accounts:
            account.enabled = enabled

        self.db.flush()
        count = len(accounts)
        logger.info("Bulk updated status for %d users to enabled=%s", count, enabled)
        self._record(
            "USERS_BULK_STATUS_UPDATED",
            None,
            {"userIds": [a.id for a in accounts], "enabled": enabled},
        )
        return count
