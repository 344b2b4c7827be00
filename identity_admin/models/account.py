"""
Account model.

An account is a login identity. It holds its credential hash,
the flags that gate authentication, directly granted roles,
and group memberships.

Lifecycle:

    ACTIVE -> SOFT_DELETED -> ACTIVE (restore)
                           -> PURGED (row removed, terminal)

Soft deletion is a timestamp, not a status column: deleted_at
is NULL for live accounts. Usernames and emails only have to be
unique among live accounts, so a soft-deleted account's username
can be taken again. The partial unique indexes below enforce that
at the database level.
"""

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from identity_admin.models.base import Base
from identity_admin.models.associations import account_roles, group_members


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        Index(
            "uq_accounts_username_live",
            "username",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index(
            "uq_accounts_email_live",
            "email",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Authentication gates, each checked independently
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    account_expired: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    account_locked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    credentials_expired: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    roles: Mapped[set["Role"]] = relationship(secondary=account_roles)
    groups: Mapped[set["Group"]] = relationship(
        secondary=group_members,
        back_populates="members",
    )
    profile: Mapped["Profile"] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        state = "deleted" if self.is_deleted else "live"
        return f"<Account {self.username} ({state})>"
