"""
Group model.

A group bundles roles and grants them to every member.
Membership is bidirectional: Group.members and Account.groups
both read the same association table. To keep the two in-memory
collections consistent, add_member() and remove_member() are the
only code paths that change membership.
"""

from datetime import datetime

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from identity_admin.models.base import Base
from identity_admin.models.associations import group_roles, group_members


DEFAULT_GROUP = "Default Users"


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    roles: Mapped[set["Role"]] = relationship(secondary=group_roles)
    members: Mapped[set["Account"]] = relationship(
        secondary=group_members,
        back_populates="groups",
    )

    def add_member(self, account: "Account") -> bool:
        """Add an account to the group. Returns False if already a member."""
        if account in self.members:
            return False
        # back_populates mirrors this into account.groups
        self.members.add(account)
        return True

    def remove_member(self, account: "Account") -> bool:
        """Remove an account from the group. Returns False if not a member."""
        if account not in self.members:
            return False
        self.members.discard(account)
        return True

    def __repr__(self) -> str:
        return f"<Group {self.name}>"
