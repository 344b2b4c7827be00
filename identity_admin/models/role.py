"""
Role model.

Roles are shared reference data: the same role can be granted
directly to many accounts and through many groups.
"""

from datetime import datetime

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from identity_admin.models.base import Base
from identity_admin.models.associations import role_permissions


# Names of the roles the system itself relies on
ADMIN_ROLE = "ADMIN"
USER_ROLE = "USER"


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    permissions: Mapped[set["Permission"]] = relationship(
        secondary=role_permissions,
    )

    def __repr__(self) -> str:
        return f"<Role {self.name}>"
