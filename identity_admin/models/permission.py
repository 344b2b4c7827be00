"""
Permission model.

A permission is a (resource, action) pair. Its name is the
authority string RESOURCE_ACTION that authorization checks
compare against.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from identity_admin.models.base import Base
from identity_admin.models.enums import PermissionResource, PermissionAction


def authority_for(resource: PermissionResource, action: PermissionAction) -> str:
    """Build the authority string for a resource/action pair."""
    return f"{resource.value}_{action.value}"


class Permission(Base):
    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resource: Mapped[PermissionResource] = mapped_column(
        SAEnum(PermissionResource, name="permission_resource_enum"),
        nullable=False,
    )
    action: Mapped[PermissionAction] = mapped_column(
        SAEnum(PermissionAction, name="permission_action_enum"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __init__(self, **kwargs):
        # The name is always derived, never chosen by the caller
        if "resource" in kwargs and "action" in kwargs:
            kwargs.setdefault(
                "name", authority_for(kwargs["resource"], kwargs["action"])
            )
        super().__init__(**kwargs)

    @property
    def authority(self) -> str:
        return authority_for(self.resource, self.action)

    def __repr__(self) -> str:
        return f"<Permission {self.authority}>"
