"""
Audit log model.

Records security-relevant actions: who did what to which
resource, from where, and when.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from identity_admin.models.base import Base


class AuditLog(Base):
    """
    Immutable record of a security-relevant action.

    Audit logs are append-only. Nothing in the application
    updates or deletes an audit record. A null user_id means
    the action was initiated by the system itself.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(nullable=True, index=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    resource: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.resource}:{self.resource_id} by {self.username}>"
