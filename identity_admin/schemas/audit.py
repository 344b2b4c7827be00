"""
Pydantic schemas for the audit log listing.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from identity_admin.schemas.common import CamelModel


class AuditLogResponse(CamelModel):
    id: int
    user_id: int | None
    username: str
    action: str
    resource: str
    resource_id: str | None
    # Stored in the "metadata" column; the ORM attribute is named details
    details: dict[str, Any] | None = Field(
        validation_alias=AliasChoices("details", "metadata"),
        serialization_alias="metadata",
    )
    ip_address: str | None
    created_at: datetime
