"""
Audit log listing, newest first.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from identity_admin.api.deps import require_authority
from identity_admin.models.base import get_db
from identity_admin.schemas.audit import AuditLogResponse
from identity_admin.schemas.common import PageResponse
from identity_admin.security.principal import Principal
from identity_admin.services.audit_service import AuditLogService

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=PageResponse[AuditLogResponse])
def list_audit_logs(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authority("SYSTEM_MANAGE", "USER_READ")),
):
    logs, total = AuditLogService(db).list_logs(page, size)
    return PageResponse[AuditLogResponse](
        items=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        size=size,
    )
