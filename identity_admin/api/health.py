"""
Health check endpoint.

Reports database connectivity and the state of the audit
dispatcher. A dispatcher that has not started yet is "idle": it
starts on the first recorded event, so idle is not a failure.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from identity_admin.api.deps import get_audit_dispatcher
from identity_admin.models.base import get_db
from identity_admin.services.audit_service import AuditDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(
    db: Session = Depends(get_db),
    dispatcher: AuditDispatcher = Depends(get_audit_dispatcher),
):
    """
    Return application health.

    Only the database decides between healthy and degraded. Dropped
    audit events are reported so monitoring can alert on them.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": "identity-admin",
        "database": db_status,
        "audit": {
            "dispatcher": "running" if dispatcher.is_running else "idle",
            "droppedEvents": dispatcher.dropped_count,
        },
    }
