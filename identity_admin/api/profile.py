"""
Profile endpoints for the authenticated caller.

Any authenticated account may read and write its own profile;
no extra authority is needed.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from identity_admin.api.deps import actor_for, get_audit_trail, get_current_principal
from identity_admin.errors import IdentityError
from identity_admin.models.base import get_db
from identity_admin.schemas.profile import ProfileResponse, ProfileUpdate
from identity_admin.security.principal import Principal
from identity_admin.services.audit_service import AuditTrail
from identity_admin.services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Return the caller's profile. 404 until it has been written once."""
    return ProfileService(db).get_profile(principal.id)


@router.put("/me", response_model=ProfileResponse)
def upsert_my_profile(
    body: ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(get_current_principal),
):
    service = ProfileService(db, audit, actor_for(principal, request))
    try:
        profile = service.upsert_profile(principal.id, body)
        db.commit()
        return profile
    except IdentityError:
        db.rollback()
        raise
