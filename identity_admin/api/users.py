"""
User management endpoints.

Each mutating route commits on success and rolls back on any
IdentityError, so a failed bulk operation leaves nothing behind.
"""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from identity_admin.api.deps import actor_for, get_audit_trail, require_authority
from identity_admin.errors import IdentityError
from identity_admin.models.base import get_db
from identity_admin.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    BulkActionRequest,
    BulkActionResponse,
    BulkStatusRequest,
)
from identity_admin.schemas.common import PageResponse
from identity_admin.security.principal import Principal
from identity_admin.services.account_service import AccountService
from identity_admin.services.audit_service import AuditTrail

router = APIRouter(prefix="/users", tags=["Users"])


def _service(db: Session, audit: AuditTrail, principal: Principal, request: Request):
    return AccountService(db, audit, actor_for(principal, request))


@router.get("", response_model=PageResponse[AccountResponse])
def list_users(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    deleted: bool = False,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authority("USER_READ")),
):
    """List live users, or soft-deleted ones with deleted=true."""
    accounts, total = AccountService(db).list_accounts(page, size, deleted=deleted)
    return PageResponse[AccountResponse](
        items=[AccountResponse.model_validate(a) for a in accounts],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{user_id}", response_model=AccountResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authority("USER_READ")),
):
    return AccountService(db).get_account(user_id)


@router.get("/username/{username}", response_model=AccountResponse)
def get_user_by_username(
    username: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authority("USER_READ")),
):
    return AccountService(db).get_account_by_username(username)


@router.post("", response_model=AccountResponse, status_code=201)
def create_user(
    body: AccountCreate,
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(require_authority("USER_CREATE")),
):
    service = _service(db, audit, principal, request)
    try:
        account = service.create_account(body)
        db.commit()
        return account
    except IdentityError:
        db.rollback()
        raise


@router.put("/{user_id}", response_model=AccountResponse)
def update_user(
    user_id: int,
    body: AccountUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(require_authority("USER_UPDATE")),
):
    service = _service(db, audit, principal, request)
    try:
        account = service.update_account(user_id, body)
        db.commit()
        return account
    except IdentityError:
        db.rollback()
        raise


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(require_authority("USER_DELETE")),
):
    """Soft-delete a user. The row stays and can be restored."""
    service = _service(db, audit, principal, request)
    try:
        service.soft_delete(user_id)
        db.commit()
        return Response(status_code=204)
    except IdentityError:
        db.rollback()
        raise


@router.post("/{user_id}/restore", response_model=AccountResponse)
def restore_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(require_authority("USER_DELETE")),
):
    service = _service(db, audit, principal, request)
    try:
        account = service.restore(user_id)
        db.commit()
        return account
    except IdentityError:
        db.rollback()
        raise


@router.delete("/{user_id}/purge", status_code=204)
def purge_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(require_authority("USER_DELETE")),
):
    """Permanently remove a soft-deleted user."""
    service = _service(db, audit, principal, request)
    try:
        service.purge(user_id)
        db.commit()
        return Response(status_code=204)
    except IdentityError:
        db.rollback()
        raise


@router.post("/bulk-delete", response_model=BulkActionResponse)
def bulk_delete_users(
    body: BulkActionRequest,
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(require_authority("USER_DELETE")),
):
    """
    Soft-delete several users at once.

    All or nothing: an unknown id, or a batch that would remove the
    last enabled administrator, changes nothing.
    """
    service = _service(db, audit, principal, request)
    try:
        affected = service.bulk_soft_delete(body.user_ids)
        db.commit()
        return BulkActionResponse(affected=affected)
    except IdentityError:
        db.rollback()
        raise


@router.post("/bulk-status", response_model=BulkActionResponse)
def bulk_update_status(
    body: BulkStatusRequest,
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(require_authority("USER_UPDATE")),
):
    service = _service(db, audit, principal, request)
    try:
        affected = service.bulk_update_status(body.user_ids, body.enabled)
        db.commit()
        return BulkActionResponse(affected=affected)
    except IdentityError:
        db.rollback()
        raise
