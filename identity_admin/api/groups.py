"""
Group management endpoints. All of them require SYSTEM_MANAGE.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from identity_admin.api.deps import actor_for, get_audit_trail, require_authority
from identity_admin.errors import IdentityError
from identity_admin.models.base import get_db
from identity_admin.schemas.group import (
    GroupAssignUsersRequest,
    GroupRequest,
    GroupResponse,
)
from identity_admin.security.principal import Principal
from identity_admin.services.audit_service import AuditTrail
from identity_admin.services.group_service import GroupService

router = APIRouter(prefix="/groups", tags=["Groups"])

require_manage = require_authority("SYSTEM_MANAGE")


def get_group_service(
    request: Request,
    db: Session = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    principal: Principal = Depends(require_manage),
) -> GroupService:
    return GroupService(db, audit, actor_for(principal, request))


@router.get("", response_model=list[GroupResponse])
def list_groups(service: GroupService = Depends(get_group_service)):
    return service.list_groups()


@router.get("/{group_id}", response_model=GroupResponse)
def get_group(group_id: int, service: GroupService = Depends(get_group_service)):
    return service.get_group(group_id)


@router.post("", response_model=GroupResponse, status_code=201)
def create_group(
    body: GroupRequest,
    service: GroupService = Depends(get_group_service),
):
    try:
        group = service.create_group(body)
        service.db.commit()
        return group
    except IdentityError:
        service.db.rollback()
        raise


@router.put("/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: int,
    body: GroupRequest,
    service: GroupService = Depends(get_group_service),
):
    try:
        group = service.update_group(group_id, body)
        service.db.commit()
        return group
    except IdentityError:
        service.db.rollback()
        raise


@router.delete("/{group_id}", status_code=204)
def delete_group(group_id: int, service: GroupService = Depends(get_group_service)):
    """Delete an empty group. A group that still has members is refused."""
    try:
        service.delete_group(group_id)
        service.db.commit()
        return Response(status_code=204)
    except IdentityError:
        service.db.rollback()
        raise


@router.post("/{group_id}/users", response_model=GroupResponse)
def assign_users(
    group_id: int,
    body: GroupAssignUsersRequest,
    service: GroupService = Depends(get_group_service),
):
    try:
        group = service.assign_members(group_id, body)
        service.db.commit()
        return group
    except IdentityError:
        service.db.rollback()
        raise


@router.delete("/{group_id}/users/{user_id}", status_code=204)
def remove_user(
    group_id: int,
    user_id: int,
    service: GroupService = Depends(get_group_service),
):
    try:
        service.remove_member(group_id, user_id)
        service.db.commit()
        return Response(status_code=204)
    except IdentityError:
        service.db.rollback()
        raise
