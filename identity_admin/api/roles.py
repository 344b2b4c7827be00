"""
Role and permission listing. Roles are reference data: read-only here.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from identity_admin.api.deps import require_authority
from identity_admin.models.base import get_db
from identity_admin.schemas.role import PermissionResponse, RoleResponse
from identity_admin.security.principal import Principal
from identity_admin.services.role_service import RoleService

router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get("", response_model=list[RoleResponse])
def list_roles(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authority("ROLE_READ")),
):
    return RoleService(db).list_roles()


@router.get("/permissions", response_model=list[PermissionResponse])
def list_permissions(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authority("ROLE_READ")),
):
    return RoleService(db).list_permissions()
