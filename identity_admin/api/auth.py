"""
Authentication endpoints: login, refresh, registration, current principal.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from identity_admin.api.deps import (
    get_anonymous_actor,
    get_audit_trail,
    get_bearer_token,
    get_credential_service,
    get_current_principal,
)
from identity_admin.errors import IdentityError
from identity_admin.models.base import get_db
from identity_admin.schemas.auth import (
    AuthResponse,
    LoginRequest,
    PrincipalResponse,
    RegisterRequest,
)
from identity_admin.security.principal import Principal
from identity_admin.security.tokens import CredentialService
from identity_admin.services.audit_service import AuditActor, AuditTrail
from identity_admin.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credential_service),
    audit: AuditTrail = Depends(get_audit_trail),
    actor: AuditActor = Depends(get_anonymous_actor),
) -> AuthService:
    return AuthService(db, credentials, audit, actor)


@router.post("/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Exchange a username and password for an access/refresh token pair.

    rememberMe selects the extended refresh token lifetime.
    """
    return service.login(request)


@router.post("/refresh", response_model=AuthResponse)
def refresh(
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
):
    """Issue a new access token. The refresh token is sent as a bearer token."""
    return service.refresh(token)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    request: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    try:
        response = service.register(request)
        service.db.commit()
        return response
    except IdentityError:
        service.db.rollback()
        raise


@router.get("/me", response_model=PrincipalResponse)
def me(principal: Principal = Depends(get_current_principal)):
    return PrincipalResponse(
        id=principal.id,
        username=principal.username,
        authorities=sorted(principal.authorities),
    )
