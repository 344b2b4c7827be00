"""
Shared FastAPI dependencies: credentials, audit trail and principal.

Every route that needs an authenticated caller depends on
require_authority(...), which resolves the bearer token to a
Principal and checks it holds at least one of the authorities.
"""

import logging
from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from identity_admin.config import get_settings
from identity_admin.errors import Forbidden, Unauthenticated
from identity_admin.models.base import SessionLocal, get_db
from identity_admin.security.principal import Principal
from identity_admin.security.tokens import CredentialService
from identity_admin.services.account_service import AccountService
from identity_admin.services.audit_service import (
    AuditActor,
    AuditDispatcher,
    AuditTrail,
)

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI
bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_credential_service() -> CredentialService:
    return CredentialService.from_settings(get_settings())


@lru_cache()
def get_audit_dispatcher() -> AuditDispatcher:
    settings = get_settings()
    return AuditDispatcher(SessionLocal, max_queue_size=settings.AUDIT_QUEUE_SIZE)


def get_audit_trail(
    dispatcher: AuditDispatcher = Depends(get_audit_dispatcher),
) -> AuditTrail:
    return AuditTrail(dispatcher)


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer, else UNKNOWN."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "UNKNOWN"


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if not credentials or not credentials.credentials:
        raise Unauthenticated("Full authentication is required to access this resource")
    return credentials.credentials


def get_current_principal(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credential_service),
) -> Principal:
    """
    Resolve the bearer token to a Principal built from stored state.

    The token only names the subject. Gates and authorities come
    from the account as it is now.
    """
    username = credentials.extract_subject(token)
    account = AccountService(db).get_by_username(username)
    if account is None:
        logger.warning("Token subject no longer exists: %s", username)
        raise Unauthenticated("Invalid or expired token")

    principal = Principal.from_account(account)
    principal.ensure_can_authenticate()
    if not credentials.validate(token, principal.username):
        raise Unauthenticated("Invalid or expired token")
    return principal


def require_authority(*authorities: str):
    """Dependency factory: the caller must hold any one of the authorities."""

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_any_authority(*authorities):
            logger.warning(
                "Access denied for %s, requires one of %s",
                principal.username, authorities,
            )
            raise Forbidden("Access denied")
        return principal

    return dependency


def get_anonymous_actor(request: Request) -> AuditActor:
    """Actor for unauthenticated endpoints such as login."""
    return AuditActor(user_id=None, username="SYSTEM", ip_address=client_ip(request))


def actor_for(principal: Principal, request: Request) -> AuditActor:
    return AuditActor(
        user_id=principal.id,
        username=principal.username,
        ip_address=client_ip(request),
    )
