"""
Authentication service: login, token refresh and self-registration.

Rules:
1. Bad credentials always produce the same message, whether the
   username is unknown or the password is wrong
2. An unknown username still costs one password verification
3. Account gates (disabled, locked, expired) are checked only
   after the password has been verified
4. Refresh reloads the account and re-resolves its authorities;
   the authorities embedded in the presented token are ignored
"""

import logging

from sqlalchemy.orm import Session

from identity_admin.errors import Unauthenticated
from identity_admin.schemas.account import AccountCreate, AccountResponse
from identity_admin.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from identity_admin.security.passwords import dummy_verify, verify_password
from identity_admin.security.principal import Principal
from identity_admin.security.tokens import CredentialService
from identity_admin.services.account_service import AccountService
from identity_admin.services.audit_service import (
    AuditActor,
    AuditTrail,
    SYSTEM_ACTOR,
)

logger = logging.getLogger(__name__)

AUDIT_RESOURCE = "AUTH"

BAD_CREDENTIALS = "Invalid username or password"


class AuthService:

    def __init__(
        self,
        db: Session,
        credentials: CredentialService,
        audit: AuditTrail | None = None,
        actor: AuditActor = SYSTEM_ACTOR,
    ):
        self.db = db
        self.credentials = credentials
        self.audit = audit
        self.actor = actor
        self.accounts = AccountService(db, audit, actor)

    def _record(self, action: str, actor: AuditActor, resource_id=None, metadata=None) -> None:
        if self.audit is not None:
            self.audit.record(
                action, AUDIT_RESOURCE, resource_id, metadata, actor=actor
            )

    def _acting_as(self, principal: Principal) -> AuditActor:
        return AuditActor(
            user_id=principal.id,
            username=principal.username,
            ip_address=self.actor.ip_address,
        )

    def _respond(self, principal: Principal, refresh_token: str) -> AuthResponse:
        return AuthResponse(
            access_token=self.credentials.issue_access_token(principal),
            refresh_token=refresh_token,
            expires_in=self.credentials.access_token_lifetime,
            user=AccountResponse.model_validate(principal.account),
        )

    def login(self, request: LoginRequest) -> AuthResponse:
        logger.debug("Login attempt for user: %s", request.username)
        account = self.accounts.get_by_username(request.username)

        if account is None:
            dummy_verify()
            self._reject(request.username, "unknown user")
        if not verify_password(request.password, account.password_hash):
            self._reject(request.username, "bad password")

        principal = Principal.from_account(account)
        try:
            principal.ensure_can_authenticate()
        except Unauthenticated as e:
            self._reject(request.username, e.message)

        refresh_token = self.credentials.issue_refresh_token(
            principal, extended=request.remember_me
        )
        logger.info("User logged in successfully: %s", principal.username)
        self._record(
            "LOGIN_SUCCESS",
            self._acting_as(principal),
            principal.id,
            {"rememberMe": request.remember_me},
        )
        return self._respond(principal, refresh_token)

    def _reject(self, username: str, reason: str) -> None:
        logger.warning("Login failed for user %s: %s", username, reason)
        self._record(
            "LOGIN_FAILED",
            AuditActor(None, username, self.actor.ip_address),
            None,
            {"reason": reason},
        )
        raise Unauthenticated(BAD_CREDENTIALS)

    def refresh(self, refresh_token: str) -> AuthResponse:
        """
        Issue a new access token for a valid refresh token.

        The refresh token itself is returned unchanged.
        """
        username = self.credentials.extract_subject(refresh_token)
        account = self.accounts.get_by_username(username)
        if account is None:
            raise Unauthenticated("Invalid or expired token")

        principal = Principal.from_account(account)
        principal.ensure_can_authenticate()
        if not self.credentials.validate(refresh_token, principal.username):
            raise Unauthenticated("Invalid or expired token")

        logger.info("Token refreshed for user: %s", principal.username)
        self._record("TOKEN_REFRESHED", self._acting_as(principal), principal.id)
        return self._respond(principal, refresh_token)

    def register(self, request: RegisterRequest) -> AuthResponse:
        """Create an account with the default role and group, then sign it in."""
        account = self.accounts.create_account(AccountCreate(
            username=request.username,
            email=request.email,
            password=request.password,
        ))

        principal = Principal.from_account(account)
        refresh_token = self.credentials.issue_refresh_token(principal)
        logger.info("User registered successfully: %s", principal.username)
        self._record(
            "USER_REGISTERED",
            self._acting_as(principal),
            principal.id,
            {"username": principal.username},
        )
        return self._respond(principal, refresh_token)
