"""
Credential service: signed, time-bounded bearer tokens.

Tokens are HS256 JWTs with four claims:

    sub          username of the principal
    authorities  list of authority strings at issuance time
    iat          issued-at, epoch seconds
    exp          expiry, epoch seconds

Embedding the authorities saves a storage round trip per request.
The price is staleness: an access token keeps the authorities it
was issued with until it expires. Refresh and login always
re-resolve authorities from storage, so a permission change takes
effect at the next refresh. There is no revocation list.

Access and refresh tokens share the same claim shape. They differ
only in lifetime; refresh tokens come in a standard and an extended
("remember me") tier.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from jose import JWTError, jwt

from identity_admin.config import DEFAULT_JWT_SECRET, Settings
from identity_admin.errors import SigningKeyError, Unauthenticated
from identity_admin.security.principal import Principal

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# HMAC-SHA256 needs a key at least as long as its output
MIN_SECRET_BYTES = 32


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialService:

    def __init__(
        self,
        secret: str,
        access_token_lifetime: int,
        refresh_token_lifetime: int,
        remember_me_lifetime: int,
        environment: str = "development",
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret or len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise SigningKeyError(
                f"JWT secret must be at least {MIN_SECRET_BYTES} bytes"
            )
        if secret == DEFAULT_JWT_SECRET:
            if environment == "production":
                raise SigningKeyError(
                    "The built-in development JWT secret cannot be used in production"
                )
            logger.warning(
                "Using the built-in development JWT secret; set JWT_SECRET"
            )

        self._secret = secret
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self.remember_me_lifetime = remember_me_lifetime
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialService":
        return cls(
            secret=settings.JWT_SECRET,
            access_token_lifetime=settings.JWT_ACCESS_TOKEN_EXPIRATION,
            refresh_token_lifetime=settings.JWT_REFRESH_TOKEN_EXPIRATION,
            remember_me_lifetime=settings.JWT_REMEMBER_ME_EXPIRATION,
            environment=settings.ENVIRONMENT,
        )

    # --- Issuance ---

    def issue_access_token(self, principal: Principal) -> str:
        return self._issue(principal, self.access_token_lifetime)

    def issue_refresh_token(self, principal: Principal, extended: bool = False) -> str:
        lifetime = (
            self.remember_me_lifetime if extended else self.refresh_token_lifetime
        )
        return self._issue(principal, lifetime)

    def _issue(self, principal: Principal, lifetime: int) -> str:
        issued_at = int(self._clock().timestamp())
        claims = {
            "sub": principal.username,
            "authorities": sorted(principal.authorities),
            "iat": issued_at,
            "exp": issued_at + lifetime,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    # --- Validation ---

    def validate(self, token: str, expected_subject: str) -> bool:
        """
        Return True only for an intact, unexpired token for expected_subject.

        Never raises. Any parsing or verification failure is logged
        and reported as False.
        """
        try:
            claims = self._decode(token)
        except (JWTError, ValueError, TypeError, KeyError) as e:
            logger.warning("Invalid JWT token: %s", e)
            return False

        if claims.get("sub") != expected_subject:
            logger.warning("JWT subject does not match the expected principal")
            return False
        return True

    def extract_subject(self, token: str) -> str:
        """
        Return the token's subject after verifying signature and expiry.

        Callers use the subject to load the principal's current stored
        state; the embedded authorities are never trusted for refresh.
        """
        try:
            claims = self._decode(token)
        except (JWTError, ValueError, TypeError, KeyError) as e:
            logger.warning("Could not extract subject from JWT: %s", e)
            raise Unauthenticated("Invalid or expired token") from e

        subject = claims.get("sub")
        if not subject:
            raise Unauthenticated("Invalid or expired token")
        return subject

    def _decode(self, token: str) -> dict[str, Any]:
        """
        Verify the signature and expiry, returning the claims.

        Expiry is checked here rather than by the JWT library so that
        a token is already invalid at the exact second it expires.
        """
        claims = jwt.decode(
            token,
            self._secret,
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
        expires_at = claims["exp"]
        if not isinstance(expires_at, int):
            raise ValueError("exp claim must be an integer")
        if self._clock().timestamp() >= expires_at:
            raise JWTError("Token has expired")
        return claims
