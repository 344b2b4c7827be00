"""
Error taxonomy.

Services raise these exceptions; the exception handlers registered
in main.py translate each one to exactly one HTTP status and a
stable error body. Nothing in the core retries on failure.
"""


class IdentityError(Exception):
    """Base class for every error the core raises on purpose."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(IdentityError):
    """Entity absent, or not in the lifecycle state the operation needs."""
    status_code = 404


class DuplicateIdentity(IdentityError):
    """A unique username, email or name is already taken."""
    status_code = 409


class InvalidState(IdentityError):
    """The operation would break an invariant (e.g. last admin removal)."""
    status_code = 409


class Unauthenticated(IdentityError):
    """Credential missing, invalid or expired."""
    status_code = 401


class Forbidden(IdentityError):
    """Authenticated, but without the required authority."""
    status_code = 403


class RateLimited(IdentityError):
    """Rejected by the rate-limiting collaborator."""
    status_code = 429


class Unexpected(IdentityError):
    status_code = 500


class SigningKeyError(RuntimeError):
    """
    The token signing key is unusable.

    Raised at construction time of the credential service. This is
    a deployment problem, not a request problem, so it is not an
    IdentityError and is never translated into a response body.
    """
