"""Password hashing with bcrypt."""

from passlib.context import CryptContext

from identity_admin.config import get_settings

settings = get_settings()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """
    Spend the time of a real verification without a real hash.

    Called when the username does not exist, so that response time
    does not reveal which usernames are registered.
    """
    pwd_context.dummy_verify()
