"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so no test data persists.

The audit dispatcher is replaced by an in-memory recorder:
API tests assert on recorded events without a consumer thread.
"""

import os

# Must be set before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_REFERENCE_DATA", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from identity_admin.main import app
from identity_admin.api.deps import get_audit_dispatcher, get_credential_service
from identity_admin.models import Base
from identity_admin.models.base import get_db
from identity_admin.schemas.account import AccountCreate
from identity_admin.security.principal import Principal
from identity_admin.services.account_service import AccountService
from identity_admin.services.audit_service import AuditTrail
from identity_admin.services.role_service import RoleService


TEST_DATABASE_URL = os.environ["DATABASE_URL"]

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class RecordingDispatcher:
    """Stands in for AuditDispatcher and keeps events in a list."""

    is_running = True
    dropped_count = 0

    def __init__(self):
        self.events = []

    def submit(self, event):
        self.events.append(event)

    def actions(self):
        return [e.action for e in self.events]


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory():
    """Session factory bound to the test database, for the audit dispatcher."""
    return TestSessionLocal


@pytest.fixture
def seeded(db_session):
    """Permissions, the ADMIN and USER roles and the default group."""
    RoleService(db_session).seed_defaults()
    db_session.commit()
    return db_session


@pytest.fixture
def recorder():
    return RecordingDispatcher()


@pytest.fixture
def audit_trail(recorder):
    return AuditTrail(recorder)


@pytest.fixture
def admin(seeded):
    account = RoleService(seeded).bootstrap_admin(
        "admin", "admin@example.com", "admin-password"
    )
    seeded.commit()
    return account


@pytest.fixture
def make_user(seeded):
    """Factory for plain accounts with the default USER role."""
    def _make(username, email=None, password="password123"):
        account = AccountService(seeded).create_account(AccountCreate(
            username=username,
            email=email or f"{username}@example.com",
            password=password,
        ))
        seeded.commit()
        return account
    return _make


def bearer(account) -> dict:
    """Authorization header carrying an access token for the account."""
    token = get_credential_service().issue_access_token(
        Principal.from_account(account)
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def client(db_session, recorder):
    """
    Provide a test client with the test database.

    get_db is overridden so the app shares the test session, and
    the audit dispatcher is swapped for the recorder.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_dispatcher] = lambda: recorder
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build bearer headers for any account: auth_headers(account)."""
    return bearer
