"""
Tests for login, refresh and registration.
"""

import pytest
from jose import jwt

from identity_admin.api.deps import get_credential_service
from identity_admin.errors import DuplicateIdentity, Unauthenticated
from identity_admin.schemas.account import AccountUpdate
from identity_admin.schemas.auth import LoginRequest, RegisterRequest
from identity_admin.services.account_service import AccountService
from identity_admin.services.audit_service import AuditActor
from identity_admin.services.auth_service import AuthService


@pytest.fixture
def service(seeded, audit_trail):
    actor = AuditActor(None, "SYSTEM", "10.0.0.1")
    return AuthService(seeded, get_credential_service(), audit_trail, actor)


class TestLogin:

    def test_login_returns_tokens(self, service, make_user):
        make_user("alice")

        response = service.login(LoginRequest(username="alice", password="password123"))

        assert response.token_type == "Bearer"
        assert response.expires_in == get_credential_service().access_token_lifetime
        assert response.user.username == "alice"
        claims = jwt.get_unverified_claims(response.access_token)
        assert claims["sub"] == "alice"
        assert "USER_READ" in claims["authorities"]

    def test_remember_me_extends_refresh_token(self, service, make_user):
        make_user("alice")
        credentials = get_credential_service()

        response = service.login(
            LoginRequest(username="alice", password="password123", remember_me=True)
        )

        claims = jwt.get_unverified_claims(response.refresh_token)
        assert claims["exp"] - claims["iat"] == credentials.remember_me_lifetime

    def test_wrong_password_and_unknown_user_look_the_same(self, service, make_user):
        make_user("alice")

        with pytest.raises(Unauthenticated) as wrong_password:
            service.login(LoginRequest(username="alice", password="wrong-password"))
        with pytest.raises(Unauthenticated) as unknown_user:
            service.login(LoginRequest(username="nobody", password="password123"))

        assert wrong_password.value.message == "Invalid username or password"
        assert unknown_user.value.message == wrong_password.value.message

    def test_disabled_account_cannot_login(self, service, seeded, make_user):
        alice = make_user("alice")
        AccountService(seeded).update_account(alice.id, AccountUpdate(enabled=False))
        seeded.commit()

        with pytest.raises(Unauthenticated):
            service.login(LoginRequest(username="alice", password="password123"))

    def test_soft_deleted_account_cannot_login(self, service, seeded, make_user):
        alice = make_user("alice")
        AccountService(seeded).soft_delete(alice.id)
        seeded.commit()

        with pytest.raises(Unauthenticated):
            service.login(LoginRequest(username="alice", password="password123"))

    def test_outcomes_are_audited_with_ip(self, service, recorder, make_user):
        make_user("alice")

        service.login(LoginRequest(username="alice", password="password123"))
        with pytest.raises(Unauthenticated):
            service.login(LoginRequest(username="alice", password="nope-nope"))

        assert recorder.actions() == ["LOGIN_SUCCESS", "LOGIN_FAILED"]
        assert recorder.events[0].actor.username == "alice"
        assert all(e.actor.ip_address == "10.0.0.1" for e in recorder.events)


class TestRefresh:

    def test_refresh_returns_same_refresh_token(self, service, make_user):
        make_user("alice")
        login = service.login(LoginRequest(username="alice", password="password123"))

        refreshed = service.refresh(login.refresh_token)

        assert refreshed.refresh_token == login.refresh_token
        assert jwt.get_unverified_claims(refreshed.access_token)["sub"] == "alice"

    def test_refresh_rereads_authorities(self, service, seeded, make_user):
        alice = make_user("alice")
        login = service.login(LoginRequest(username="alice", password="password123"))
        AccountService(seeded).update_account(alice.id, AccountUpdate(role_ids=set()))
        for group in list(alice.groups):
            group.remove_member(alice)
        seeded.commit()

        refreshed = service.refresh(login.refresh_token)

        assert jwt.get_unverified_claims(refreshed.access_token)["authorities"] == []

    def test_refresh_for_locked_account_fails(self, service, seeded, make_user):
        alice = make_user("alice")
        login = service.login(LoginRequest(username="alice", password="password123"))
        AccountService(seeded).update_account(alice.id, AccountUpdate(account_locked=True))
        seeded.commit()

        with pytest.raises(Unauthenticated, match="locked"):
            service.refresh(login.refresh_token)

    def test_garbage_refresh_token_fails(self, service):
        with pytest.raises(Unauthenticated):
            service.refresh("garbage")


class TestRegister:

    def test_register_creates_user_in_default_group(self, service, seeded, recorder):
        response = service.register(RegisterRequest(
            username="carol", email="carol@example.com", password="password123",
        ))
        seeded.commit()

        assert response.user.username == "carol"
        assert [g.name for g in response.user.groups] == ["Default Users"]
        assert "USER_REGISTERED" in recorder.actions()

    def test_register_duplicate_username(self, service, make_user):
        make_user("alice")

        with pytest.raises(DuplicateIdentity):
            service.register(RegisterRequest(
                username="alice", email="other@example.com", password="password123",
            ))
