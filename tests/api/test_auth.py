"""
Tests for authentication endpoints.

These test the HTTP layer: status codes, response format,
and error handling. Business logic is tested in
test_auth_service.py.
"""


class TestLogin:

    def test_login_returns_token_pair(self, client, admin):
        response = client.post("/auth/login", json={
            "username": "admin",
            "password": "admin-password",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["tokenType"] == "Bearer"
        assert data["expiresIn"] > 0
        assert data["accessToken"]
        assert data["refreshToken"]
        assert data["user"]["username"] == "admin"

    def test_bad_credentials_return_401_with_error_body(self, client, admin):
        response = client.post("/auth/login", json={
            "username": "admin",
            "password": "wrong-password",
        })
        assert response.status_code == 401
        body = response.json()
        assert body["status"] == 401
        assert body["error"] == "Unauthorized"
        assert body["message"] == "Invalid username or password"
        assert body["path"] == "/auth/login"
        assert "timestamp" in body

    def test_missing_password_returns_400(self, client):
        response = client.post("/auth/login", json={"username": "admin"})
        assert response.status_code == 400
        assert "password" in response.json()["validationErrors"]

    def test_login_records_forwarded_ip(self, client, admin, recorder):
        client.post(
            "/auth/login",
            json={"username": "admin", "password": "admin-password"},
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )
        event = recorder.events[-1]
        assert event.action == "LOGIN_SUCCESS"
        assert event.actor.ip_address == "203.0.113.7"


class TestRefresh:

    def test_refresh_with_bearer_token(self, client, admin):
        login = client.post("/auth/login", json={
            "username": "admin",
            "password": "admin-password",
        }).json()

        response = client.post(
            "/auth/refresh",
            headers={"Authorization": f"Bearer {login['refreshToken']}"},
        )
        assert response.status_code == 200
        assert response.json()["refreshToken"] == login["refreshToken"]

    def test_refresh_without_token_returns_401(self, client):
        response = client.post("/auth/refresh")
        assert response.status_code == 401


class TestRegister:

    def test_register_returns_201(self, client, seeded):
        response = client.post("/auth/register", json={
            "username": "carol",
            "email": "carol@example.com",
            "password": "password123",
        })
        assert response.status_code == 201
        assert response.json()["user"]["groups"][0]["name"] == "Default Users"

    def test_register_duplicate_returns_409(self, client, make_user):
        make_user("carol")
        response = client.post("/auth/register", json={
            "username": "carol",
            "email": "other@example.com",
            "password": "password123",
        })
        assert response.status_code == 409

    def test_short_password_returns_400(self, client, seeded):
        response = client.post("/auth/register", json={
            "username": "carol",
            "email": "carol@example.com",
            "password": "short",
        })
        assert response.status_code == 400
        assert "password" in response.json()["validationErrors"]


class TestMe:

    def test_me_lists_authorities(self, client, make_user, auth_headers):
        alice = make_user("alice")
        response = client.get("/auth/me", headers=auth_headers(alice))
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert "ROLE_USER" in data["authorities"]

    def test_me_without_token_returns_401(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_me_with_garbage_token_returns_401(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
