"""
Tests for role and permission listing.
"""


def test_list_roles(client, admin_headers):
    response = client.get("/roles", headers=admin_headers)
    assert response.status_code == 200
    assert [r["name"] for r in response.json()] == ["ADMIN", "USER"]


def test_list_permissions(client, admin_headers):
    response = client.get("/roles/permissions", headers=admin_headers)
    names = [p["name"] for p in response.json()]
    assert names == sorted(names)
    assert "USER_READ" in names


def test_plain_user_cannot_list_roles(client, make_user, auth_headers):
    alice = make_user("alice")
    assert client.get("/roles", headers=auth_headers(alice)).status_code == 403
