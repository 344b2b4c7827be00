"""
Tests for the health check endpoint.
"""


def test_health_check_returns_200(client):
    response = client.get("/health")
    assert response.status_code == 200


def test_health_check_returns_service_name(client):
    """Monitoring systems parse this field."""
    response = client.get("/health")
    data = response.json()
    assert data["service"] == "identity-admin"


def test_health_check_reports_database_status(client):
    response = client.get("/health")
    data = response.json()
    assert data["database"] == "healthy"
    assert data["status"] == "healthy"


def test_health_check_reports_audit_dispatcher(client):
    data = client.get("/health").json()
    assert data["audit"] == {"dispatcher": "running", "droppedEvents": 0}
