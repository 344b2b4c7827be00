"""
Tests for the per-request access log.
"""

import logging

ACCESS_LOGGER = "identity_admin.main"


def test_request_is_logged_with_status(client, caplog):
    with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
        client.get("/health")

    assert "HTTP GET /health - Status: 200 - Duration:" in caplog.text


def test_error_responses_are_logged(client, caplog):
    with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
        client.get("/users")

    assert "HTTP GET /users - Status: 401" in caplog.text


def test_debug_headers_hide_credentials(client, caplog):
    with caplog.at_level(logging.DEBUG, logger=ACCESS_LOGGER):
        client.get("/health", headers={
            "Authorization": "Bearer secret-token",
            "X-Request-Id": "abc-123",
        })

    assert "x-request-id: abc-123" in caplog.text
    assert "authorization: [REDACTED]" in caplog.text
    assert "secret-token" not in caplog.text
