"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and database fields
  - No authentication required
  - database reports "error" when the credential store cannot answer
"""

from __future__ import annotations

from unittest.mock import patch

from sqlalchemy.exc import OperationalError


def test_health_returns_200(api_client):
    """Health endpoint returns 200 with status, version, and database."""
    client, _ = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"]
    assert data["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _ = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_health_reports_database_error(api_client):
    """A failing store query is reported, not raised."""
    client, auth_service = api_client
    error = OperationalError("SELECT count(*) FROM users", {}, Exception("database is locked"))
    with patch.object(auth_service.store, "count_users", side_effect=error):
        resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["database"] == "error"
