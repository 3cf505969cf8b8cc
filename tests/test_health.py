"""
tests/test_health.py -- Integration tests for GET /api/health and the
response headers every route carries.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok', or 'unavailable' when the probe fails
  - No authentication required
  - Security headers and the shared error envelope on unmatched routes
"""

from __future__ import annotations


def test_health_returns_200_with_components(client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_reports_database_failure(client, stores, monkeypatch):
    """A failing database probe degrades the status instead of raising."""

    def broken_ping():
        raise RuntimeError("no connection")

    monkeypatch.setattr(stores.catalog, "ping", broken_ping)
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["components"]["database"] == "unavailable"


def test_health_no_auth_required(client):
    """Health endpoint is accessible without any session cookie."""
    resp = client.get("/api/health", headers={})
    assert resp.status_code == 200


def test_security_headers_present(client):
    resp = client.get("/api/health")
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"
    assert resp.headers["x-xss-protection"] == "1; mode=block"
    assert resp.headers["referrer-policy"] == "strict-origin-when-cross-origin"


def test_security_headers_on_error_responses(client):
    resp = client.get("/api/user")
    assert resp.status_code == 401
    assert resp.headers["x-frame-options"] == "DENY"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/no-such-thing")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_untrusted_host_is_rejected(client):
    resp = client.get("/api/health", headers={"Host": "evil.example.com"})
    assert resp.status_code == 400
