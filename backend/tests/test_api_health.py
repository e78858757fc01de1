# File: backend/tests/test_api_health.py
# Version: v0.2.0
"""
Basic smoke test for health endpoints.
"""
from fastapi.testclient import TestClient
from backend.app.main import app
from backend.app.core.config import settings


def test_health():
    client = TestClient(app)
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "version": settings.APP_VERSION}

    r = client.get("/healthz")
    assert r.json() == {"status": "ok"}
