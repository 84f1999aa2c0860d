"""Tests for auth.py — API key authentication and CORS headers."""

from flask import Flask

from auth import init_auth, init_cors
from config import reload_settings


def _make_app():
    app = Flask(__name__)
    init_cors(app)
    init_auth(app)

    @app.route("/api/v1/health")
    def health():
        return {"status": "healthy"}

    @app.route("/api/v1/shops")
    def shops():
        return {"success": True}

    @app.route("/other")
    def other():
        return {"ok": True}

    return app


def test_no_auth_when_key_empty(monkeypatch):
    """Test that auth is disabled when API key is empty."""
    monkeypatch.delenv("SEOPILOT_API_KEY", raising=False)
    settings = reload_settings()
    assert settings.api_key == ""

    with _make_app().test_client() as client:
        assert client.get("/api/v1/shops").status_code == 200


def test_auth_required_when_key_set(monkeypatch):
    """When API key is set, require it on /api/ routes."""
    monkeypatch.setenv("SEOPILOT_API_KEY", "test-key-123")
    reload_settings()
    try:
        with _make_app().test_client() as client:
            response = client.get("/api/v1/shops")
            assert response.status_code == 401
            assert response.get_json()["error"] == "API key required"

            response = client.get("/api/v1/shops", headers={"X-Api-Key": "wrong"})
            assert response.status_code == 401
            assert response.get_json()["error"] == "Invalid API key"

            assert client.get("/api/v1/shops", headers={"X-Api-Key": "test-key-123"}).status_code == 200
            assert client.get("/api/v1/shops?apikey=test-key-123").status_code == 200
    finally:
        monkeypatch.undo()
        reload_settings()


def test_health_and_non_api_paths_exempt(monkeypatch):
    monkeypatch.setenv("SEOPILOT_API_KEY", "test-key-123")
    reload_settings()
    try:
        with _make_app().test_client() as client:
            assert client.get("/api/v1/health").status_code == 200
            assert client.get("/other").status_code == 200
    finally:
        monkeypatch.undo()
        reload_settings()


def test_preflight_answered_without_key(monkeypatch):
    monkeypatch.setenv("SEOPILOT_API_KEY", "test-key-123")
    reload_settings()
    try:
        with _make_app().test_client() as client:
            response = client.options("/api/v1/shops")
            assert response.status_code == 204
            assert response.headers["Access-Control-Allow-Origin"] == "*"
            assert "x-api-key" in response.headers["Access-Control-Allow-Headers"]
    finally:
        monkeypatch.undo()
        reload_settings()
