from __future__ import annotations
import json
import logging

from app import create_app
from blueprints.core.routes import JSONFormatter


def test_root_banner():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/")
        assert rv.status_code == 200
        assert b"Tuition App API is running" in rv.data


def test_health_ok():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/health")
        assert rv.status_code == 200
        data = rv.get_json()
        assert data["status"] == "ok"
        assert data["ts"].endswith("Z")


def test_unknown_route_is_json_404():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/api/admin/nope")
        assert rv.status_code == 404
        js = rv.get_json()
        assert js["success"] is False
        assert js["error"] == "not_found"


def test_wrong_method_is_json_405():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/api/auth/login")
        assert rv.status_code == 405
        assert rv.get_json()["success"] is False


def test_json_formatter_carries_request_fields():
    rec = logging.LogRecord("tuition.http", logging.INFO, __file__, 1, "request handled", None, None)
    rec.event = "http_request"
    rec.path = "/health"
    rec.status = 200
    out = json.loads(JSONFormatter().format(rec))
    assert out["msg"] == "request handled"
    assert out["event"] == "http_request"
    assert out["path"] == "/health"
    assert out["status"] == 200
    assert "method" not in out
