from __future__ import annotations
import pytest

from app import create_app
from extensions import db
from models import Role, User


@pytest.fixture()
def client_app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        admin = User(name="Admin", email="admin@example.com", role=Role.ADMIN.value)
        admin.set_password("adminpass")
        fac = User(name="Fac", email="fac@example.com", role=Role.FACULTY.value)
        fac.set_password("facpass")
        db.session.add_all([admin, fac])
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(client_app):
    return client_app.test_client()


def test_login_success(client):
    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "adminpass"})
    assert r.status_code == 200
    js = r.get_json()
    assert js["success"] is True
    assert js["message"] == "Login successful"
    assert js["data"]["role"] == "admin"
    assert js["data"]["email"] == "admin@example.com"
    assert "password_hash" not in js["data"]


def test_login_email_is_case_insensitive(client):
    r = client.post("/api/auth/login", json={"email": "  Admin@Example.com ", "password": "adminpass"})
    assert r.status_code == 200


def test_wrong_password_and_unknown_email_look_the_same(client):
    r1 = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "nope"})
    r2 = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "nope"})
    assert r1.status_code == r2.status_code == 401
    assert r1.get_json() == r2.get_json()
    assert r1.get_json()["message"] == "Invalid credentials"


@pytest.mark.parametrize("body", [{}, {"email": "admin@example.com"}, {"password": "x"}, None])
def test_missing_fields_400(client, body):
    r = client.post("/api/auth/login", json=body)
    assert r.status_code == 400
    assert r.get_json()["success"] is False


def test_admin_routes_open_by_default(client):
    r = client.get("/api/admin/subjects")
    assert r.status_code == 200


def test_admin_guard_unauthenticated_401(client_app, client):
    client_app.config["ADMIN_AUTH_REQUIRED"] = True
    r = client.get("/api/admin/subjects")
    assert r.status_code == 401
    assert r.get_json()["error"] == "unauthorized"


def test_admin_guard_faculty_403(client_app, client):
    client_app.config["ADMIN_AUTH_REQUIRED"] = True
    r = client.post("/api/auth/login", json={"email": "fac@example.com", "password": "facpass"})
    assert r.status_code == 200
    r2 = client.get("/api/admin/subjects")
    assert r2.status_code == 403


def test_admin_guard_admin_ok_then_logout(client_app, client):
    client_app.config["ADMIN_AUTH_REQUIRED"] = True
    client.post("/api/auth/login", json={"email": "admin@example.com", "password": "adminpass"})
    assert client.get("/api/admin/subjects").status_code == 200

    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert client.get("/api/admin/subjects").status_code == 401
