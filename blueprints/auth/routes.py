# blueprints/auth/routes.py
from __future__ import annotations
import logging
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_user, logout_user

from extensions import db, login_manager
from models import Role, User
from blueprints.core.errors import json_error
from blueprints.core.services import normalize_email

log = logging.getLogger(__name__)

api_bp = Blueprint("auth_api", __name__)


@login_manager.user_loader
def load_user(uid: str) -> Optional[User]:
    try:
        return db.session.get(User, int(uid))
    except (TypeError, ValueError):
        return None


@login_manager.unauthorized_handler
def _unauth():
    return json_error("Authentication required", 401, "unauthorized")


# ---------- role decorator ----------
def admin_required(fn: Callable):
    """Guard for /admin endpoints, active only when ADMIN_AUTH_REQUIRED is set."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_app.config.get("ADMIN_AUTH_REQUIRED"):
            return fn(*args, **kwargs)
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if getattr(current_user, "role", None) != Role.ADMIN.value:
            return json_error("Admin access required", 403, "forbidden")
        return fn(*args, **kwargs)
    return wrapper


# ---------- API ----------
@api_bp.post("/auth/login")
def api_login():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    email = normalize_email(str(payload.get("email") or ""))
    password = str(payload.get("password") or "")
    if not email or not password:
        return json_error("Email and password are required", 400, "missing_credentials")

    user: Optional[User] = db.session.scalars(
        db.select(User).where(User.email == email).limit(1)
    ).first()
    # одинаковый ответ для неизвестного email и неверного пароля
    if user is None or not user.check_password(password):
        log.info("login failed")
        return json_error("Invalid credentials", 401, "invalid_credentials")

    login_user(user)
    return jsonify({"success": True, "message": "Login successful", "data": user.to_dict()})


@api_bp.post("/auth/logout")
def api_logout():
    logout_user()
    return jsonify({"success": True, "message": "Logged out"})
