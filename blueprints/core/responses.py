from __future__ import annotations
from typing import Any

from flask import jsonify


def ok(data: Any = None, message: str | None = None, status: int = 200, **extra):
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if isinstance(data, list):
        body["count"] = len(data)
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def created(data: Any, message: str):
    return ok(data, message, status=201)
