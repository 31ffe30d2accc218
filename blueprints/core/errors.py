# blueprints/core/errors.py
from __future__ import annotations
import logging
from functools import wraps
from typing import Any, Callable

from flask import jsonify
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from extensions import db

log = logging.getLogger(__name__)


class ServiceError(Exception):
    status = 500
    code = "server_error"

    def __init__(self, message: str, *, error: Any = None):
        super().__init__(message)
        self.message = message
        self.error = error if error is not None else self.code


class ValidationFailed(ServiceError):
    status = 400
    code = "validation_error"


class Conflict(ServiceError):
    # дубль email отдаём как 400, не 409
    status = 400
    code = "conflict"


class NotFound(ServiceError):
    status = 404
    code = "not_found"


class CorruptedMappingData(ServiceError):
    status = 500
    code = "corrupted_mapping_data"

    def __init__(self, detail: str | None = None):
        super().__init__("Corrupted mapping data", error=detail or self.code)


def json_error(message: str, status: int, error: Any = None):
    return jsonify({"success": False, "message": message, "error": error}), status


def _pydantic_errors_safe(ve: ValidationError) -> list[dict]:
    errs = ve.errors(include_url=False)
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        if "input" in e:
            e["input"] = str(e["input"])
    return errs


def _validation_message(ve: ValidationError) -> str:
    parts = []
    for e in ve.errors(include_url=False):
        loc = ".".join(str(p) for p in e.get("loc", ()) if p != "__root__")
        msg = e.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid request: " + "; ".join(parts)


def parse_body(schema: type[BaseModel], payload: Any):
    """Validate a request body; pydantic errors become ValidationFailed (400)."""
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")
    try:
        return schema.model_validate(payload)
    except ValidationError as ve:
        raise ValidationFailed(_validation_message(ve), error=_pydantic_errors_safe(ve)) from ve


def db_errors(message: str) -> Callable:
    """Label driver errors raised inside a handler; the app-level handler builds the 500."""
    def decorator(fn: Callable):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except SQLAlchemyError as ex:
                ex.operation = message
                raise
        return wrapper
    return decorator


def register_error_handlers(app) -> None:
    @app.errorhandler(ServiceError)
    def _service_error(ex: ServiceError):
        if ex.status >= 500:
            log.error("%s (%s)", ex.message, ex.error)
        return json_error(ex.message, ex.status, ex.error)

    @app.errorhandler(SQLAlchemyError)
    def _db_error(ex: SQLAlchemyError):
        db.session.rollback()
        message = getattr(ex, "operation", "Database error")
        raw = str(ex.orig) if getattr(ex, "orig", None) else str(ex)
        log.error("%s: %s", message, raw)
        return json_error(message, 500, raw)

    @app.errorhandler(HTTPException)
    def _http_error(ex: HTTPException):
        return json_error(ex.description or ex.name, ex.code or 500, ex.name.lower().replace(" ", "_"))
