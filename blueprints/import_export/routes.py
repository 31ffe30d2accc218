# blueprints/import_export/routes.py
from __future__ import annotations
from typing import Any, Dict, List

from flask import Blueprint, request
from pydantic import BaseModel

from extensions import db
from blueprints.auth.routes import admin_required
from blueprints.core.errors import db_errors, parse_body
from blueprints.core.responses import ok
from . import services as svc

api_bp = Blueprint("import_export_api", __name__)


class LegacyImportIn(BaseModel):
    # строки разбирает сервис: колонки бывают строками, списками или числами
    rows: List[Dict[str, Any]]


@api_bp.post("/admin/import/facultymap")
@admin_required
@db_errors("Failed to import legacy faculty mappings")
def import_facultymap():
    data = parse_body(LegacyImportIn, request.get_json(silent=True))
    report = svc.import_legacy_facultymap(db.session, data.rows)
    return ok(report.as_dict(), f"Imported {report.rows} legacy mapping rows")
