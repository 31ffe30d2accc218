# blueprints/subjects/routes.py
from __future__ import annotations
from flask import Blueprint, request

from extensions import db
from blueprints.auth.routes import admin_required
from blueprints.core.errors import db_errors, parse_body
from blueprints.core.responses import created, ok
from . import services as svc
from .schemas import SubjectIn

api_bp = Blueprint("subjects_api", __name__)


@api_bp.post("/admin/addSubjects")
@admin_required
@db_errors("Failed to add subject")
def add_subject():
    data = parse_body(SubjectIn, request.get_json(silent=True))
    subj = svc.create_subject(db.session, data)
    return created(subj.to_dict(), "Subject added successfully")


@api_bp.get("/admin/subjects")
@admin_required
@db_errors("Failed to fetch subjects")
def list_subjects():
    rows = [s.to_dict() for s in svc.list_subjects(db.session)]
    return ok(rows, "Subjects fetched successfully")


@api_bp.put("/admin/updateSubject/<int:id>")
@admin_required
@db_errors("Failed to update subject")
def update_subject(id: int):
    data = parse_body(SubjectIn, request.get_json(silent=True))
    subj = svc.update_subject(db.session, id, data)
    return ok(subj.to_dict(), "Subject updated successfully")


@api_bp.delete("/admin/deleteSubject/<int:id>")
@admin_required
@db_errors("Failed to delete subject")
def delete_subject(id: int):
    svc.delete_subject(db.session, id)
    return ok(message="Subject deleted successfully")


# для отладки: структура таблицы subject и несколько строк
@api_bp.get("/admin/check-db")
@admin_required
@db_errors("Database error")
def check_database():
    info = svc.describe_subject_table(db.session)
    return ok(message="Database check successful", **info)
