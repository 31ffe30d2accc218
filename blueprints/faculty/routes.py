# blueprints/faculty/routes.py
from __future__ import annotations
from typing import List, Optional

from flask import Blueprint, request
from pydantic import BaseModel, ConfigDict, Field

from extensions import db
from blueprints.auth.routes import admin_required
from blueprints.core.errors import db_errors, parse_body
from blueprints.core.responses import created, ok
from blueprints.subjects.schemas import SubjectRef
from . import services as svc

api_bp = Blueprint("faculty_api", __name__)


class FacultyIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    subjects: List[SubjectRef] = Field(min_length=1)
    password: Optional[str] = None


@api_bp.get("/admin/facultiesWithSubjects")
@admin_required
@db_errors("Failed to fetch faculties with subjects and students")
def faculties_with_subjects():
    return ok(svc.list_faculties_with_subjects(db.session))


@api_bp.post("/admin/registerFacultyWithSubjects")
@admin_required
@db_errors("Failed to register faculty with subjects")
def register_faculty():
    data = parse_body(FacultyIn, request.get_json(silent=True))
    out = svc.register_faculty(db.session, name=data.name, email=data.email,
                               subjects=data.subjects, password=data.password)
    return created(out.as_dict(), "Faculty registered successfully with subject mappings")


@api_bp.put("/admin/updateFacultyWithSubjects/<int:id>")
@admin_required
@db_errors("Failed to update faculty")
def update_faculty(id: int):
    data = parse_body(FacultyIn, request.get_json(silent=True))
    out = svc.update_faculty(db.session, id, name=data.name, email=data.email, subjects=data.subjects)
    return ok(out.as_dict(), "Faculty updated successfully")


@api_bp.delete("/admin/deleteFaculty/<int:id>")
@admin_required
@db_errors("Failed to delete faculty")
def delete_faculty(id: int):
    svc.delete_faculty(db.session, id)
    return ok(message="Faculty deleted successfully")
