# blueprints/mapping/routes.py
from __future__ import annotations
from typing import List

from flask import Blueprint, request
from pydantic import BaseModel, Field

from extensions import db
from blueprints.auth.routes import admin_required
from blueprints.core.errors import db_errors, parse_body
from blueprints.core.responses import ok
from . import services as svc

api_bp = Blueprint("mapping_api", __name__)


class MapStudentsIn(BaseModel):
    facultyId: int = Field(gt=0)
    studentIds: List[int] = Field(min_length=1)
    subjectIds: List[int] = Field(default_factory=list)


class RemoveMappingIn(BaseModel):
    facultyId: int = Field(gt=0)
    studentId: int = Field(gt=0)


@api_bp.get("/admin/facultyStudentMappings/<int:facultyId>")
@admin_required
@db_errors("Failed to fetch faculty-student mappings")
def faculty_student_mappings(facultyId: int):
    return ok(svc.students_for_faculty(db.session, facultyId))


@api_bp.post("/admin/mapStudentsToFaculty")
@admin_required
@db_errors("Failed to map students to faculty")
def map_students():
    data = parse_body(MapStudentsIn, request.get_json(silent=True))
    res = svc.map_students_to_faculty(db.session, data.facultyId, data.studentIds, data.subjectIds)
    return ok(res.as_dict(), f"Successfully mapped {len(res.students_added)} students to faculty")


@api_bp.delete("/admin/removeFacultyStudentMapping")
@admin_required
@db_errors("Failed to remove faculty-student mapping")
def remove_mapping():
    data = parse_body(RemoveMappingIn, request.get_json(silent=True))
    removed = svc.remove_student_from_faculty(db.session, data.facultyId, data.studentId)
    return ok({"facultyId": data.facultyId, "studentId": data.studentId, "removedSubjectIds": removed},
              "Student mapping removed successfully")


@api_bp.get("/admin/unmappedStudents/<int:facultyId>")
@admin_required
@db_errors("Failed to fetch unmapped students")
def unmapped_students(facultyId: int):
    rows = [{"id": u.id, "name": u.name, "email": u.email} for u in svc.unmapped_students(db.session, facultyId)]
    return ok(rows)
