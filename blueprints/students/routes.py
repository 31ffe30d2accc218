# blueprints/students/routes.py
from __future__ import annotations
from typing import List, Optional

from flask import Blueprint, request
from pydantic import BaseModel, ConfigDict, Field

from extensions import db
from models import Role
from blueprints.auth.routes import admin_required
from blueprints.core.errors import ValidationFailed, db_errors, parse_body
from blueprints.core.responses import created, ok
from blueprints.core.services import list_users
from blueprints.subjects.schemas import SubjectRef
from . import services as svc

api_bp = Blueprint("students_api", __name__)


class _Person(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)


class RegisterUserIn(_Person):
    password: Optional[str] = None
    role: Role = Role.STUDENT


class StudentWithSubjectIn(_Person):
    standard: int
    subject: str = Field(min_length=1)
    board: str = Field(min_length=1)


class StudentWithSubjectsIn(_Person):
    subjects: List[SubjectRef] = Field(min_length=1)


class StudentUpdateOneIn(_Person):
    standard: Optional[int] = None
    subject: Optional[str] = None
    board: Optional[str] = None
    subjectId: Optional[int] = None

    def subject_ref(self) -> Optional[SubjectRef]:
        if self.standard is None or not self.subject or not self.board:
            return None
        return SubjectRef(standard=self.standard, subject=self.subject, board=self.board)


class StudentUpdateManyIn(_Person):
    subjects: Optional[List[SubjectRef]] = None


# ---------- listings ----------
@api_bp.get("/admin/users")
@admin_required
@db_errors("Failed to fetch users")
def users_by_role():
    raw = (request.args.get("role") or Role.STUDENT.value).strip().lower()
    try:
        role = Role(raw)
    except ValueError:
        raise ValidationFailed(f"Unknown role: {raw}")
    return ok([u.to_dict() for u in list_users(db.session, role)])


@api_bp.get("/admin/students")
@admin_required
@db_errors("Failed to fetch students")
def students():
    return ok([u.to_dict() for u in list_users(db.session, Role.STUDENT)])


@api_bp.get("/admin/studentsWithSubjects")
@admin_required
@db_errors("Failed to fetch students with subjects")
def students_with_subjects():
    return ok(svc.list_students_with_subjects(db.session))


# ---------- registration ----------
@api_bp.post("/admin/registerStudent")
@admin_required
@db_errors("Failed to register student")
def register_student():
    data = parse_body(RegisterUserIn, request.get_json(silent=True))
    user = svc.register_user(db.session, name=data.name, email=data.email,
                             password=data.password, role=data.role)
    return created(user.to_dict(), "Student registered successfully")


@api_bp.post("/admin/registerStudentWithSubject")
@admin_required
@db_errors("Failed to register student with subject")
def register_student_with_subject():
    data = parse_body(StudentWithSubjectIn, request.get_json(silent=True))
    ref = SubjectRef(standard=data.standard, subject=data.subject, board=data.board)
    out = svc.register_student_with_subject(db.session, name=data.name, email=data.email, ref=ref)
    return created(out, "Student registered successfully with subject mapping")


@api_bp.post("/admin/registerStudentWithSubjects")
@admin_required
@db_errors("Failed to register student with subjects")
def register_student_with_subjects():
    data = parse_body(StudentWithSubjectsIn, request.get_json(silent=True))
    out = svc.register_student_with_subjects(db.session, name=data.name, email=data.email, refs=data.subjects)
    return created(out, "Student registered successfully with subject mappings")


# ---------- updates ----------
@api_bp.put("/admin/updateStudentWithSubject/<int:id>")
@admin_required
@db_errors("Failed to update student")
def update_student_with_subject(id: int):
    data = parse_body(StudentUpdateOneIn, request.get_json(silent=True))
    out = svc.update_student_with_subject(db.session, id, name=data.name, email=data.email,
                                          ref=data.subject_ref(), current_subject_id=data.subjectId)
    return ok(out, "Student updated successfully")


@api_bp.put("/admin/updateStudentWithSubjects/<int:id>")
@admin_required
@db_errors("Failed to update student with subjects")
def update_student_with_subjects(id: int):
    data = parse_body(StudentUpdateManyIn, request.get_json(silent=True))
    out = svc.update_student_with_subjects(db.session, id, name=data.name, email=data.email, refs=data.subjects)
    return ok(out, "Student updated successfully with subject mappings")


@api_bp.delete("/admin/deleteStudent/<int:id>")
@admin_required
@db_errors("Failed to delete student")
def delete_student(id: int):
    svc.delete_student(db.session, id)
    return ok(message="Student deleted successfully")
