# blueprints/faculty/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from flask import current_app
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from models import FacultySubject, Role, Subject, User
from blueprints.core.errors import Conflict
from blueprints.core.services import (
    email_taken, get_user, list_users, normalize_email, resolve_subjects, transaction,
)
from blueprints.mapping.services import (
    Reconciliation, faculty_subjects, reconcile_removed_subjects, set_faculty_subjects,
    students_with_subjects,
)
from blueprints.subjects.schemas import SubjectRef

log = logging.getLogger(__name__)


@dataclass
class FacultyOut:
    id: int
    name: str
    email: str
    subjects: List[Subject]
    reconciliation: Optional[Reconciliation] = None

    def as_dict(self) -> Dict:
        out = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "subjects": [
                {"facultyId": self.id, "subjectId": s.id, "subjectName": s.subjectname,
                 "standard": s.standard, "board": s.board}
                for s in self.subjects
            ],
        }
        if self.reconciliation is not None:
            out["reconciliation"] = self.reconciliation.as_dict()
        return out


def list_faculties_with_subjects(session: Session) -> List[Dict]:
    out = []
    for fac in list_users(session, Role.FACULTY):
        subjects = faculty_subjects(session, fac.id)
        student_ids = students_with_subjects(session, [s.id for s in subjects])
        students = []
        if student_ids:
            students = [
                {"id": u.id, "name": u.name, "email": u.email}
                for u in session.scalars(select(User).where(User.id.in_(student_ids)).order_by(User.id))
            ]
        out.append({
            "id": fac.id,
            "name": fac.name,
            "email": fac.email,
            "subjects": [s.to_dict() for s in subjects],
            "students": students,
        })
    return out


def register_faculty(session: Session, *, name: str, email: str, subjects: Sequence[SubjectRef],
                     password: Optional[str] = None) -> FacultyOut:
    with transaction(session):
        if email_taken(session, email):
            raise Conflict("A user with this email already exists")
        fac = User(name=name, email=normalize_email(email), role=Role.FACULTY.value)
        fac.set_password(password or current_app.config["DEFAULT_PASSWORD"])
        session.add(fac)
        session.flush()

        resolved = resolve_subjects(session, subjects)
        set_faculty_subjects(session, fac.id, [s.id for s in resolved])
        out = FacultyOut(id=fac.id, name=fac.name, email=fac.email, subjects=resolved)
    log.info("faculty registered id=%s with %d subjects", out.id, len(out.subjects))
    return out


def update_faculty(session: Session, faculty_id: int, *, name: str, email: str,
                   subjects: Sequence[SubjectRef]) -> FacultyOut:
    """Replace the faculty's subjects and drop enrollments in the removed ones."""
    with transaction(session):
        fac = get_user(session, faculty_id, Role.FACULTY, "Faculty not found")
        if email_taken(session, email, exclude_id=faculty_id):
            raise Conflict("This email is already used by another user")
        fac.name = name
        fac.email = normalize_email(email)

        resolved = resolve_subjects(session, subjects)
        new_ids = [s.id for s in resolved]
        removed = set_faculty_subjects(session, faculty_id, new_ids)

        recon = None
        if removed:
            recon = reconcile_removed_subjects(session, removed, new_ids)
        out = FacultyOut(id=fac.id, name=fac.name, email=fac.email, subjects=resolved, reconciliation=recon)
    return out


def delete_faculty(session: Session, faculty_id: int) -> None:
    # строки subjectmap студентов намеренно не трогаем
    with transaction(session):
        fac = get_user(session, faculty_id, Role.FACULTY, "Faculty not found")
        session.execute(delete(FacultySubject).where(FacultySubject.faculty_id == faculty_id))
        session.expire(fac, ["faculty_subjects"])
        session.delete(fac)
    log.info("faculty deleted id=%s", faculty_id)
