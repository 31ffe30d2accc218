# blueprints/students/services.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional, Sequence

from flask import current_app
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from models import Role, Subject, SubjectMap, User
from blueprints.core.errors import Conflict
from blueprints.core.services import (
    email_taken, get_user, list_users, normalize_email, resolve_subject, resolve_subjects, transaction,
)
from blueprints.subjects.schemas import SubjectRef

log = logging.getLogger(__name__)


def _new_user(session: Session, *, name: str, email: str, role: Role, password: Optional[str]) -> User:
    if email_taken(session, email):
        raise Conflict("A user with this email already exists")
    user = User(name=name, email=normalize_email(email), role=role.value)
    user.set_password(password or current_app.config["DEFAULT_PASSWORD"])
    session.add(user)
    session.flush()
    return user


def student_subjects(session: Session, student_id: int) -> List[Dict]:
    stmt = (select(SubjectMap.id, Subject)
            .join(Subject, Subject.id == SubjectMap.subject_id)
            .where(SubjectMap.user_id == student_id)
            .order_by(SubjectMap.id))
    return [
        {"mappingId": mid, "subjectId": s.id, "subject": s.subjectname,
         "standard": s.standard, "board": s.board}
        for mid, s in session.execute(stmt).all()
    ]


def list_students_with_subjects(session: Session) -> List[Dict]:
    students = list_users(session, Role.STUDENT)
    if not students:
        return []
    stmt = (select(SubjectMap.user_id, Subject)
            .join(Subject, Subject.id == SubjectMap.subject_id)
            .where(SubjectMap.user_id.in_([s.id for s in students]))
            .order_by(SubjectMap.id))
    by_student: Dict[int, List[Dict]] = {}
    for uid, subj in session.execute(stmt).all():
        by_student.setdefault(uid, []).append(subj.to_dict())
    return [{**s.to_dict(), "subjects": by_student.get(s.id, [])} for s in students]


# ---------- registration ----------
def register_user(session: Session, *, name: str, email: str, password: Optional[str] = None,
                  role: Role = Role.STUDENT) -> User:
    with transaction(session):
        user = _new_user(session, name=name, email=email, role=role, password=password)
    log.info("user registered id=%s role=%s", user.id, user.role)
    return user


def register_student_with_subject(session: Session, *, name: str, email: str, ref: SubjectRef) -> Dict:
    with transaction(session):
        if email_taken(session, email):
            raise Conflict("A user with this email already exists")
        subj = resolve_subject(session, subjectname=ref.subject, standard=ref.standard, board=ref.board)
        user = _new_user(session, name=name, email=email, role=Role.STUDENT, password=None)
        session.add(SubjectMap(user_id=user.id, subject_id=subj.id))
        out = {
            "id": user.id, "name": user.name, "email": user.email,
            "subject": {"id": subj.id, "name": subj.subjectname, "standard": subj.standard, "board": subj.board},
        }
    return out


def register_student_with_subjects(session: Session, *, name: str, email: str,
                                   refs: Sequence[SubjectRef]) -> Dict:
    with transaction(session):
        user = _new_user(session, name=name, email=email, role=Role.STUDENT, password=None)
        mappings = []
        for subj in resolve_subjects(session, refs):
            sm = SubjectMap(user_id=user.id, subject_id=subj.id)
            session.add(sm)
            session.flush()
            mappings.append({"id": sm.id, "studentId": user.id, "subjectId": subj.id,
                             "subjectName": subj.subjectname, "standard": subj.standard, "board": subj.board})
        out = {"id": user.id, "name": user.name, "email": user.email, "subjects": mappings}
    log.info("student registered id=%s with %d subjects", out["id"], len(mappings))
    return out


# ---------- updates ----------
def _update_basic(session: Session, student_id: int, name: str, email: str) -> User:
    student = get_user(session, student_id, Role.STUDENT, "Student not found")
    if email_taken(session, email, exclude_id=student_id):
        raise Conflict("This email is already used by another user")
    student.name = name
    student.email = normalize_email(email)
    return student


def update_student_with_subject(session: Session, student_id: int, *, name: str, email: str,
                                ref: Optional[SubjectRef] = None,
                                current_subject_id: Optional[int] = None) -> Dict:
    """Point one enrollment at the subject given by ``ref``.

    With ``current_subject_id`` that enrollment is changed (or a new one added
    when the student has none for it); without it, the student's first
    enrollment is changed, or one is created when there are none.
    """
    with transaction(session):
        _update_basic(session, student_id, name, email)
        if ref is not None:
            new_id = resolve_subject(session, subjectname=ref.subject, standard=ref.standard, board=ref.board).id
            rows = list(session.scalars(
                select(SubjectMap).where(SubjectMap.user_id == student_id).order_by(SubjectMap.id)
            ))
            has_new = any(r.subject_id == new_id for r in rows)

            if current_subject_id is not None and current_subject_id != new_id:
                target = next((r for r in rows if r.subject_id == current_subject_id), None)
            elif current_subject_id is None and rows:
                target = rows[0]
            else:
                target = None

            if target is None:
                if not has_new:
                    session.add(SubjectMap(user_id=student_id, subject_id=new_id))
            elif target.subject_id != new_id:
                if has_new:
                    # уже записан на новый предмет, старая строка просто удаляется
                    session.delete(target)
                else:
                    target.subject_id = new_id
        session.flush()
    return {**session.get(User, student_id).to_dict(), "subjects": student_subjects(session, student_id)}


def update_student_with_subjects(session: Session, student_id: int, *, name: str, email: str,
                                 refs: Optional[Sequence[SubjectRef]] = None) -> Dict:
    """Update basic info; a non-empty ``refs`` replaces the whole enrollment set."""
    with transaction(session):
        _update_basic(session, student_id, name, email)
        if refs:
            resolved = resolve_subjects(session, refs)
            deleted = session.execute(
                delete(SubjectMap).where(SubjectMap.user_id == student_id)
                .execution_options(synchronize_session=False)
            ).rowcount
            for subj in resolved:
                session.add(SubjectMap(user_id=student_id, subject_id=subj.id))
            log.info("student %s: replaced %s enrollments with %d", student_id, deleted, len(resolved))
        session.flush()
    return {**session.get(User, student_id).to_dict(), "subjects": student_subjects(session, student_id)}


def delete_student(session: Session, student_id: int) -> None:
    with transaction(session):
        student = get_user(session, student_id, Role.STUDENT, "Student not found")
        session.execute(
            delete(SubjectMap).where(SubjectMap.user_id == student_id)
            .execution_options(synchronize_session=False)
        )
        session.expire(student, ["enrollments"])
        session.delete(student)
    log.info("student deleted id=%s", student_id)
