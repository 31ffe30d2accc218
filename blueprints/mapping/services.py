# blueprints/mapping/services.py
"""Faculty ↔ subject ↔ student mapping.

A faculty's subjects live in ``faculty_subject``. A faculty's students are never
stored: they are the students holding at least one ``subjectmap`` row for one of
the faculty's subjects. Every write below keeps ``subjectmap`` consistent with
that rule; nothing else has to be re-derived.

``subjectmap`` has no faculty column, so when two faculty share a subject the
enrollment row is shared as well. Removing a student from one of them removes
the row for both. Dropping a subject from one faculty only deletes enrollments
when no other faculty still teaches it.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from models import FacultySubject, Role, Subject, SubjectMap, User
from blueprints.core.errors import NotFound, ValidationFailed
from blueprints.core.services import get_user, transaction

log = logging.getLogger(__name__)


# ===== DTO =====
@dataclass
class MappingResult:
    faculty_id: int
    subject_ids: List[int]
    mappings_created: int = 0
    mappings_skipped: int = 0
    students_added: List[int] = field(default_factory=list)
    already_mapped: List[int] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return {
            "facultyId": self.faculty_id,
            "subjectIds": self.subject_ids,
            "mappingsCreated": self.mappings_created,
            "mappingsSkipped": self.mappings_skipped,
            "studentsAdded": len(self.students_added),
            "alreadyMapped": len(self.already_mapped),
            "addedStudentIds": self.students_added,
        }


@dataclass
class Reconciliation:
    removed_subject_ids: List[int]
    shared_subject_ids: List[int]
    affected_student_ids: List[int]
    retained_student_ids: List[int]
    dropped_student_ids: List[int]
    rows_deleted: int

    def as_dict(self) -> Dict:
        return {
            "removedSubjectIds": self.removed_subject_ids,
            "sharedSubjectIds": self.shared_subject_ids,
            "affectedStudentIds": self.affected_student_ids,
            "retainedStudentIds": self.retained_student_ids,
            "droppedStudentIds": self.dropped_student_ids,
            "rowsDeleted": self.rows_deleted,
        }


# ===== reads =====
def faculty_subject_ids(session: Session, faculty_id: int) -> List[int]:
    stmt = (select(FacultySubject.subject_id)
            .where(FacultySubject.faculty_id == faculty_id)
            .order_by(FacultySubject.id))
    return list(session.scalars(stmt))


def students_with_subjects(session: Session, subject_ids: Iterable[int]) -> List[int]:
    """Distinct students enrolled in at least one of ``subject_ids``."""
    ids = list(subject_ids)
    if not ids:
        return []
    stmt = (select(SubjectMap.user_id)
            .join(User, User.id == SubjectMap.user_id)
            .where(SubjectMap.subject_id.in_(ids), User.role == Role.STUDENT.value)
            .distinct()
            .order_by(SubjectMap.user_id))
    return list(session.scalars(stmt))


def faculty_student_ids(session: Session, faculty_id: int) -> List[int]:
    return students_with_subjects(session, faculty_subject_ids(session, faculty_id))


def faculty_subjects(session: Session, faculty_id: int) -> List[Subject]:
    stmt = (select(Subject)
            .join(FacultySubject, FacultySubject.subject_id == Subject.id)
            .where(FacultySubject.faculty_id == faculty_id)
            .order_by(FacultySubject.id))
    return list(session.scalars(stmt))


def _enrollments(session: Session, student_ids: Sequence[int], subject_ids: Sequence[int]) -> Dict[int, List[Subject]]:
    out: Dict[int, List[Subject]] = {sid: [] for sid in student_ids}
    if not student_ids or not subject_ids:
        return out
    stmt = (select(SubjectMap.user_id, Subject)
            .join(Subject, Subject.id == SubjectMap.subject_id)
            .where(SubjectMap.user_id.in_(student_ids), SubjectMap.subject_id.in_(subject_ids))
            .order_by(SubjectMap.user_id, Subject.standard, Subject.subjectname))
    for uid, subj in session.execute(stmt).all():
        out[uid].append(subj)
    return out


def students_for_faculty(session: Session, faculty_id: int) -> List[Dict]:
    """Students mapped to a faculty, each with the subjects it takes under that faculty."""
    get_user(session, faculty_id, Role.FACULTY, "Faculty not found")
    subject_ids = faculty_subject_ids(session, faculty_id)
    student_ids = students_with_subjects(session, subject_ids)
    if not student_ids:
        return []
    students = session.scalars(select(User).where(User.id.in_(student_ids)).order_by(User.id)).all()
    enrolled = _enrollments(session, student_ids, subject_ids)
    return [
        {"id": s.id, "name": s.name, "email": s.email,
         "subjects": [subj.to_dict() for subj in enrolled.get(s.id, [])]}
        for s in students
    ]


def unmapped_students(session: Session, faculty_id: int) -> List[User]:
    get_user(session, faculty_id, Role.FACULTY, "Faculty not found")
    mapped = faculty_student_ids(session, faculty_id)
    stmt = select(User).where(User.role == Role.STUDENT.value)
    if mapped:
        stmt = stmt.where(User.id.not_in(mapped))
    return list(session.scalars(stmt.order_by(User.id)))


# ===== writes (no commit; callers own the transaction) =====
def set_faculty_subjects(session: Session, faculty_id: int, subject_ids: Sequence[int]) -> List[int]:
    """Replace the faculty's subject set. Returns the ids that were removed."""
    old = faculty_subject_ids(session, faculty_id)
    new = list(dict.fromkeys(subject_ids))
    removed = [sid for sid in old if sid not in new]
    added = [sid for sid in new if sid not in old]
    if removed:
        session.execute(
            delete(FacultySubject)
            .where(FacultySubject.faculty_id == faculty_id, FacultySubject.subject_id.in_(removed))
        )
    for sid in added:
        session.add(FacultySubject(faculty_id=faculty_id, subject_id=sid))
    session.flush()
    return removed


def reconcile_removed_subjects(session: Session, removed_ids: Sequence[int],
                               remaining_ids: Sequence[int]) -> Reconciliation:
    """Drop enrollments in subjects a faculty no longer teaches.

    Must run after ``set_faculty_subjects``. A removed subject still taught by
    another faculty keeps its enrollments (they belong to that faculty as well);
    only rows in subjects nobody teaches anymore are deleted. The affected
    students are those enrolled in any removed subject; a student stays with
    the faculty iff it still has a row in ``remaining_ids``.
    """
    removed = list(removed_ids)
    shared = sorted(set(session.scalars(
        select(FacultySubject.subject_id).where(FacultySubject.subject_id.in_(removed))
    ))) if removed else []
    orphaned = [sid for sid in removed if sid not in shared]

    affected = students_with_subjects(session, removed)
    rows_deleted = 0
    if affected and orphaned:
        res = session.execute(
            delete(SubjectMap)
            .where(SubjectMap.subject_id.in_(orphaned), SubjectMap.user_id.in_(affected))
            .execution_options(synchronize_session=False)
        )
        rows_deleted = res.rowcount or 0

    still = set(students_with_subjects(session, remaining_ids)) if remaining_ids else set()
    retained = [sid for sid in affected if sid in still]
    dropped = [sid for sid in affected if sid not in still]
    log.info("removed subjects %s (shared %s): deleted %d enrollments, %d of %d students remain",
             removed, shared, rows_deleted, len(retained), len(affected))
    return Reconciliation(
        removed_subject_ids=removed,
        shared_subject_ids=shared,
        affected_student_ids=affected,
        retained_student_ids=retained,
        dropped_student_ids=dropped,
        rows_deleted=rows_deleted,
    )


def _validate_students(session: Session, student_ids: Sequence[int]) -> None:
    found = set(session.scalars(
        select(User.id).where(User.id.in_(list(student_ids)), User.role == Role.STUDENT.value)
    ))
    missing = [sid for sid in student_ids if sid not in found]
    if missing:
        raise NotFound("One or more students not found", error={"missingStudentIds": missing})


# ===== operations =====
def map_students_to_faculty(session: Session, faculty_id: int, student_ids: Sequence[int],
                            subject_ids: Optional[Sequence[int]] = None) -> MappingResult:
    """Enroll every selected student in every selected subject of the faculty.

    Pairs that already exist are skipped, so repeating a call changes nothing.
    ``subject_ids`` defaults to all of the faculty's subjects and must be a
    subset of them.
    """
    student_ids = list(dict.fromkeys(student_ids))
    with transaction(session):
        get_user(session, faculty_id, Role.FACULTY, "Faculty not found")
        _validate_students(session, student_ids)

        own = faculty_subject_ids(session, faculty_id)
        if subject_ids:
            selected = list(dict.fromkeys(subject_ids))
            foreign = [sid for sid in selected if sid not in own]
            if foreign:
                raise ValidationFailed("Subject(s) not assigned to this faculty",
                                       error={"subjectIds": foreign})
        else:
            selected = own
        if not selected:
            raise ValidationFailed("Faculty has no subjects to map students to")

        before = set(students_with_subjects(session, own))
        existing = {
            (uid, sid) for uid, sid in session.execute(
                select(SubjectMap.user_id, SubjectMap.subject_id)
                .where(SubjectMap.user_id.in_(student_ids), SubjectMap.subject_id.in_(selected))
            ).all()
        }

        result = MappingResult(faculty_id=faculty_id, subject_ids=selected)
        for student_id in student_ids:
            for subject_id in selected:
                if (student_id, subject_id) in existing:
                    result.mappings_skipped += 1
                    continue
                session.add(SubjectMap(user_id=student_id, subject_id=subject_id))
                result.mappings_created += 1
            if student_id in before:
                result.already_mapped.append(student_id)
            else:
                result.students_added.append(student_id)
        session.flush()

    log.info("faculty %s: mapped %d students (%d new rows, %d skipped)",
             faculty_id, len(student_ids), result.mappings_created, result.mappings_skipped)
    return result


def remove_student_from_faculty(session: Session, faculty_id: int, student_id: int) -> List[int]:
    """Delete the student's enrollments in the faculty's subjects. Returns the subject ids removed."""
    with transaction(session):
        get_user(session, faculty_id, Role.FACULTY, "Faculty not found")
        own = faculty_subject_ids(session, faculty_id)
        removed: List[int] = []
        if own:
            removed = list(session.scalars(
                select(SubjectMap.subject_id)
                .where(SubjectMap.user_id == student_id, SubjectMap.subject_id.in_(own))
                .order_by(SubjectMap.subject_id)
            ))
        if not removed:
            raise NotFound("Mapping not found")
        session.execute(
            delete(SubjectMap)
            .where(SubjectMap.user_id == student_id, SubjectMap.subject_id.in_(removed))
            .execution_options(synchronize_session=False)
        )
    log.info("faculty %s: removed student %s from subjects %s", faculty_id, student_id, removed)
    return removed
