# blueprints/import_export/services.py
"""Import of the historical ``facultymap`` table.

The old table kept one row per faculty with ``subject_id`` and ``student_id``
stored as JSON-encoded arrays (sometimes a bare scalar). Rows are parsed up
front; a single unparseable column aborts the import before anything is
written. Subject pairs are merged into ``faculty_subject``; student lists are
not stored anymore, so they are only checked against enrollments and the
students that would drop out of the derived set are reported.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import FacultySubject, Role, Subject, User
from blueprints.core.errors import CorruptedMappingData
from blueprints.core.services import transaction
from blueprints.mapping.services import faculty_subject_ids, students_with_subjects

log = logging.getLogger(__name__)


def _as_int(value: Any, column: str) -> int:
    # id только целые; дробные числа и строки вида "3.7" не округляем
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    raise CorruptedMappingData(f"{column}: unexpected value {value!r}")


def parse_id_column(raw: Any, column: str = "id") -> List[int]:
    """Turn a legacy id column into a list of ints.

    Accepts None/empty, a scalar, a list, or a string holding any of those as
    JSON. Anything else raises CorruptedMappingData.
    """
    if raw is None:
        return []
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="strict")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        try:
            raw = json.loads(text)
        except ValueError:
            raise CorruptedMappingData(f"{column}: not valid JSON")
        if raw is None:
            return []
    if isinstance(raw, (list, tuple)):
        return [_as_int(v, column) for v in raw]
    return [_as_int(raw, column)]


@dataclass
class LegacyRow:
    faculty_id: int
    subject_ids: List[int]
    student_ids: List[int]


@dataclass
class ImportReport:
    rows: int = 0
    pairs_created: int = 0
    pairs_existing: int = 0
    unknown_faculties: List[int] = field(default_factory=list)
    unknown_subjects: List[int] = field(default_factory=list)
    unenrolled_students: Dict[int, List[int]] = field(default_factory=dict)

    def as_dict(self) -> Dict:
        return {
            "rows": self.rows,
            "pairsCreated": self.pairs_created,
            "pairsExisting": self.pairs_existing,
            "unknownFaculties": self.unknown_faculties,
            "unknownSubjects": self.unknown_subjects,
            # ключи-строки, чтобы ответ был валидным JSON
            "unenrolledStudents": {str(k): v for k, v in self.unenrolled_students.items()},
        }


def parse_rows(rows: Iterable[Mapping[str, Any]]) -> List[LegacyRow]:
    parsed = []
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise CorruptedMappingData(f"row {i}: expected an object")
        fac = parse_id_column(row.get("user_id"), "user_id")
        if len(fac) != 1:
            raise CorruptedMappingData(f"row {i}: user_id must hold exactly one id")
        parsed.append(LegacyRow(
            faculty_id=fac[0],
            subject_ids=parse_id_column(row.get("subject_id"), "subject_id"),
            student_ids=parse_id_column(row.get("student_id"), "student_id"),
        ))
    return parsed


def import_legacy_facultymap(session: Session, rows: Iterable[Mapping[str, Any]]) -> ImportReport:
    legacy = parse_rows(rows)
    report = ImportReport(rows=len(legacy))
    if not legacy:
        return report

    with transaction(session):
        faculty_ids: Set[int] = set(session.scalars(
            select(User.id).where(User.id.in_({r.faculty_id for r in legacy}), User.role == Role.FACULTY.value)
        ))
        all_subjects = {sid for r in legacy for sid in r.subject_ids}
        known_subjects: Set[int] = set(session.scalars(select(Subject.id).where(Subject.id.in_(all_subjects)))) \
            if all_subjects else set()
        report.unknown_subjects = sorted(all_subjects - known_subjects)

        for row in legacy:
            if row.faculty_id not in faculty_ids:
                if row.faculty_id not in report.unknown_faculties:
                    report.unknown_faculties.append(row.faculty_id)
                continue
            current = set(faculty_subject_ids(session, row.faculty_id))
            for sid in dict.fromkeys(row.subject_ids):
                if sid not in known_subjects:
                    continue
                if sid in current:
                    report.pairs_existing += 1
                    continue
                session.add(FacultySubject(faculty_id=row.faculty_id, subject_id=sid))
                current.add(sid)
                report.pairs_created += 1
            session.flush()

            derived = set(students_with_subjects(session, sorted(current)))
            missing = sorted({s for s in row.student_ids if s not in derived})
            if missing:
                report.unenrolled_students.setdefault(row.faculty_id, []).extend(missing)

    log.info("legacy facultymap imported rows=%d created=%d existing=%d unknown_faculties=%d",
             report.rows, report.pairs_created, report.pairs_existing, len(report.unknown_faculties))
    return report
