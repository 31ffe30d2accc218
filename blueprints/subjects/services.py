# blueprints/subjects/services.py
from __future__ import annotations
import logging
from typing import Any, Dict, List

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from models import Subject
from blueprints.core.errors import NotFound
from blueprints.core.services import transaction
from .schemas import SubjectIn

log = logging.getLogger(__name__)


def create_subject(session: Session, data: SubjectIn) -> Subject:
    with transaction(session):
        subj = Subject(standard=data.standard, subjectname=data.subjectname, board=data.board)
        session.add(subj)
        session.flush()
    log.info("subject created id=%s", subj.id)
    return subj


def list_subjects(session: Session) -> List[Subject]:
    return list(session.scalars(select(Subject).order_by(Subject.standard, Subject.subjectname)))


def update_subject(session: Session, subject_id: int, data: SubjectIn) -> Subject:
    with transaction(session):
        subj = session.get(Subject, subject_id)
        if subj is None:
            raise NotFound("Subject not found")
        subj.standard = data.standard
        subj.subjectname = data.subjectname
        subj.board = data.board
    return subj


def delete_subject(session: Session, subject_id: int) -> None:
    # удаление из одной таблицы; связи уходят через ON DELETE CASCADE
    with transaction(session):
        deleted = session.query(Subject).filter(Subject.id == subject_id).delete(synchronize_session=False)
        if not deleted:
            raise NotFound("Subject not found")
    log.info("subject deleted id=%s", subject_id)


def describe_subject_table(session: Session) -> Dict[str, Any]:
    insp = inspect(session.get_bind())
    columns = [
        {
            "COLUMN_NAME": c["name"],
            "DATA_TYPE": str(c["type"]),
            "IS_NULLABLE": "YES" if c.get("nullable", True) else "NO",
            "COLUMN_DEFAULT": c.get("default"),
        }
        for c in insp.get_columns(Subject.__tablename__)
    ]
    sample = [s.to_dict() for s in session.scalars(select(Subject).limit(5))]
    return {"tableStructure": columns, "sampleData": sample, "totalSubjects": len(sample)}
