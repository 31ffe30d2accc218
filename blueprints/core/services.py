# blueprints/core/services.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import Role, Subject, User
from .errors import NotFound

log = logging.getLogger(__name__)


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit on success, roll back on any exception and re-raise."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        log.info("transaction rolled back")
        raise


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def email_taken(session: Session, email: str, *, exclude_id: Optional[int] = None) -> bool:
    stmt = select(User.id).where(User.email == normalize_email(email))
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return session.execute(stmt.limit(1)).first() is not None


def get_user(session: Session, user_id: int, role: Role, message: str) -> User:
    user = session.get(User, user_id)
    if user is None or user.role != role.value:
        raise NotFound(message)
    return user


def list_users(session: Session, role: Role) -> List[User]:
    return list(session.scalars(select(User).where(User.role == role.value).order_by(User.id)))


def find_subject(session: Session, *, subjectname: str, standard: int, board: str) -> Optional[Subject]:
    stmt = (select(Subject)
            .where(Subject.subjectname == subjectname,
                   Subject.standard == standard,
                   Subject.board == board)
            .order_by(Subject.id)
            .limit(1))
    return session.scalars(stmt).first()


def resolve_subject(session: Session, *, subjectname: str, standard: int, board: str) -> Subject:
    subj = find_subject(session, subjectname=subjectname, standard=standard, board=board)
    if subj is None:
        raise NotFound(
            f'The subject "{subjectname}" with standard {standard} and board {board} '
            f"does not exist in our database."
        )
    return subj


def resolve_subjects(session: Session, refs: Iterable) -> List[Subject]:
    """Resolve (subject, standard, board) refs in order, dropping repeats."""
    out: List[Subject] = []
    seen: set[int] = set()
    for ref in refs:
        subj = resolve_subject(session, subjectname=ref.subject, standard=ref.standard, board=ref.board)
        if subj.id not in seen:
            seen.add(subj.id)
            out.append(subj)
    return out
