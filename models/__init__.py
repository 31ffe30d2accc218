from enum import Enum as PyEnum

from flask_login import UserMixin
from sqlalchemy import ForeignKey, UniqueConstraint, Index, Integer
from sqlalchemy.orm import relationship, Mapped, mapped_column
from werkzeug.security import generate_password_hash, check_password_hash

from extensions import db


# ---------- Enums ----------
class Role(str, PyEnum):
    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


# ---------- Core Entities ----------
class User(UserMixin, db.Model):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)
    # обычная строка, чтобы колонка не зависела от enum-типа БД
    role: Mapped[str] = mapped_column(db.String(16), nullable=False, index=True, default=Role.STUDENT.value)

    faculty_subjects = relationship("FacultySubject", back_populates="faculty", cascade="all, delete-orphan")
    enrollments = relationship("SubjectMap", back_populates="student", cascade="all, delete-orphan")

    def set_password(self, raw: str) -> None:
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        return check_password_hash(self.password_hash, raw)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class Subject(db.Model):
    __tablename__ = "subject"

    id: Mapped[int] = mapped_column(primary_key=True)
    standard: Mapped[int] = mapped_column(Integer, nullable=False)
    subjectname: Mapped[str] = mapped_column(db.String(255), nullable=False)
    board: Mapped[str] = mapped_column(db.String(100), nullable=False)

    # (subjectname, standard, board) ключ поиска; дубли не запрещены
    __table_args__ = (
        Index("ix_subject_triple", "subjectname", "standard", "board"),
    )

    def to_dict(self) -> dict:
        return {"id": self.id, "standard": self.standard, "subjectname": self.subjectname, "board": self.board}

    def __repr__(self):
        return f"<Subject {self.subjectname} {self.standard} {self.board}>"


# ---------- Mappings ----------
class FacultySubject(db.Model):
    """Subjects taught by a faculty member."""
    __tablename__ = "faculty_subject"

    id: Mapped[int] = mapped_column(primary_key=True)
    faculty_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subject.id", ondelete="CASCADE"), nullable=False, index=True)

    faculty = relationship("User", back_populates="faculty_subjects")
    subject = relationship("Subject")

    __table_args__ = (
        UniqueConstraint("faculty_id", "subject_id", name="uq_faculty_subject_pair"),
    )


class SubjectMap(db.Model):
    """Student enrollment in a subject. Has no faculty column: a faculty's
    students are derived by intersecting these rows with the faculty's subjects."""
    __tablename__ = "subjectmap"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subject.id", ondelete="CASCADE"), nullable=False, index=True)

    student = relationship("User", back_populates="enrollments")
    subject = relationship("Subject")

    __table_args__ = (
        UniqueConstraint("user_id", "subject_id", name="uq_subjectmap_user_subject"),
    )
