"""
Idempotent seed-скрипт.
Запуск:
  python seed.py --reset         # дропнуть и пересоздать таблицы + демо-данные + admin
  python seed.py --ensure-admin  # создать только пользователя admin
  python seed.py                 # мягкое наполнение недостающих данных (idempotent)
"""
import argparse

from flask import current_app
from sqlalchemy import select

from app import create_app
from extensions import db
from models import FacultySubject, Role, Subject, SubjectMap, User

ADMIN_EMAIL = "admin@example.com"

DEMO_SUBJECTS = [
    (10, "Mathematics", "CBSE"),
    (10, "Science", "CBSE"),
    (10, "Science", "ICSE"),
    (12, "Physics", "CBSE"),
    (12, "Chemistry", "State"),
]


def get_or_create(model, defaults=None, **by):
    """Find a row by the given columns or insert one."""
    inst = db.session.scalars(select(model).filter_by(**by).limit(1)).first()
    if inst:
        return inst, False
    inst = model(**{**(defaults or {}), **by})
    db.session.add(inst)
    db.session.flush()
    return inst, True


def _user(name, email, role, password):
    user, created = get_or_create(User, defaults={"name": name, "role": role.value}, email=email)
    if created:
        user.set_password(password)
    return user


def seed_demo():
    subjects = [
        get_or_create(Subject, standard=std, subjectname=name, board=board)[0]
        for std, name, board in DEMO_SUBJECTS
    ]
    password = current_app.config["DEFAULT_PASSWORD"]
    faculty = _user("Demo Faculty", "faculty@example.com", Role.FACULTY, password)
    student = _user("Demo Student", "student@example.com", Role.STUDENT, password)

    for subj in subjects[:2]:
        get_or_create(FacultySubject, faculty_id=faculty.id, subject_id=subj.id)
    get_or_create(SubjectMap, user_id=student.id, subject_id=subjects[0].id)
    db.session.commit()


def ensure_admin() -> bool:
    exists = db.session.scalars(select(User.id).where(User.email == ADMIN_EMAIL)).first()
    if exists:
        return False
    _user("Admin", ADMIN_EMAIL, Role.ADMIN, "admin")
    db.session.commit()
    return True


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + full seed (demo)")
    parser.add_argument("--ensure-admin", action="store_true", help="create only the admin user")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            db.drop_all()
            db.create_all()
            seed_demo()
            ensure_admin()
            print("[seed] reset+seed complete")
            return

        if args.ensure_admin:
            created = ensure_admin()
            print("Admin created." if created else "Admin already exists.")
            return

        db.create_all()
        seed_demo()
        print("[seed] soft seed complete")


if __name__ == "__main__":
    main()
