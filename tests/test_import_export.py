# tests/test_import_export.py
import json

import pytest
from sqlalchemy import select

from app import create_app
from extensions import db
from models import FacultySubject, Role, Subject, SubjectMap, User
from blueprints.core.errors import CorruptedMappingData
from blueprints.import_export.services import parse_id_column


@pytest.fixture()
def client_app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        maths = Subject(standard=10, subjectname="Mathematics", board="CBSE")
        sci = Subject(standard=10, subjectname="Science", board="CBSE")
        fac = User(name="Meera", email="f@example.com", role=Role.FACULTY.value)
        stu = User(name="Asha", email="s@example.com", role=Role.STUDENT.value)
        lone = User(name="Ravi", email="r@example.com", role=Role.STUDENT.value)
        for u in (fac, stu, lone):
            u.set_password("123")
        db.session.add_all([maths, sci, fac, stu, lone])
        db.session.flush()
        db.session.add(SubjectMap(user_id=stu.id, subject_id=maths.id))
        db.session.commit()
        app.ids = {"fac": fac.id, "stu": stu.id, "lone": lone.id, "maths": maths.id, "sci": sci.id}
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(client_app):
    return client_app.test_client()


@pytest.fixture()
def ids(client_app):
    return client_app.ids


def _links(fid):
    return sorted(db.session.scalars(select(FacultySubject.subject_id).where(FacultySubject.faculty_id == fid)))


@pytest.mark.parametrize("raw,expected", [
    (None, []),
    ("", []),
    ("null", []),
    (7, [7]),
    ("7", [7]),
    ("[1, 2, 3]", [1, 2, 3]),
    ('["4", 5]', [4, 5]),
    ([8, "9"], [8, 9]),
])
def test_parse_id_column_shapes(raw, expected):
    assert parse_id_column(raw) == expected


@pytest.mark.parametrize("raw", [
    "[1, 2", "abc", '{"a": 1}', "[true]", '["x"]',
    "[1.9]", 2.5, "3.7", "[2.0]", '["-1"]', '[" 4.0 "]',
])
def test_parse_id_column_corrupted(raw):
    with pytest.raises(CorruptedMappingData):
        parse_id_column(raw, "subject_id")


def test_import_normalizes_rows(client, ids):
    rows = [{
        "user_id": ids["fac"],
        "subject_id": json.dumps([ids["maths"], ids["sci"], 999]),
        "student_id": json.dumps([ids["stu"], ids["lone"]]),
    }]
    r = client.post("/api/admin/import/facultymap", json={"rows": rows})
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["rows"] == 1
    assert data["pairsCreated"] == 2
    assert data["unknownSubjects"] == [999]
    assert data["unenrolledStudents"] == {str(ids["fac"]): [ids["lone"]]}
    assert _links(ids["fac"]) == sorted([ids["maths"], ids["sci"]])

    # повторный запуск находит только существующие пары
    again = client.post("/api/admin/import/facultymap", json={"rows": rows}).get_json()["data"]
    assert again["pairsCreated"] == 0
    assert again["pairsExisting"] == 2


def test_import_reports_unknown_faculty(client, ids):
    rows = [{"user_id": ids["stu"], "subject_id": str(ids["maths"]), "student_id": None}]
    data = client.post("/api/admin/import/facultymap", json={"rows": rows}).get_json()["data"]
    assert data["unknownFaculties"] == [ids["stu"]]
    assert data["pairsCreated"] == 0


def test_corrupted_row_aborts_everything(client, ids):
    rows = [
        {"user_id": ids["fac"], "subject_id": f"[{ids['maths']}]", "student_id": "[]"},
        {"user_id": ids["fac"], "subject_id": "[1, 2", "student_id": "[]"},
    ]
    r = client.post("/api/admin/import/facultymap", json={"rows": rows})
    assert r.status_code == 500
    js = r.get_json()
    assert js["success"] is False
    assert js["message"] == "Corrupted mapping data"
    assert _links(ids["fac"]) == []


def test_fractional_subject_id_aborts_import(client, ids):
    rows = [{"user_id": ids["fac"], "subject_id": f"[{ids['maths']}.9]", "student_id": None}]
    r = client.post("/api/admin/import/facultymap", json={"rows": rows})
    assert r.status_code == 500
    assert r.get_json()["message"] == "Corrupted mapping data"
    assert _links(ids["fac"]) == []


def test_import_requires_rows(client):
    assert client.post("/api/admin/import/facultymap", json={}).status_code == 400
