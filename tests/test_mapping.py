from __future__ import annotations
import pytest
from sqlalchemy import select

from app import create_app
from extensions import db
from models import FacultySubject, Role, Subject, SubjectMap, User


@pytest.fixture()
def client_app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        maths = Subject(standard=10, subjectname="Mathematics", board="CBSE")
        sci = Subject(standard=10, subjectname="Science", board="CBSE")
        eng = Subject(standard=10, subjectname="English", board="CBSE")
        fac = User(name="Meera", email="f@example.com", role=Role.FACULTY.value)
        s1 = User(name="Asha", email="s1@example.com", role=Role.STUDENT.value)
        s2 = User(name="Ravi", email="s2@example.com", role=Role.STUDENT.value)
        for u in (fac, s1, s2):
            u.set_password("123")
        db.session.add_all([maths, sci, eng, fac, s1, s2])
        db.session.flush()
        db.session.add_all([
            FacultySubject(faculty_id=fac.id, subject_id=maths.id),
            FacultySubject(faculty_id=fac.id, subject_id=sci.id),
        ])
        db.session.commit()
        app.ids = {"fac": fac.id, "s1": s1.id, "s2": s2.id,
                   "maths": maths.id, "sci": sci.id, "eng": eng.id}
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(client_app):
    return client_app.test_client()


@pytest.fixture()
def ids(client_app):
    return client_app.ids


def _pairs():
    return sorted(tuple(r) for r in db.session.execute(select(SubjectMap.user_id, SubjectMap.subject_id)))


def _map(client, ids, students, subjects=None):
    body = {"facultyId": ids["fac"], "studentIds": students}
    if subjects is not None:
        body["subjectIds"] = subjects
    return client.post("/api/admin/mapStudentsToFaculty", json=body)


def test_map_is_idempotent(client, ids):
    r1 = _map(client, ids, [ids["s1"]])
    assert r1.status_code == 200
    d1 = r1.get_json()["data"]
    assert d1["mappingsCreated"] == 2
    assert d1["studentsAdded"] == 1
    assert r1.get_json()["message"] == "Successfully mapped 1 students to faculty"

    r2 = _map(client, ids, [ids["s1"]])
    d2 = r2.get_json()["data"]
    assert d2["mappingsCreated"] == 0
    assert d2["mappingsSkipped"] == 2
    assert d2["alreadyMapped"] == 1
    assert _pairs() == sorted([(ids["s1"], ids["maths"]), (ids["s1"], ids["sci"])])


def test_map_subset_of_subjects(client, ids):
    r = _map(client, ids, [ids["s1"], ids["s2"]], [ids["sci"]])
    assert r.status_code == 200
    assert _pairs() == sorted([(ids["s1"], ids["sci"]), (ids["s2"], ids["sci"])])


def test_map_rejects_foreign_subject(client, ids):
    r = _map(client, ids, [ids["s1"]], [ids["eng"]])
    assert r.status_code == 400
    assert r.get_json()["message"] == "Subject(s) not assigned to this faculty"
    assert _pairs() == []


def test_map_unknown_students_or_faculty(client, ids):
    assert _map(client, ids, [ids["s1"], 999]).status_code == 404
    assert _map(client, ids, [ids["fac"]]).status_code == 404
    r = client.post("/api/admin/mapStudentsToFaculty", json={"facultyId": ids["s1"], "studentIds": [ids["s2"]]})
    assert r.status_code == 404
    assert _pairs() == []


def test_map_validation(client, ids):
    r = client.post("/api/admin/mapStudentsToFaculty", json={"facultyId": ids["fac"], "studentIds": []})
    assert r.status_code == 400


def test_faculty_student_mappings(client, ids):
    db.session.add(SubjectMap(user_id=ids["s2"], subject_id=ids["eng"]))
    db.session.commit()
    _map(client, ids, [ids["s1"]], [ids["maths"]])

    rows = client.get(f"/api/admin/facultyStudentMappings/{ids['fac']}").get_json()["data"]
    assert [r["id"] for r in rows] == [ids["s1"]]
    assert [s["subjectname"] for s in rows[0]["subjects"]] == ["Mathematics"]

    unmapped = client.get(f"/api/admin/unmappedStudents/{ids['fac']}").get_json()["data"]
    assert [u["id"] for u in unmapped] == [ids["s2"]]

    assert client.get("/api/admin/facultyStudentMappings/999").status_code == 404


def test_remove_student_from_faculty(client, ids):
    db.session.add(SubjectMap(user_id=ids["s1"], subject_id=ids["eng"]))
    db.session.commit()
    _map(client, ids, [ids["s1"]])

    r = client.delete("/api/admin/removeFacultyStudentMapping",
                      json={"facultyId": ids["fac"], "studentId": ids["s1"]})
    assert r.status_code == 200
    assert sorted(r.get_json()["data"]["removedSubjectIds"]) == sorted([ids["maths"], ids["sci"]])
    # записи вне предметов преподавателя остаются
    assert _pairs() == [(ids["s1"], ids["eng"])]

    unmapped = client.get(f"/api/admin/unmappedStudents/{ids['fac']}").get_json()["data"]
    assert ids["s1"] in [u["id"] for u in unmapped]

    again = client.delete("/api/admin/removeFacultyStudentMapping",
                          json={"facultyId": ids["fac"], "studentId": ids["s1"]})
    assert again.status_code == 404
    assert again.get_json()["message"] == "Mapping not found"
