import pytest

from conftest import correct_answers
from models import db
from models.tests import Test
from classes.attempt_manager import AttemptManager


@pytest.fixture
def examiner(make_user):
    return make_user("examiner1", role="examiner")


@pytest.fixture
def headers(examiner, auth_headers):
    return auth_headers(examiner)


def test_test_session_returns_twenty_questions(client, headers, make_subject, make_questions):
    subject = make_subject()
    make_questions(subject, 30)

    response = client.post("/api/examiner/test-sessions", json={"subject_id": subject.id}, headers=headers)

    assert response.status_code == 200
    questions = response.get_json()["questions"]
    assert len(questions) == 20
    assert len({q["id"] for q in questions}) == 20


def test_test_session_with_too_few_questions(client, headers, make_subject, make_questions):
    subject = make_subject()
    make_questions(subject, 5)

    response = client.post("/api/examiner/test-sessions", json={"subject_id": subject.id}, headers=headers)

    assert response.status_code == 400
    assert "Found only 5, need 20" in response.get_json()["error"]


def test_replace_question(client, headers, make_subject, make_questions):
    subject = make_subject()
    questions = make_questions(subject, 21)
    used = [q.id for q in questions[:20]]

    response = client.post(
        "/api/examiner/test-sessions/replace",
        json={"subject_id": subject.id, "exclude_ids": used},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.get_json()["id"] == questions[20].id

    exhausted = client.post(
        "/api/examiner/test-sessions/replace",
        json={"subject_id": subject.id, "exclude_ids": used + [questions[20].id]},
        headers=headers,
    )
    assert exhausted.status_code == 400


def test_create_and_assign_test(client, headers, examiner, make_user, make_subject, make_questions):
    student = make_user("student1")
    subject = make_subject()
    questions = make_questions(subject, 20)

    response = client.post("/api/examiner/tests", json={
        "name": "MET mock exam",
        "subject_id": subject.id,
        "question_ids": [q.id for q in questions],
        "time_limit_minutes": 45,
    }, headers=headers)
    assert response.status_code == 201
    test_id = response.get_json()["test_id"]

    assigned = client.put(f"/api/examiner/tests/{test_id}/assign",
                          json={"student_ids": [student.id]}, headers=headers)
    assert assigned.status_code == 200
    assert assigned.get_json()["assigned_student_ids"] == [student.id]

    db.session.expire_all()
    test = db.session.get(Test, test_id)
    assert test.created_by == examiner.id
    assert test.assigned_student_ids == [student.id]

    listed = client.get("/api/examiner/tests", headers=headers).get_json()
    assert [t["id"] for t in listed] == [test_id]


def test_create_test_rejects_questions_from_other_subject(client, headers, make_subject, make_questions):
    met = make_subject()
    nav = make_subject("NAV", "Navigation")
    questions = make_questions(nav, 3)

    response = client.post("/api/examiner/tests", json={
        "name": "Mixed",
        "subject_id": met.id,
        "question_ids": [q.id for q in questions],
        "time_limit_minutes": 45,
    }, headers=headers)
    assert response.status_code == 400


def test_create_test_requires_fields(client, headers):
    response = client.post("/api/examiner/tests", json={"name": "Incomplete"}, headers=headers)
    assert response.status_code == 400


def test_assign_rejects_non_students(client, headers, examiner, make_subject, make_questions, make_test):
    subject = make_subject()
    test = make_test(subject, make_questions(subject, 2))

    response = client.put(f"/api/examiner/tests/{test.id}/assign",
                          json={"student_ids": [examiner.id]}, headers=headers)
    assert response.status_code == 400


def test_student_details_statuses(client, headers, make_user, make_subject, make_questions, make_test):
    student = make_user("student1")
    law = make_subject("LAW", "Air Law")
    met = make_subject("MET", "Meteorology")
    nav = make_subject("NAV", "Navigation")
    agk = make_subject("AGK", "Aircraft General Knowledge")
    law_questions = make_questions(law, 20)
    law_test = make_test(law, law_questions)
    met_test = make_test(met, make_questions(met, 20))
    make_test(nav, make_questions(nav, 20), assigned=[student])

    manager = AttemptManager()
    passed_id = manager.start(law_test.id, student.id)["attempt_id"]
    manager.submit(passed_id, student.id, correct_answers(law_questions))
    manager.start(met_test.id, student.id)

    response = client.get(f"/api/examiner/students/{student.id}", headers=headers)
    assert response.status_code == 200
    data = response.get_json()
    statuses = {row["subject_name"]: row["status"] for row in data["details"]}
    assert statuses == {
        "Air Law": "passed",
        "Meteorology": "in_progress",
        "Navigation": "assigned",
        "Aircraft General Knowledge": "not_started",
    }
    assert len(data["attempts"]) == 2
    assert agk.id in [row["subject_id"] for row in data["details"]]

    overview = client.get("/api/examiner/students", headers=headers).get_json()
    assert overview == [{
        "student_id": student.id,
        "username": "student1",
        "status": "active",
        "passed_subjects": 1,
        "total_subjects": 4,
    }]


def test_examiner_reads_any_attempt(client, headers, make_user, make_subject, make_questions, make_test):
    student = make_user("student1")
    subject = make_subject()
    test = make_test(subject, make_questions(subject, 20))
    attempt_id = AttemptManager().start(test.id, student.id)["attempt_id"]

    response = client.get(f"/api/examiner/attempts/{attempt_id}", headers=headers)
    assert response.status_code == 200
    assert response.get_json()["status"] == "open"

    assert client.get("/api/examiner/attempts/999", headers=headers).status_code == 404


def test_unknown_student(client, headers):
    assert client.get("/api/examiner/students/999", headers=headers).status_code == 404
