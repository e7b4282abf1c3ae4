from flask import Blueprint, jsonify, g, request, current_app
from sqlalchemy import select

from models import db
from models.users import User
from models.subjects import Subject
from models.questions import Question
from models.tests import Test
from models.attempts import TestAttempt
from classes.attempt_manager import AttemptManager
from classes.question_bank import QuestionBank
from classes.validators import validate_time_limit, validate_length
from routes.students import subject_progress, format_best_score
from utils.helpers import parse_int, clean_text
from utils.utils import role_required

# Examiners' blueprint
examiner_bp = Blueprint("examiner", __name__)


def _parse_id_list(values):
    if not isinstance(values, list):
        return None
    ids = [parse_int(v) for v in values]
    if any(i is None for i in ids):
        return None
    return ids

#__________________________________________________________________________________________ * Students *__________________________________________________

# overview of all students
@examiner_bp.route("/students", methods=["GET"])
@role_required("examiner")
def get_student_overview():
    students = db.session.scalars(select(User).filter_by(role="student").order_by(User.username)).all()
    subjects = db.session.scalars(select(Subject)).all()
    attempts = db.session.scalars(select(TestAttempt).filter_by(passed=True)).all()

    overview = []
    for student in students:
        passed_subjects = {a.subject_id for a in attempts if a.student_id == student.id}
        overview.append({
            "student_id": student.id,
            "username": student.username,
            "status": student.status,
            "passed_subjects": sum(1 for s in subjects if s.id in passed_subjects),
            "total_subjects": len(subjects),
        })
    return jsonify(overview), 200


# per-subject progress of one student
@examiner_bp.route("/students/<int:student_id>", methods=["GET"])
@role_required("examiner")
def get_student_details(student_id):
    student = db.session.get(User, student_id)
    if not student or student.role != "student":
        return jsonify({"error": "Student not found"}), 404

    subjects = db.session.scalars(select(Subject).order_by(Subject.name)).all()
    attempts = db.session.scalars(
        select(TestAttempt).filter_by(student_id=student_id).order_by(TestAttempt.start_time.desc())
    ).all()
    assigned_tests = [t for t in db.session.scalars(select(Test)).all() if student_id in t.assigned_student_ids]
    attempted_tests = {a.test_id for a in attempts}

    details = []
    for subject in subjects:
        attempts_count, has_passed, best_score = subject_progress(subject, attempts)
        assigned_not_started = any(
            t.subject_id == subject.id and t.id not in attempted_tests for t in assigned_tests
        )

        status = "not_started"
        if has_passed:
            status = "passed"
        elif assigned_not_started:
            status = "assigned"
        elif attempts_count > 0:
            status = "in_progress"

        details.append({
            "subject_id": subject.id,
            "subject_name": subject.name,
            "status": status,
            "attempts_count": attempts_count,
            "best_score": format_best_score(best_score),
        })

    return jsonify({
        "student": student.to_dict(),
        "details": details,
        "attempts": [a.to_dict() for a in attempts],
    }), 200

#__________________________________________________________________________________________ * Test sessions *__________________________________________________

# random question sample for a new test
@examiner_bp.route("/test-sessions", methods=["POST"])
@role_required("examiner")
def create_test_session():
    data = request.get_json(silent=True) or {}
    subject_id = parse_int(data.get("subject_id"))
    if subject_id is None:
        return jsonify({"error": "subject_id is required."}), 400

    questions = QuestionBank().sample_questions(subject_id)
    return jsonify({"questions": [q.to_dict() for q in questions]}), 200


# swap one question of a session for an unused one
@examiner_bp.route("/test-sessions/replace", methods=["POST"])
@role_required("examiner")
def replace_question():
    data = request.get_json(silent=True) or {}
    subject_id = parse_int(data.get("subject_id"))
    exclude_ids = _parse_id_list(data.get("exclude_ids"))
    if subject_id is None or exclude_ids is None:
        return jsonify({"error": "subject_id and exclude_ids are required."}), 400

    question = QuestionBank().sample_replacement(subject_id, exclude_ids)
    return jsonify(question.to_dict()), 200

#__________________________________________________________________________________________ * Tests *__________________________________________________

@examiner_bp.route("/tests", methods=["GET"])
@role_required("examiner")
def get_tests():
    tests = db.session.scalars(select(Test).order_by(Test.created_at.desc())).all()
    return jsonify([t.to_dict() for t in tests]), 200


@examiner_bp.route("/tests", methods=["POST"])
@role_required("examiner")
def create_test():
    data = request.get_json(silent=True) or {}
    name = clean_text(data.get("name"))
    subject_id = parse_int(data.get("subject_id"))
    question_ids = _parse_id_list(data.get("question_ids"))
    time_limit = data.get("time_limit_minutes")
    assigned_ids = _parse_id_list(data.get("assigned_student_ids", []))

    if not name or subject_id is None or not question_ids:
        return jsonify({"error": "Missing required fields: name, subject_id, question_ids."}), 400
    if assigned_ids is None:
        return jsonify({"error": "assigned_student_ids must be a list of ids."}), 400
    if len(set(question_ids)) != len(question_ids):
        return jsonify({"error": "question_ids must not contain duplicates."}), 400

    subject = db.session.get(Subject, subject_id)
    if not subject:
        return jsonify({"error": "Subject not found."}), 404
    if time_limit is None:
        time_limit = subject.default_time_limit_minutes
    try:
        validate_length("name", name, 255)
        validate_time_limit(time_limit)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    found = db.session.scalars(
        select(Question.id).where(Question.id.in_(question_ids), Question.subject_id == subject_id)
    ).all()
    if len(found) != len(question_ids):
        return jsonify({"error": "All questions must exist and belong to the test's subject."}), 400

    students = _students_by_id(assigned_ids)
    if students is None:
        return jsonify({"error": "Unknown student in assigned_student_ids."}), 400

    test = Test(
        name=name,
        description=clean_text(data.get("description")),
        subject_id=subject_id,
        question_ids=question_ids,
        time_limit_minutes=time_limit,
        created_by=g.user.get("user_id"),
        assigned_students=students,
    )
    db.session.add(test)
    db.session.commit()

    return jsonify({"message": "Test created successfully", "test_id": test.id}), 201


def _students_by_id(student_ids):
    if not student_ids:
        return []
    students = db.session.scalars(
        select(User).where(User.id.in_(student_ids), User.role == "student")
    ).all()
    if len(students) != len(set(student_ids)):
        return None
    return students


# replace the assignment list of a test
@examiner_bp.route("/tests/<int:test_id>/assign", methods=["PUT"])
@role_required("examiner")
def assign_test(test_id):
    data = request.get_json(silent=True) or {}
    student_ids = _parse_id_list(data.get("student_ids"))
    if student_ids is None:
        return jsonify({"error": "student_ids must be an array."}), 400

    test = db.session.get(Test, test_id)
    if not test:
        return jsonify({"error": "Test not found."}), 404

    students = _students_by_id(student_ids)
    if students is None:
        return jsonify({"error": "Unknown student in student_ids."}), 400

    test.assigned_students = students
    db.session.commit()
    return jsonify({"message": "Test assigned successfully.", "assigned_student_ids": test.assigned_student_ids}), 200

#__________________________________________________________________________________________ * Attempts *__________________________________________________

@examiner_bp.route("/attempts/<int:attempt_id>", methods=["GET"])
@role_required("examiner")
def get_attempt(attempt_id):
    attempt = AttemptManager.from_config(current_app.config).get_attempt(
        attempt_id, g.user.get("user_id"), "examiner"
    )
    return jsonify(attempt.to_result_dict()), 200
