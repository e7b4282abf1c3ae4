from flask import Blueprint, jsonify, g, request, current_app
from sqlalchemy import select

from models import db
from models.subjects import Subject
from models.tests import Test
from models.attempts import TestAttempt
from classes.attempt_manager import AttemptManager
from classes.grader import TEST_LENGTH
from utils.helpers import parse_int
from utils.utils import role_required

# Students' blueprint
student_bp = Blueprint("student", __name__)

# Always open, even before any attempt or assignment.
ENTRY_SUBJECT_CODE = "LAW"


def _attempt_manager():
    return AttemptManager.from_config(current_app.config)


def subject_progress(subject, attempts):
    """(attempt count, has passed, best score) for one subject's attempts."""
    subject_attempts = [a for a in attempts if a.subject_id == subject.id]
    scored = [a.score for a in subject_attempts if a.submitted_at is not None]
    return len(subject_attempts), any(a.passed for a in subject_attempts), (max(scored) if scored else None)


def format_best_score(best_score, total=TEST_LENGTH):
    return f"{best_score}/{total}" if best_score is not None else None


#Student dashboard
@student_bp.route("/dashboard", methods=["GET"])
@role_required("student")
def get_dashboard():
    student_id = g.user.get("user_id")

    subjects = db.session.scalars(select(Subject).order_by(Subject.name)).all()
    attempts = db.session.scalars(select(TestAttempt).filter_by(student_id=student_id)).all()
    assigned_subjects = {
        t.subject_id for t in db.session.scalars(select(Test)).all()
        if student_id in t.assigned_student_ids
    }

    dashboard = []
    for subject in subjects:
        attempts_count, has_passed, best_score = subject_progress(subject, attempts)

        status = "locked"
        if has_passed:
            status = "passed"
        elif attempts_count > 0 or subject.id in assigned_subjects or subject.code == ENTRY_SUBJECT_CODE:
            status = "available"

        dashboard.append({
            "subject_id": subject.id,
            "subject": subject.name,
            "code": subject.code,
            "status": status,
            "attempts": attempts_count,
            "best_score": format_best_score(best_score),
        })

    return jsonify(dashboard), 200


#Available tests
@student_bp.route("/tests", methods=["GET"])
@role_required("student")
def get_available_tests():
    student_id = g.user.get("user_id")
    tests = db.session.scalars(select(Test).order_by(Test.created_at.desc())).all()

    return jsonify([{
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "subject_id": t.subject_id,
        "time_limit_minutes": t.time_limit_minutes,
        "assigned": student_id in t.assigned_student_ids,
    } for t in tests]), 200


# Start a test attempt
@student_bp.route("/tests/<int:test_id>/start", methods=["POST"])
@role_required("student")
def start_test(test_id):
    payload = _attempt_manager().start(test_id, g.user.get("user_id"))
    return jsonify(payload), 201


# Submit a test attempt
@student_bp.route("/attempts/<int:attempt_id>/submit", methods=["POST"])
@role_required("student")
def submit_test(attempt_id):
    data = request.get_json(silent=True) or {}
    answers = data.get("answers")
    if not isinstance(answers, list):
        return jsonify({"error": "'answers' must be a list"}), 400

    result = _attempt_manager().submit(
        attempt_id,
        g.user.get("user_id"),
        answers,
        data.get("submission_type", "manual"),
    )
    return jsonify({
        "message": "Test submitted successfully",
        "attempt_id": attempt_id,
        **result.to_dict(),
    }), 200


#Get attempt results
@student_bp.route("/attempts/<int:attempt_id>", methods=["GET"])
@role_required("student")
def get_attempt_result(attempt_id):
    attempt = _attempt_manager().get_attempt(attempt_id, g.user.get("user_id"), "student")
    return jsonify(attempt.to_result_dict()), 200


#Own attempt history
@student_bp.route("/attempts", methods=["GET"])
@role_required("student")
def get_attempt_history():
    subject_id = parse_int(request.args.get("subject_id"))
    stmt = select(TestAttempt).filter_by(student_id=g.user.get("user_id"))
    if subject_id is not None:
        stmt = stmt.filter_by(subject_id=subject_id)
    attempts = db.session.scalars(stmt.order_by(TestAttempt.start_time.desc())).all()
    return jsonify([a.to_dict() for a in attempts]), 200
