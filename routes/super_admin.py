import logging
from flask import Blueprint, request, jsonify, g
from sqlalchemy import select, update, delete

from models import db
from models.users import User
from models.subjects import Subject
from models.questions import Question
from models.tests import Test, test_assignments
from models.attempts import TestAttempt
from classes.question_import import QuestionImport
from classes.validators import validate_length, validate_time_limit, validate_correct_option
from utils.helpers import clean_text, next_question_code, parse_int, validate_options
from utils.utils import role_required

admin_bp = Blueprint('admin', __name__)
logger = logging.getLogger(__name__)


def temporary_password(username):
    return f"{username}123"


def _get_user(user_id, role):
    user = db.session.get(User, user_id)
    if not user or user.role != role:
        return None
    return user


def _delete_user(user):
    db.session.execute(delete(test_assignments).where(test_assignments.c.student_id == user.id))
    db.session.execute(update(Test).where(Test.created_by == user.id).values(created_by=None))
    db.session.delete(user)
    db.session.commit()


def _create_user(data, role):
    username = clean_text(data.get("username"))
    if not username:
        return None, (jsonify({"error": "Username is required"}), 400)
    try:
        validate_length("username", username, 100)
    except ValueError as e:
        return None, (jsonify({"error": str(e)}), 400)

    email = clean_text(data.get("email")) or None
    existing = db.session.scalar(
        select(User).where((User.username == username) | ((User.email == email) & (User.email.is_not(None))))
    )
    if existing:
        return None, (jsonify({"error": "Username or email already exists"}), 409)

    user = User(
        username=username,
        email=email,
        full_name=clean_text(data.get("full_name")) or None,
        role=role,
    )
    return user, None

#__________________________________________________________________________________________ * Subjects *__________________________________________________

@admin_bp.route('/subjects', methods=['GET'])
@role_required("admin")
def get_subjects():
    subjects = db.session.scalars(select(Subject).order_by(Subject.name)).all()
    return jsonify([subject.to_dict() for subject in subjects]), 200


@admin_bp.route('/subjects', methods=['POST'])
@role_required("admin")
def add_subject():
    data = request.get_json(silent=True) or {}
    name = clean_text(data.get('name'))
    code = clean_text(data.get('code')).upper()
    time_limit = data.get('default_time_limit_minutes', 45)

    if not name or not code:
        return jsonify({"error": "Name and code are required"}), 400
    try:
        validate_length("code", code, 20)
        validate_time_limit(time_limit)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if db.session.scalar(select(Subject).filter_by(code=code)):
        return jsonify({"error": "A subject with this code already exists."}), 409

    subject = Subject(
        name=name,
        code=code,
        description=clean_text(data.get('description')) or None,
        default_time_limit_minutes=time_limit,
    )
    db.session.add(subject)
    db.session.commit()

    return jsonify({"message": "Subject created successfully", "subject": subject.to_dict()}), 201


# removes the subject with its questions, tests and attempts
@admin_bp.route('/subjects/<int:subject_id>', methods=['DELETE'])
@role_required("admin")
def delete_subject(subject_id):
    subject = db.session.get(Subject, subject_id)
    if not subject:
        return jsonify({"error": "Subject not found"}), 404

    db.session.execute(delete(TestAttempt).where(TestAttempt.subject_id == subject_id))
    for test in db.session.scalars(select(Test).filter_by(subject_id=subject_id)).all():
        db.session.delete(test)
    db.session.delete(subject)
    db.session.commit()
    logger.info("Subject %s deleted by admin %s", subject.code, g.user.get("user_id"))

    return jsonify({"message": "Subject deleted successfully"}), 200

#__________________________________________________________________________________________ * Questions *__________________________________________________

@admin_bp.route('/questions', methods=['GET'])
@role_required("admin")
def get_questions():
    stmt = select(Question).order_by(Question.subject_id, Question.question_code)
    subject_id = parse_int(request.args.get('subject_id'))
    if subject_id is not None:
        stmt = stmt.filter_by(subject_id=subject_id)
    return jsonify([q.to_dict() for q in db.session.scalars(stmt).all()]), 200


@admin_bp.route('/questions/next-id', methods=['GET'])
@role_required("admin")
def get_next_question_id():
    subject_id = parse_int(request.args.get('subject_id'))
    if subject_id is None:
        return jsonify({"error": "subject_id is required"}), 400
    codes = db.session.scalars(select(Question.question_code).filter_by(subject_id=subject_id)).all()
    return jsonify({"next_id": next_question_code(codes)}), 200


def _question_fields(data, partial=False):
    """Validated column values from a question payload."""
    fields = {}
    if not partial or "text" in data:
        text = clean_text(data.get("text"))
        if not text:
            raise ValueError("Question text is required.")
        fields["text"] = text
    if not partial or "options" in data:
        fields["options"] = validate_options(data.get("options"))
    if not partial or "correct_option_index" in data:
        validate_correct_option(data.get("correct_option_index"))
        fields["correct_option_index"] = data["correct_option_index"]
    if "question_code" in data:
        fields["question_code"] = clean_text(data.get("question_code")) or None
    if "active" in data:
        fields["active"] = bool(data.get("active"))
    return fields


@admin_bp.route('/questions', methods=['POST'])
@role_required("admin")
def add_question():
    data = request.get_json(silent=True) or {}
    subject_id = parse_int(data.get("subject_id"))
    if subject_id is None or not db.session.get(Subject, subject_id):
        return jsonify({"error": "A valid subject_id is required"}), 400
    try:
        fields = _question_fields(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    question = Question(subject_id=subject_id, **fields)
    db.session.add(question)
    db.session.commit()

    return jsonify(question.to_dict()), 201


@admin_bp.route('/questions/<int:question_id>', methods=['PUT'])
@role_required("admin")
def update_question(question_id):
    question = db.session.get(Question, question_id)
    if not question:
        return jsonify({"error": "Question not found"}), 404

    data = request.get_json(silent=True) or {}
    try:
        fields = _question_fields(data, partial=True)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    for key, value in fields.items():
        setattr(question, key, value)
    db.session.commit()

    return jsonify(question.to_dict()), 200


@admin_bp.route('/questions/<int:question_id>/toggle', methods=['PATCH'])
@role_required("admin")
def toggle_question(question_id):
    question = db.session.get(Question, question_id)
    if not question:
        return jsonify({"error": "Question not found"}), 404

    question.active = not question.active
    db.session.commit()
    return jsonify({"id": question.id, "active": question.active}), 200


@admin_bp.route('/questions/<int:question_id>', methods=['DELETE'])
@role_required("admin")
def delete_question(question_id):
    question = db.session.get(Question, question_id)
    if not question:
        return jsonify({"error": "Question not found"}), 404

    db.session.delete(question)
    db.session.commit()
    return jsonify({"message": "Question deleted successfully"}), 200

#__________________________________________________________________________________________ * Students *__________________________________________________

@admin_bp.route('/students', methods=['GET'])
@role_required("admin")
def get_students():
    stmt = select(User).filter_by(role="student").order_by(User.username)
    status = request.args.get("status")
    if status == "active":
        stmt = stmt.filter_by(archived=False)
    elif status == "archived":
        stmt = stmt.filter_by(archived=True)
    elif status:
        return jsonify({"error": "status must be 'active' or 'archived'"}), 400

    return jsonify([student.to_dict() for student in db.session.scalars(stmt).all()]), 200


@admin_bp.route('/students', methods=['POST'])
@role_required("admin")
def add_student():
    student, error = _create_user(request.get_json(silent=True) or {}, "student")
    if error:
        return error

    password = temporary_password(student.username)
    student.set_password(password)
    student.force_password_change = True
    db.session.add(student)
    db.session.commit()

    return jsonify({
        "message": "Student created successfully!",
        "student": student.to_dict(),
        "temporary_password": password,
    }), 201


def _set_archived(student_id, archived):
    student = _get_user(student_id, "student")
    if not student:
        return jsonify({"error": "Student not found"}), 404
    student.archived = archived
    db.session.commit()
    return jsonify(student.to_dict()), 200


@admin_bp.route('/students/<int:student_id>/archive', methods=['POST'])
@role_required("admin")
def archive_student(student_id):
    return _set_archived(student_id, True)


@admin_bp.route('/students/<int:student_id>/reactivate', methods=['POST'])
@role_required("admin")
def reactivate_student(student_id):
    return _set_archived(student_id, False)


@admin_bp.route('/students/<int:student_id>/reset-password', methods=['POST'])
@role_required("admin")
def reset_student_password(student_id):
    student = _get_user(student_id, "student")
    if not student:
        return jsonify({"error": "Student not found"}), 404

    password = temporary_password(student.username)
    student.set_password(password)
    student.force_password_change = True
    db.session.commit()

    return jsonify({"message": "Password reset successfully", "temporary_password": password}), 200


@admin_bp.route('/students/<int:student_id>', methods=['DELETE'])
@role_required("admin")
def delete_student(student_id):
    student = _get_user(student_id, "student")
    if not student:
        return jsonify({"error": "Student not found"}), 404

    _delete_user(student)
    return jsonify({"message": "Student deleted successfully"}), 200

#__________________________________________________________________________________________ * Examiners *__________________________________________________

@admin_bp.route('/examiners', methods=['GET'])
@role_required("admin")
def get_examiners():
    examiners = db.session.scalars(select(User).filter_by(role="examiner").order_by(User.username)).all()
    return jsonify([examiner.to_dict() for examiner in examiners]), 200


@admin_bp.route('/examiners', methods=['POST'])
@role_required("admin")
def add_examiner():
    data = request.get_json(silent=True) or {}
    password = data.get("password")
    if not password:
        return jsonify({"error": "Password is required"}), 400

    examiner, error = _create_user(data, "examiner")
    if error:
        return error

    examiner.set_password(password)
    db.session.add(examiner)
    db.session.commit()

    return jsonify({"message": "Examiner created successfully!", "examiner": examiner.to_dict()}), 201


@admin_bp.route('/examiners/<int:examiner_id>', methods=['DELETE'])
@role_required("admin")
def delete_examiner(examiner_id):
    examiner = _get_user(examiner_id, "examiner")
    if not examiner:
        return jsonify({"error": "Examiner not found"}), 404

    _delete_user(examiner)
    return jsonify({"message": "Examiner deleted successfully"}), 200

#__________________________________________________________________________________________ * CSV import *__________________________________________________

def _uploaded_csv():
    if request.mimetype == "multipart/form-data":
        file = request.files.get("file")
        raw = file.read() if file else b""
    else:
        raw = request.get_data()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValueError("CSV must be UTF-8 encoded") from None


def _question_import():
    """(QuestionImport, None) or (None, error response) for the uploaded CSV."""
    try:
        content = _uploaded_csv()
        if not content.strip():
            return None, (jsonify({"error": "CSV content is empty"}), 400)
        return QuestionImport(content), None
    except ValueError as e:
        return None, (jsonify({"error": str(e)}), 400)


@admin_bp.route('/import/analyze', methods=['POST'])
@role_required("admin")
def analyze_import():
    question_import, error = _question_import()
    if error:
        return error
    return jsonify(question_import.summary()), 200


@admin_bp.route('/import/execute', methods=['POST'])
@role_required("admin")
def execute_import():
    question_import, error = _question_import()
    if error:
        return error

    inserted = question_import.execute()
    return jsonify({
        "inserted_count": inserted,
        "duplicates_count": question_import.duplicates,
        "invalid_count": len(question_import.invalid),
    }), 201
