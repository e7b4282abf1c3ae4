from datetime import datetime, timedelta

import pytest

from app import create_app
from models import db
from models.users import User
from models.subjects import Subject
from models.questions import Question
from models.tests import Test
from utils.tokens import get_jwt_token


class FakeClock:
    """Settable stand-in for utcnow."""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 5, 1, 9, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_user(app):
    def _make_user(username, role="student", password="secret", archived=False):
        user = User(username=username, role=role, archived=archived)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def make_subject(app):
    def _make_subject(code="MET", name="Meteorology", minutes=45):
        subject = Subject(code=code, name=name, default_time_limit_minutes=minutes)
        db.session.add(subject)
        db.session.commit()
        return subject
    return _make_subject


@pytest.fixture
def make_questions(app):
    """``count`` active questions; question i has correct option i % 4."""
    def _make_questions(subject, count=20, active=True):
        questions = []
        for i in range(count):
            question = Question(
                subject_id=subject.id,
                question_code=f"{subject.code}-{i + 1:03d}",
                text=f"{subject.name} question {i + 1}",
                options=[f"A{i}", f"B{i}", f"C{i}", f"D{i}"],
                correct_option_index=i % 4,
                active=active,
            )
            db.session.add(question)
            questions.append(question)
        db.session.commit()
        return questions
    return _make_questions


@pytest.fixture
def make_test(app):
    def _make_test(subject, questions, minutes=45, assigned=(), name=None):
        test = Test(
            name=name or f"{subject.code} test",
            subject_id=subject.id,
            question_ids=[q.id for q in questions],
            time_limit_minutes=minutes,
            assigned_students=list(assigned),
        )
        db.session.add(test)
        db.session.commit()
        return test
    return _make_test


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        token = get_jwt_token({"user_id": user.id, "username": user.username, "role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


def correct_answers(questions, wrong=0):
    """Canonical answers for ``questions``; the last ``wrong`` of them are answered incorrectly."""
    answers = []
    for position, question in enumerate(questions):
        selected = question.correct_option_index
        if position >= len(questions) - wrong:
            selected = (selected + 1) % 4
        answers.append({"question_id": question.id, "selected_option_index": selected})
    return answers
