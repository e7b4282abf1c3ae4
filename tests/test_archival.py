from datetime import timedelta

import pytest

from models import db
from models.attempts import TestAttempt
from models.users import User
from classes.archival import ArchivalPolicy, run_daily_archival
from utils.helpers import utcnow


@pytest.fixture
def subjects(make_subject, make_questions, make_test):
    tests = []
    for code, name in (("LAW", "Air Law"), ("MET", "Meteorology")):
        subject = make_subject(code, name)
        tests.append(make_test(subject, make_questions(subject, 1)))
    return tests


def _attempt(student, test, submitted_at, passed=True):
    attempt = TestAttempt(
        test_id=test.id,
        student_id=student.id,
        subject_id=test.subject_id,
        answers=[],
        start_time=submitted_at - timedelta(minutes=30),
        end_time=submitted_at,
        submitted_at=submitted_at,
        submission_type="manual",
        score=20 if passed else 3,
        passed=passed,
    )
    db.session.add(attempt)
    db.session.commit()
    return attempt


def _archived(user):
    db.session.expire_all()
    return db.session.get(User, user.id).archived


def test_student_past_grace_period_is_archived(subjects, make_user, clock):
    student = make_user("done")
    _attempt(student, subjects[0], clock.now - timedelta(days=60))
    _attempt(student, subjects[1], clock.now - timedelta(days=31))

    summary = ArchivalPolicy(clock=clock).evaluate(30)

    assert summary.archived == 1
    assert summary.processed == 1
    assert _archived(student)


def test_latest_passed_submission_decides(subjects, make_user, clock):
    student = make_user("recent")
    _attempt(student, subjects[0], clock.now - timedelta(days=90))
    _attempt(student, subjects[1], clock.now - timedelta(days=29))

    summary = ArchivalPolicy(clock=clock).evaluate(30)

    assert summary.archived == 0
    assert summary.within_grace_period == 1
    assert not _archived(student)


def test_grace_period_boundary_is_not_archived(subjects, make_user, clock):
    student = make_user("boundary")
    _attempt(student, subjects[0], clock.now - timedelta(days=30))
    _attempt(student, subjects[1], clock.now - timedelta(days=30))

    assert ArchivalPolicy(clock=clock).evaluate(30).archived == 0
    assert not _archived(student)


def test_student_missing_a_subject_is_untouched(subjects, make_user, clock):
    student = make_user("partial")
    _attempt(student, subjects[0], clock.now - timedelta(days=100))
    _attempt(student, subjects[1], clock.now - timedelta(days=100), passed=False)

    assert ArchivalPolicy(clock=clock).evaluate(30).archived == 0
    assert not _archived(student)


def test_examiners_and_archived_students_are_skipped(subjects, make_user, clock):
    make_user("examiner1", role="examiner")
    make_user("gone", archived=True)

    summary = ArchivalPolicy(clock=clock).evaluate(30)
    assert summary.processed == 0


def test_no_subjects_aborts(make_user, clock):
    make_user("student1")

    summary = ArchivalPolicy(clock=clock).evaluate(30)

    assert summary.aborted is True
    assert summary.archived == 0
    assert "No subjects" in summary.reason


def test_daily_entry_point_archives_and_sweeps(subjects, make_user):
    now = utcnow()
    student = make_user("veteran")
    _attempt(student, subjects[0], now - timedelta(days=45))
    _attempt(student, subjects[1], now - timedelta(days=40))

    other = make_user("leftover")
    db.session.add(TestAttempt(
        test_id=subjects[0].id,
        student_id=other.id,
        subject_id=subjects[0].subject_id,
        answers=[],
        start_time=now - timedelta(days=2),
        score=0,
        passed=False,
    ))
    db.session.commit()

    summary = run_daily_archival()

    assert summary.archived == 1
    assert summary.stale_attempts == 1
    assert _archived(student)
    assert not _archived(other)
