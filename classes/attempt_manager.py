import logging
from datetime import timedelta

from sqlalchemy import select, update

from models import db
from models.attempts import TestAttempt
from models.questions import Question
from models.tests import Test
from classes import grader
from classes.exceptions import (
    AlreadySubmitted, Forbidden, InvalidSubmission, NotFound, TimeLimitExceeded,
)
from utils.helpers import utcnow

logger = logging.getLogger(__name__)

SUBMISSION_TYPES = ("manual", "auto")


class AttemptManager:
    """
    Open -> Submitted lifecycle of a test attempt.

    An attempt is created open by ``start`` and closed exactly once by
    ``submit``. The close is a single conditional UPDATE on
    ``submitted_at IS NULL``, so concurrent submits of the same attempt
    produce one graded result and one ``AlreadySubmitted``.
    """

    def __init__(self, session=None, clock=None, enforce_time_limit=True, tolerance_seconds=60):
        self.session = session or db.session
        self.clock = clock or utcnow
        self.enforce_time_limit = enforce_time_limit
        self.tolerance = timedelta(seconds=tolerance_seconds)

    @classmethod
    def from_config(cls, config, **kwargs):
        return cls(
            enforce_time_limit=config.get("ENFORCE_TIME_LIMIT", True),
            tolerance_seconds=config.get("SUBMISSION_TOLERANCE_SECONDS", 60),
            **kwargs,
        )

    def _questions_for(self, test):
        ids = list(test.question_ids or [])
        if not ids:
            return []
        rows = self.session.scalars(select(Question).where(Question.id.in_(ids))).all()
        by_id = {q.id: q for q in rows}
        return [by_id[qid] for qid in ids if qid in by_id]

    def deadline(self, attempt, test):
        return attempt.start_time + timedelta(minutes=test.time_limit_minutes)

    def start(self, test_id, student_id):
        """Create an open attempt and return the student-safe start payload."""
        test = self.session.get(Test, test_id)
        if not test:
            raise NotFound("Test not found")

        questions = self._questions_for(test)
        attempt = TestAttempt(
            test_id=test.id,
            student_id=student_id,
            subject_id=test.subject_id,
            answers=[],
            start_time=self.clock(),
            score=0,
            passed=False,
        )
        self.session.add(attempt)
        self.session.commit()
        logger.info("Attempt %s started: test %s, student %s", attempt.id, test.id, student_id)

        return {
            "attempt_id": attempt.id,
            "test_name": test.name,
            "time_limit_minutes": test.time_limit_minutes,
            "started_at": attempt.start_time.isoformat(),
            "questions": [q.to_public_dict() for q in questions],
        }

    def submit(self, attempt_id, student_id, answers, submission_type="manual"):
        if submission_type not in SUBMISSION_TYPES:
            raise InvalidSubmission("submission_type must be 'manual' or 'auto'.")

        attempt = self.session.get(TestAttempt, attempt_id)
        if not attempt:
            raise NotFound("Test attempt not found.")
        if attempt.student_id != student_id:
            raise Forbidden("Forbidden: You cannot submit this test.")
        if attempt.submitted_at is not None:
            raise AlreadySubmitted()
        if attempt.abandoned_at is not None:
            raise TimeLimitExceeded("This test attempt was abandoned and can no longer be submitted.")

        test = self.session.get(Test, attempt.test_id)
        if not test:
            raise NotFound("Associated test not found.")

        now = self.clock()
        if self.enforce_time_limit and now > self.deadline(attempt, test) + self.tolerance:
            logger.warning("Attempt %s submitted after its deadline (%s)", attempt_id, submission_type)
            raise TimeLimitExceeded()

        result = grader.grade(self._questions_for(test), answers)

        stmt = (
            update(TestAttempt)
            .where(TestAttempt.id == attempt_id, TestAttempt.submitted_at.is_(None))
            .values(
                answers=result.graded_answers,
                score=result.score,
                passed=result.passed,
                end_time=now,
                submitted_at=now,
                submission_type=submission_type,
            )
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount != 1:
            self.session.rollback()
            logger.warning("Duplicate submission rejected for attempt %s", attempt_id)
            raise AlreadySubmitted()
        self.session.commit()

        logger.info("Attempt %s submitted (%s): %s/%s, passed=%s",
                    attempt_id, submission_type, result.score, result.total, result.passed)
        return result

    def get_attempt(self, attempt_id, user_id, role):
        """Owning student or any examiner/admin may read an attempt."""
        attempt = self.session.get(TestAttempt, attempt_id)
        if not attempt:
            raise NotFound("Test attempt not found.")
        if role == "student" and attempt.student_id != user_id:
            raise Forbidden("You do not have permission to view this attempt.")
        return attempt

    def sweep_stale_attempts(self, cutoff_hours):
        """Mark open attempts started more than ``cutoff_hours`` ago as abandoned."""
        now = self.clock()
        cutoff = now - timedelta(hours=cutoff_hours)
        stmt = (
            update(TestAttempt)
            .where(
                TestAttempt.submitted_at.is_(None),
                TestAttempt.abandoned_at.is_(None),
                TestAttempt.start_time < cutoff,
            )
            .values(abandoned_at=now)
            .execution_options(synchronize_session=False)
        )
        swept = self.session.execute(stmt).rowcount
        self.session.commit()
        if swept:
            logger.info("Marked %s stale open attempts as abandoned", swept)
        return swept
