import logging
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from sqlalchemy import func, select, update

from models import db
from models.attempts import TestAttempt
from models.subjects import Subject
from models.users import User
from classes.attempt_manager import AttemptManager
from utils.helpers import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ArchivalSummary:
    processed: int = 0
    archived: int = 0
    within_grace_period: int = 0
    aborted: bool = False
    reason: str = ""
    stale_attempts: int = 0

    def to_dict(self):
        return {
            "processed": self.processed,
            "archived": self.archived,
            "within_grace_period": self.within_grace_period,
            "aborted": self.aborted,
            "reason": self.reason,
            "stale_attempts": self.stale_attempts,
        }


class ArchivalPolicy:
    """
    Archives students who have passed every subject and have had no passed
    submission for longer than the grace period.
    """

    def __init__(self, session=None, clock=None):
        self.session = session or db.session
        self.clock = clock or utcnow

    def _last_passed(self, student_id, subject_ids):
        """(number of distinct passed subjects, latest passed submission)."""
        row = self.session.execute(
            select(
                func.count(func.distinct(TestAttempt.subject_id)),
                func.max(TestAttempt.submitted_at),
            ).where(
                TestAttempt.student_id == student_id,
                TestAttempt.passed.is_(True),
                TestAttempt.submitted_at.is_not(None),
                TestAttempt.subject_id.in_(subject_ids),
            )
        ).one()
        return row[0], row[1]

    def evaluate(self, grace_period_days):
        summary = ArchivalSummary()
        subject_ids = list(self.session.scalars(select(Subject.id)))
        if not subject_ids:
            summary.aborted = True
            summary.reason = "No subjects found. Cannot determine completion status."
            logger.warning("Archival aborted: %s", summary.reason)
            return summary

        cutoff = self.clock() - timedelta(days=grace_period_days)
        students = self.session.scalars(
            select(User).where(User.role == "student", User.archived.is_(False))
        ).all()
        logger.info("Archival run: %s active students, %s subjects, grace period %s days",
                    len(students), len(subject_ids), grace_period_days)

        to_archive = []
        for student in students:
            summary.processed += 1
            passed_count, last_passed = self._last_passed(student.id, subject_ids)
            if passed_count < len(subject_ids) or last_passed is None:
                continue
            if last_passed < cutoff:
                to_archive.append(student.id)
                logger.info("Archiving student %s (%s)", student.id, student.username)
            else:
                summary.within_grace_period += 1

        if to_archive:
            self.session.execute(
                update(User)
                .where(User.id.in_(to_archive), User.archived.is_(False))
                .values(archived=True)
                .execution_options(synchronize_session=False)
            )
        self.session.commit()
        summary.archived = len(to_archive)
        logger.info("Archival finished: archived %s students", summary.archived)
        return summary


def run_daily_archival():
    """Daily scheduler entry point: archive finished students, abandon stale attempts."""
    config = current_app.config
    summary = ArchivalPolicy().evaluate(config["GRACE_PERIOD_DAYS"])
    summary.stale_attempts = AttemptManager().sweep_stale_attempts(config["STALE_ATTEMPT_HOURS"])
    return summary
