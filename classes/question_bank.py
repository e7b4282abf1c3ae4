import logging
import random

from sqlalchemy import select

from models import db
from models.questions import Question
from classes.exceptions import InsufficientQuestions, NoReplacementAvailable
from classes.grader import TEST_LENGTH

logger = logging.getLogger(__name__)


class QuestionBank:
    """Read-only random sampling of active questions for a subject."""

    def __init__(self, session=None, rng=None):
        self.session = session or db.session
        self.rng = rng or random.SystemRandom()

    def _active_ids(self, subject_id, exclude_ids=()):
        stmt = select(Question.id).where(Question.subject_id == subject_id, Question.active.is_(True))
        excluded = set(exclude_ids)
        return [qid for qid in self.session.scalars(stmt) if qid not in excluded]

    def _load(self, ids):
        if not ids:
            return []
        rows = self.session.scalars(select(Question).where(Question.id.in_(ids))).all()
        by_id = {q.id: q for q in rows}
        return [by_id[qid] for qid in ids if qid in by_id]

    def sample_questions(self, subject_id, count=TEST_LENGTH):
        """``count`` distinct active questions, uniformly at random."""
        ids = self._active_ids(subject_id)
        if len(ids) < count:
            raise InsufficientQuestions(
                f"Not enough active questions for subject {subject_id}. "
                f"Found only {len(ids)}, need {count}."
            )
        return self._load(self.rng.sample(ids, count))

    def sample_replacement(self, subject_id, exclude_ids):
        """One random active question whose id is not in ``exclude_ids``."""
        ids = self._active_ids(subject_id, exclude_ids)
        if not ids:
            raise NoReplacementAvailable()
        return self._load([self.rng.choice(ids)])[0]
