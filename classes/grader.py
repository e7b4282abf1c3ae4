"""
Grading of submitted answers.

Answers arrive with canonical option indices (the client has already
translated them back from display order). Correctness is always derived
here; any ``is_correct`` sent by a client is ignored.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from utils.helpers import parse_int

# 15 correct answers out of a 20 question test.
PASS_THRESHOLD = 15
TEST_LENGTH = 20


def pass_mark(total_questions: int) -> int:
    """Minimum score to pass a test of the given length (75%, rounded up)."""
    if total_questions <= 0:
        return 1
    return -(-total_questions * PASS_THRESHOLD // TEST_LENGTH)


def is_passed(score: int, total_questions: int) -> bool:
    return total_questions > 0 and score >= pass_mark(total_questions)


@dataclass
class GradeResult:
    graded_answers: List[Dict[str, Any]] = field(default_factory=list)
    score: int = 0
    total: int = 0
    passed: bool = False

    def to_dict(self):
        return {"score": self.score, "total": self.total, "passed": self.passed}


def _selected_index(raw: Any) -> Optional[int]:
    index = parse_int(raw)
    if index is None or index < 0:
        return None
    return index


def grade(questions, answers) -> GradeResult:
    """
    Grade ``answers`` (``[{question_id, selected_option_index}]``) against
    ``questions`` (objects with ``id``, ``correct_option_index`` and
    ``snapshot()``).

    Never raises for a malformed payload: entries that are not dicts are
    skipped, unknown question ids are graded incorrect, only the first
    answer per question counts, and questions without an answer are
    recorded as unanswered.
    """
    by_id = {question.id: question for question in questions}
    if not isinstance(answers, list):
        answers = []

    graded: List[Dict[str, Any]] = []
    seen = set()
    score = 0

    for answer in answers:
        if not isinstance(answer, dict):
            continue
        question_id = parse_int(answer.get("question_id"))
        if question_id is not None and question_id in seen:
            continue
        selected = _selected_index(answer.get("selected_option_index"))
        question = by_id.get(question_id)

        entry = {"question_id": question_id, "selected_option_index": selected, "is_correct": False}
        if question is not None:
            seen.add(question_id)
            entry["is_correct"] = selected is not None and selected == question.correct_option_index
            entry.update(question.snapshot())
        if entry["is_correct"]:
            score += 1
        graded.append(entry)

    for question in questions:
        if question.id not in seen:
            graded.append({
                "question_id": question.id,
                "selected_option_index": None,
                "is_correct": False,
                **question.snapshot(),
            })

    total = len(questions)
    return GradeResult(graded_answers=graded, score=score, total=total, passed=is_passed(score, total))
