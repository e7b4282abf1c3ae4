import random

import pytest

from classes.exam_session import ExamSession


class Ticker:
    def __init__(self):
        self.value = 0.0

    def __call__(self):
        return self.value


def _payload(count=3, minutes=1):
    return {
        "attempt_id": 42,
        "test_name": "MET test",
        "time_limit_minutes": minutes,
        "questions": [
            {"id": i, "text": f"Q{i}", "options": [f"{i}-a", f"{i}-b", f"{i}-c", f"{i}-d"]}
            for i in range(1, count + 1)
        ],
    }


def test_display_order_is_stable_across_rerenders():
    session = ExamSession(_payload(), rng=random.Random(1))
    first = session.display_options(0)
    assert all(session.display_options(0) == first for _ in range(5))


def test_submission_contains_canonical_indices():
    session = ExamSession(_payload(), rng=random.Random(2))
    for position, question in enumerate(session.questions):
        # pick the canonical option "c" wherever it was displayed
        display = session.display_options(position)
        session.select(position, display.index(question["options"][2]))

    assert session.all_answered
    payload = session.build_submission()
    assert payload["submission_type"] == "manual"
    assert payload["answers"] == [
        {"question_id": 1, "selected_option_index": 2},
        {"question_id": 2, "selected_option_index": 2},
        {"question_id": 3, "selected_option_index": 2},
    ]


def test_unanswered_questions_are_submitted_as_none():
    session = ExamSession(_payload(count=2), rng=random.Random(3))
    session.select(0, 1)
    payload = session.build_submission()
    assert payload["answers"][1] == {"question_id": 2, "selected_option_index": None}
    assert not session.all_answered


def test_select_rejects_out_of_range_display_index():
    session = ExamSession(_payload())
    with pytest.raises(ValueError):
        session.select(0, 4)


def test_expired_session_submits_automatically():
    ticker = Ticker()
    session = ExamSession(_payload(minutes=1), clock=ticker)
    assert session.remaining_seconds() == 60

    ticker.value = 30
    assert not session.is_expired()
    ticker.value = 61
    assert session.remaining_seconds() == 0
    assert session.is_expired()
    assert session.build_submission()["submission_type"] == "auto"


def test_no_selection_after_submit():
    session = ExamSession(_payload())
    session.build_submission()
    with pytest.raises(RuntimeError):
        session.select(0, 0)


@pytest.mark.parametrize("display_index", [True, False, 1.0, "2"])
def test_select_rejects_non_int_display_index(display_index):
    session = ExamSession(_payload())
    with pytest.raises(ValueError):
        session.select(0, display_index)
    assert session.selected_display_index(0) is None
