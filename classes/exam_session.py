import time

from classes.option_scrambler import ScrambleMap


class ExamSession:
    """
    Client side of one test attempt.

    Built from the start payload. Each question's options are scrambled the
    first time they are shown and that order is kept for the rest of the
    attempt; selections are recorded by display index and translated back
    to canonical indices only when the submission payload is built.
    """

    def __init__(self, start_payload, rng=None, clock=None):
        self.clock = clock or time.monotonic
        self.attempt_id = start_payload["attempt_id"]
        self.test_name = start_payload.get("test_name")
        self.time_limit_minutes = start_payload["time_limit_minutes"]
        self.questions = list(start_payload.get("questions") or [])
        self.scrambler = ScrambleMap(rng)
        self.selections = [None] * len(self.questions)
        self.started = self.clock()
        self.submitted = False

    def display_options(self, position):
        question = self.questions[position]
        return self.scrambler.get(question["id"], question["options"]).display_order

    def select(self, position, display_index):
        if self.submitted:
            raise RuntimeError("This attempt has already been submitted.")
        if display_index is not None:
            if isinstance(display_index, bool) or not isinstance(display_index, int):
                raise ValueError(f"Display index must be an int, got {display_index!r}.")
            # renders the question if it has not been shown yet
            options = self.display_options(position)
            if not 0 <= display_index < len(options):
                raise ValueError(f"Display index {display_index} is out of range.")
        self.selections[position] = display_index

    def selected_display_index(self, position):
        return self.selections[position]

    @property
    def all_answered(self):
        return all(selection is not None for selection in self.selections)

    def remaining_seconds(self):
        elapsed = self.clock() - self.started
        return max(0, int(self.time_limit_minutes * 60 - elapsed))

    def is_expired(self):
        return self.remaining_seconds() <= 0

    def build_submission(self, submission_type=None):
        """Unscrambled submit payload. Defaults to an auto submission once time is up."""
        if submission_type is None:
            submission_type = "auto" if self.is_expired() else "manual"
        answers = []
        for question, selection in zip(self.questions, self.selections):
            answers.append({
                "question_id": question["id"],
                "selected_option_index": self.scrambler.unscramble(question["id"], selection),
            })
        self.submitted = True
        return {"answers": answers, "submission_type": submission_type}
