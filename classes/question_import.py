import csv
import logging

from sqlalchemy import select

from models import db
from models.questions import Question
from models.subjects import Subject
from utils.helpers import clean_text

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("code", "qid", "question", "option_1", "option_2", "option_3", "option_4", "correct_option")


class QuestionImport:
    """
    Parses a question CSV and sorts its rows into new, duplicate and invalid.

    A row is a duplicate when its subject already has a question with the
    same ``qid`` (or an earlier row of the same file does).
    """

    def __init__(self, csv_text, session=None):
        self.session = session or db.session
        self.new_questions = []
        self.duplicates = 0
        self.invalid = []
        self._analyze(csv_text.splitlines())

    def _analyze(self, lines):
        reader = csv.DictReader(lines)
        missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"Missing CSV columns: {', '.join(missing)}")

        subjects = {s.code: s.id for s in self.session.scalars(select(Subject))}
        seen = {
            (subject_id, code)
            for subject_id, code in self.session.execute(select(Question.subject_id, Question.question_code))
        }

        # header is line 1
        for line_number, row in enumerate(reader, start=2):
            try:
                question = self._parse_row(row, subjects)
            except ValueError as e:
                self.invalid.append({"line": line_number, "error": str(e)})
                continue

            key = (question["subject_id"], question["question_code"])
            if key in seen:
                self.duplicates += 1
                continue
            seen.add(key)
            self.new_questions.append(question)

    @staticmethod
    def _parse_row(row, subjects):
        values = {column: clean_text(row.get(column)) for column in REQUIRED_COLUMNS}
        empty = [column for column, value in values.items() if not value]
        if empty:
            raise ValueError(f"Empty fields: {', '.join(empty)}")

        subject_id = subjects.get(values["code"])
        if subject_id is None:
            raise ValueError(f"Unknown subject code '{values['code']}'")

        correct = values["correct_option"]
        if correct not in ("1", "2", "3", "4"):
            raise ValueError("correct_option must be a number from 1 to 4")

        return {
            "subject_id": subject_id,
            "question_code": values["qid"],
            "text": values["question"],
            "options": [values[f"option_{i}"] for i in range(1, 5)],
            "correct_option_index": int(correct) - 1,
            "active": clean_text(row.get("active")).lower() != "false",
            "image_id": clean_text(row.get("image")) or None,
        }

    def summary(self):
        return {
            "new_count": len(self.new_questions),
            "duplicates_count": self.duplicates,
            "invalid_count": len(self.invalid),
            "invalid_rows": self.invalid,
            "new_questions": self.new_questions,
        }

    def execute(self):
        """Insert the new rows. Returns the number inserted."""
        for data in self.new_questions:
            self.session.add(Question(**data))
        self.session.commit()
        logger.info("Imported %s questions (%s duplicates, %s invalid rows skipped)",
                    len(self.new_questions), self.duplicates, len(self.invalid))
        return len(self.new_questions)
