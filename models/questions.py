from models import db


class Question(db.Model):
    __tablename__ = "questions"

    id = db.Column(db.Integer, primary_key=True)
    subject_id = db.Column(db.Integer, db.ForeignKey("subjects.id"), nullable=False, index=True)
    question_code = db.Column(db.String(50), nullable=True)
    text = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False)
    correct_option_index = db.Column(db.Integer, nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)
    image_id = db.Column(db.String(255), nullable=True)

    __table_args__ = (
        db.CheckConstraint("correct_option_index >= 0 AND correct_option_index <= 3",
                           name="ck_questions_correct_option_index"),
    )

    subject = db.relationship("Subject", back_populates="questions")

    def __repr__(self):
        return f"<Question {self.question_code or self.id} (Subject {self.subject_id})>"

    def to_public_dict(self):
        """Student-facing view. Never carries the correct option."""
        return {
            "id": self.id,
            "question_code": self.question_code,
            "text": self.text,
            "options": list(self.options or []),
            "image_id": self.image_id,
        }

    def snapshot(self):
        return {
            "question_text": self.text,
            "options": list(self.options or []),
            "correct_option_index": self.correct_option_index,
        }

    def to_dict(self):
        return {
            **self.to_public_dict(),
            "subject_id": self.subject_id,
            "correct_option_index": self.correct_option_index,
            "active": self.active,
        }
