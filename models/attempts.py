from models import db


class TestAttempt(db.Model):
    __tablename__ = "test_attempts"
    __test__ = False

    id = db.Column(db.Integer, primary_key=True)
    test_id = db.Column(db.Integer, db.ForeignKey("tests.id"), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    subject_id = db.Column(db.Integer, db.ForeignKey("subjects.id"), nullable=False)
    answers = db.Column(db.JSON, nullable=False, default=list)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    passed = db.Column(db.Boolean, nullable=False, default=False)
    submitted_at = db.Column(db.DateTime, nullable=True)
    submission_type = db.Column(db.String(10), nullable=True)  # 'manual', 'auto'
    abandoned_at = db.Column(db.DateTime, nullable=True)

    test = db.relationship("Test")
    student = db.relationship("User", back_populates="attempts")

    @property
    def status(self):
        if self.submitted_at is not None:
            return "submitted"
        if self.abandoned_at is not None:
            return "abandoned"
        return "open"

    def to_dict(self):
        return {
            "id": self.id,
            "test_id": self.test_id,
            "student_id": self.student_id,
            "subject_id": self.subject_id,
            "status": self.status,
            "score": self.score,
            "passed": self.passed,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "submission_type": self.submission_type,
        }

    def to_result_dict(self):
        """Detailed result, read from the answers snapshot taken at submission."""
        return {
            **self.to_dict(),
            "total": len(self.answers or []),
            "detailed_answers": list(self.answers or []),
        }
