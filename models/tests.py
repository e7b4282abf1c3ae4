from utils.helpers import utcnow
from models import db

test_assignments = db.Table(
    "test_assignments",
    db.Column("test_id", db.Integer, db.ForeignKey("tests.id"), primary_key=True),
    db.Column("student_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
)


class Test(db.Model):
    __tablename__ = "tests"
    __test__ = False

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    subject_id = db.Column(db.Integer, db.ForeignKey("subjects.id"), nullable=False)
    question_ids = db.Column(db.JSON, nullable=False, default=list)
    time_limit_minutes = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    subject = db.relationship("Subject")
    assigned_students = db.relationship("User", secondary=test_assignments, lazy="selectin")

    @property
    def assigned_student_ids(self):
        return [student.id for student in self.assigned_students]

    def __repr__(self):
        return f"<Test {self.name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "subject_id": self.subject_id,
            "question_ids": list(self.question_ids or []),
            "time_limit_minutes": self.time_limit_minutes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "created_by": self.created_by,
            "assigned_student_ids": self.assigned_student_ids,
        }
