from models import db
from werkzeug.security import generate_password_hash, check_password_hash


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), nullable=False, unique=True)
    email = db.Column(db.String(120), nullable=True, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(100), nullable=True)
    role = db.Column(db.String(20), nullable=False)  # 'student', 'examiner', 'admin'
    archived = db.Column(db.Boolean, nullable=False, default=False)
    force_password_change = db.Column(db.Boolean, nullable=False, default=False)
    date_created = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    attempts = db.relationship("TestAttempt", back_populates="student", cascade="all, delete-orphan")

    def set_password(self, password):
        """Hashes the password before storing."""
        self.password_hash = generate_password_hash(password, method="pbkdf2:sha256")

    def check_password(self, password):
        """Checks if a given password matches the stored hash."""
        return check_password_hash(self.password_hash, password)

    @property
    def status(self):
        return "archived" if self.archived else "active"

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "status": self.status,
            "force_password_change": self.force_password_change,
            "date_created": self.date_created.isoformat() if self.date_created else None,
        }
