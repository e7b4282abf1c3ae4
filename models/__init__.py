from flask_sqlalchemy import SQLAlchemy

# Initialize SQLAlchemy
db = SQLAlchemy()

# Import models
from models.users import User
from models.subjects import Subject
from models.questions import Question
from models.tests import Test, test_assignments
from models.attempts import TestAttempt
