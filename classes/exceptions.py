class ExamError(Exception):
    """Base error for the test-taking core. Carries the HTTP status it maps to."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message}


class NotFound(ExamError):
    status_code = 404
    default_message = "Not found"


class Forbidden(ExamError):
    status_code = 403
    default_message = "Forbidden"


class AlreadySubmitted(ExamError):
    default_message = "This test has already been submitted."


class InsufficientQuestions(ExamError):
    default_message = "Not enough active questions for this subject."


class NoReplacementAvailable(ExamError):
    default_message = "No more unique questions available for this subject."


class InvalidSubmission(ExamError):
    default_message = "Invalid submission."


class TimeLimitExceeded(ExamError):
    default_message = "The time limit for this test has expired."
