# exam_engine/errors.py
"""Error taxonomy for the exam engine.

Precondition errors mean the caller must reload or restart the session.
Validation errors are recoverable by the test-taker. Submission errors
come from the external grading endpoint and leave the local session intact.
"""


class ExamEngineError(Exception):
    """Base class for every error raised by the engine."""


# --- Precondition violations ---
class PreconditionError(ExamEngineError):
    pass


class SessionNotFoundError(PreconditionError):
    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' not found")
        self.session_id = session_id


class SessionAlreadyCompletedError(PreconditionError):
    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' is already completed")
        self.session_id = session_id


class SessionNotCompletedError(PreconditionError):
    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' has not been completed yet")
        self.session_id = session_id


class InvalidSessionStateError(PreconditionError):
    def __init__(self, session_id: str, status: str, operation: str):
        super().__init__(f"Cannot {operation} session '{session_id}' while it is {status}")
        self.session_id = session_id
        self.status = status
        self.operation = operation


class ActiveSessionExistsError(PreconditionError):
    def __init__(self, test_taker_id: str, session_id: str):
        super().__init__(f"Test-taker '{test_taker_id}' already has an active session '{session_id}'")
        self.test_taker_id = test_taker_id
        self.session_id = session_id


# --- Validation errors ---
class ExamValidationError(ExamEngineError):
    pass


class EmptyExamError(ExamValidationError):
    def __init__(self):
        super().__init__("An exam session needs at least one question")


class NoAnswersError(ExamValidationError):
    def __init__(self):
        super().__init__("Please answer at least one question before submitting")


class InvalidResponseError(ExamValidationError):
    pass


# --- External submission ---
class SubmissionError(ExamEngineError):
    pass


class SubmissionInProgressError(SubmissionError):
    def __init__(self):
        super().__init__("A submission is already in flight")


class SubmissionFailedError(SubmissionError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
