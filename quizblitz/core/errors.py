"""
Error taxonomy
Every failure a service can report to a caller is one of these kinds.
The HTTP layer maps them to status codes in main.py.
"""
from typing import Optional


class QuizBlitzError(Exception):
    """Base exception for all domain errors"""

    code = "error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        payload = {
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.detail:
            payload["detail"] = self.detail
        return payload


class NotFoundError(QuizBlitzError):
    """Raised when a referenced quiz/session/player/question/user does not exist"""
    code = "not_found"
    status_code = 404


class ForbiddenError(QuizBlitzError):
    """Raised when the caller is not the session host or lacks the teacher role"""
    code = "forbidden"
    status_code = 403


class UnauthorizedError(QuizBlitzError):
    """Raised when no caller identity is present or credentials are wrong"""
    code = "unauthorized"
    status_code = 401


class InvalidStateError(QuizBlitzError):
    """Raised when an operation is attempted in the wrong lifecycle state"""
    code = "invalid_state"
    status_code = 409


class DuplicateAnswerError(InvalidStateError):
    """Raised when a player answers the same question twice"""
    code = "duplicate_answer"


class ValidationError(QuizBlitzError):
    """Raised when input is malformed or out of range"""
    code = "validation_error"
    status_code = 422


class UpstreamGenerationError(QuizBlitzError):
    """Raised when the AI question generator fails or returns unusable output"""
    code = "upstream_generation_error"
    status_code = 502
    retryable = True


class PersistenceError(QuizBlitzError):
    """Raised when the storage layer fails"""
    code = "internal_error"
    status_code = 500


class DuplicateGameCodeError(PersistenceError):
    """Raised by a store when a new session's join code is already taken"""
    code = "duplicate_game_code"
