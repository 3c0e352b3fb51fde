"""
Domain exceptions.

Services raise these; ``main.py`` turns them into JSON error responses.
"""

from typing import Dict, Optional


class QuizBuilderError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(QuizBuilderError):
    """A template, answer script or user id does not resolve."""

    status_code = 404


class NotAuthorizedError(QuizBuilderError):
    """The caller is neither the owning user nor an admin."""

    status_code = 403


class ValidationError(QuizBuilderError):
    """Malformed input: bad template, answers-length mismatch, bad grading target.

    Args:
        message: Summary of the problem
        errors: Optional mapping of field name to error message
    """

    status_code = 400

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class InvalidScoreFormat(ValidationError):
    """A manual score falls outside ``0..question.points``."""
