"""Utility functions for sanitization and validation."""

import html
from typing import Optional

import bleach


def sanitize_text(text: Optional[str]) -> str:
    """Strip all HTML tags from user-authored text (titles, question text, answers).

    The API returns JSON, so the result is stored as plain text: ``&``, ``<``
    and ``>`` that are not part of a tag come back unchanged.
    """
    if not text:
        return ""
    return html.unescape(bleach.clean(text, tags=[], strip=True)).strip()


def validate_marks(marks: int, max_marks: int) -> bool:
    """Validate that marks awarded by a grader are within range.

    Args:
        marks: The marks awarded
        max_marks: Maximum allowed marks for the question

    Returns:
        True if valid

    Raises:
        ValueError: If marks are not an integer or fall outside [0, max_marks]
    """
    if isinstance(marks, bool) or not isinstance(marks, int):
        raise ValueError(f"Marks must be a whole number, got {marks!r}")
    if marks < 0 or marks > max_marks:
        raise ValueError(f"Marks {marks} out of range [0, {max_marks}]")

    return True
