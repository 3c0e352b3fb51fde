"""SQLModel tables for the Quiz & Questionnaire Builder.

Questions, submitted answers and manual scores are embedded documents kept in
JSON columns; they are only ever read and written together with their parent row.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return uuid.uuid4().hex


class User(SQLModel, table=True):
    """Application user. Owns templates; ``admin`` users may manage everything."""

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
        UniqueConstraint("username", name="uq_user_username"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str
    email: str
    password_hash: str
    role: str = Field(default="user")  # "user", "admin"
    is_blocked: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Template(SQLModel, table=True):
    """A quiz, test or questionnaire definition.

    The id doubles as the share token for the public link, hence a random
    hex string rather than a sequence.
    """

    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str
    description: Optional[str] = None
    kind: str = Field(default="quiz")  # quiz | test | questionnaire
    duration_minutes: Optional[int] = None  # only set for kind == "test"
    questions: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    owner_id: int = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class AnswerScript(SQLModel, table=True):
    """One respondent's submission against a template.

    ``template_id`` is a plain column, not a foreign key: templates can be
    edited or deleted after submissions exist, so the title, questions and
    owner are copied onto the script at submit time.
    """

    id: str = Field(default_factory=_new_id, primary_key=True)
    template_id: str = Field(index=True)
    template_title: str
    owner_id: int = Field(index=True)
    questions_snapshot: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    respondent_name: str
    respondent_external_id: str

    # One entry per question index: the tagged answer plus is_auto_correct
    answers: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # "correct/total" over auto-gradable questions only
    auto_score: str
    # Question index (as str, JSON keys) -> grader-assigned points
    manual_scores: Dict[str, int] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Stored aggregate, rewritten on every grading update
    score: str = Field(default="pending")  # "final/total" in points, or "pending"
    final_points: Optional[int] = None
    total_possible_points: int = Field(default=0)
    percentage: Optional[int] = None
    grading_state: str = Field(default="submitted")  # submitted | partially_graded | fully_graded

    is_preview: bool = Field(default=False)
    reason: str = Field(default="submitted")  # submitted | timed_out
    submitted_at: datetime = Field(default_factory=datetime.utcnow)
    graded_at: Optional[datetime] = None
