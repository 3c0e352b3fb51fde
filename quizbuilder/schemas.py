"""Request/response schemas and the embedded question/answer documents."""

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class TemplateKind(str, Enum):
    QUIZ = "quiz"
    TEST = "test"  # the only kind with a time limit
    QUESTIONNAIRE = "questionnaire"


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    FREE_TEXT = "free_text"


AUTO_GRADABLE_TYPES = frozenset({QuestionType.SINGLE_CHOICE, QuestionType.MULTI_CHOICE})


class Question(BaseModel):
    """One question embedded in a template, addressed by its position."""

    text: str = ""
    image_ref: Optional[str] = None
    type: QuestionType = QuestionType.SINGLE_CHOICE
    options: List[str] = Field(default_factory=list)
    correct_option_index: Optional[int] = None
    correct_option_indexes: List[int] = Field(default_factory=list)
    points: int = 1

    @property
    def is_auto_gradable(self) -> bool:
        return self.type in AUTO_GRADABLE_TYPES


# --- Submitted answers: one variant per question type ---


class SingleChoiceAnswer(BaseModel):
    type: Literal["single_choice"] = "single_choice"
    choice: Optional[int] = None


class MultiChoiceAnswer(BaseModel):
    type: Literal["multi_choice"] = "multi_choice"
    choices: List[int] = Field(default_factory=list)


class FreeTextAnswer(BaseModel):
    type: Literal["free_text"] = "free_text"
    text: Optional[str] = Field(default=None, max_length=50000)


SubmittedAnswer = Annotated[
    Union[SingleChoiceAnswer, MultiChoiceAnswer, FreeTextAnswer],
    Field(discriminator="type"),
]

submitted_answer_adapter = TypeAdapter(SubmittedAnswer)


# --- Templates ---


class TemplateDraft(BaseModel):
    title: str = ""
    description: Optional[str] = None
    kind: TemplateKind = TemplateKind.QUIZ
    duration_minutes: Optional[int] = None
    questions: List[Question] = Field(default_factory=list)


# --- Answer scripts ---


class SubmissionIn(BaseModel):
    template_id: str
    respondent_name: str = Field(min_length=1, max_length=200)
    respondent_external_id: str = Field(min_length=1, max_length=200)
    answers: List[SubmittedAnswer]
    preview: bool = False
    reason: Literal["submitted", "timed_out"] = "submitted"


class ManualScoreIn(BaseModel):
    points: int


class ManualScoresIn(BaseModel):
    scores: Dict[int, int]


# --- Auth ---


class RegisterIn(BaseModel):
    username: str
    email: str
    password: str


class LoginIn(BaseModel):
    email: str
    password: str
