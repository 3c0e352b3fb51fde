"""Answer matching and score aggregation.

Pure functions over question and answer documents; nothing here touches the
database. ``evaluate`` decides one answer, ``aggregate`` folds a whole
submission plus any manual scores into a :class:`ScoreSummary`.

Scoring contract: the points-weighted result (``final_points`` out of
``total_possible_points``) is the grade. ``auto_score`` is the quick
"correct/total" count over auto-gradable questions and is reported alongside,
never mixed into it.
"""

from enum import Enum
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel

from quizbuilder.schemas import (
    FreeTextAnswer,
    MultiChoiceAnswer,
    Question,
    QuestionType,
    SingleChoiceAnswer,
    SubmittedAnswer,
)

PENDING_SCORE = "pending"


class AnswerStatus(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    PENDING = "pending"  # free text, waiting for a grader


class GradingState(str, Enum):
    SUBMITTED = "submitted"
    PARTIALLY_GRADED = "partially_graded"
    FULLY_GRADED = "fully_graded"


class Evaluation(BaseModel):
    status: AnswerStatus
    auto_points: Optional[int] = None  # None for free text
    answered: bool = False


class ScoreSummary(BaseModel):
    auto_correct_count: int
    auto_total: int
    auto_score: str
    auto_points: int
    manual_total: int
    manual_graded_count: int
    manual_points: int
    pending_manual_grading: bool
    grading_state: GradingState
    final_points: Optional[int] = None
    total_possible_points: int
    percentage: Optional[int] = None
    score: str


def evaluate(question: Question, answer: Optional[SubmittedAnswer]) -> Evaluation:
    """Decide whether ``answer`` is correct for ``question``.

    Single choice must match the correct index exactly; multi choice must
    match the correct index set exactly (order and repeats ignored, no partial
    credit). A missing answer, or one of the wrong variant, is incorrect.
    Free text is never correct here: it stays pending until graded by hand,
    ``answered`` only says whether any non-blank text was given.
    """
    if question.type == QuestionType.FREE_TEXT:
        text = answer.text if isinstance(answer, FreeTextAnswer) else None
        return Evaluation(
            status=AnswerStatus.PENDING,
            auto_points=None,
            answered=bool(text and text.strip()),
        )

    if question.type == QuestionType.SINGLE_CHOICE:
        choice = answer.choice if isinstance(answer, SingleChoiceAnswer) else None
        answered = choice is not None
        correct = answered and choice == question.correct_option_index
    else:
        chosen = set(answer.choices) if isinstance(answer, MultiChoiceAnswer) else set()
        answered = bool(chosen)
        correct = answered and chosen == set(question.correct_option_indexes)

    return Evaluation(
        status=AnswerStatus.CORRECT if correct else AnswerStatus.INCORRECT,
        auto_points=question.points if correct else 0,
        answered=answered,
    )


def _round_percentage(earned: int, possible: int) -> int:
    # Half rounds up (12.5 -> 13), integer arithmetic to stay exact
    return (200 * earned + possible) // (2 * possible)


def aggregate(
    questions: Sequence[Question],
    answers: Sequence[Optional[SubmittedAnswer]],
    manual_scores: Mapping[int, int],
) -> ScoreSummary:
    """Combine auto-graded results and manual scores into one summary.

    ``answers[i]`` answers ``questions[i]``. ``manual_scores`` maps a
    free-text question index to the grader's points; a missing entry means
    "not graded yet", in which case the score is reported as pending and no
    final points or percentage are given.
    """
    auto_correct_count = 0
    auto_total = 0
    auto_points = 0
    manual_total = 0
    manual_graded_count = 0
    manual_points = 0
    total_possible_points = 0

    for index, question in enumerate(questions):
        total_possible_points += question.points
        answer = answers[index] if index < len(answers) else None

        if question.is_auto_gradable:
            auto_total += 1
            result = evaluate(question, answer)
            if result.status == AnswerStatus.CORRECT:
                auto_correct_count += 1
                auto_points += result.auto_points
        else:
            manual_total += 1
            if index in manual_scores:
                manual_graded_count += 1
                manual_points += manual_scores[index]

    pending = manual_graded_count < manual_total

    if manual_total == 0 or manual_graded_count == manual_total:
        state = GradingState.FULLY_GRADED
    elif manual_graded_count == 0:
        state = GradingState.SUBMITTED
    else:
        state = GradingState.PARTIALLY_GRADED

    final_points = None
    percentage = None
    score = PENDING_SCORE
    if not pending:
        final_points = auto_points + manual_points
        score = f"{final_points}/{total_possible_points}"
        if total_possible_points > 0:
            percentage = _round_percentage(final_points, total_possible_points)

    return ScoreSummary(
        auto_correct_count=auto_correct_count,
        auto_total=auto_total,
        auto_score=f"{auto_correct_count}/{auto_total}",
        auto_points=auto_points,
        manual_total=manual_total,
        manual_graded_count=manual_graded_count,
        manual_points=manual_points,
        pending_manual_grading=pending,
        grading_state=state,
        final_points=final_points,
        total_possible_points=total_possible_points,
        percentage=percentage,
        score=score,
    )
