"""Submission and grading of answer scripts.

A script is written once at submission; its answers never change afterwards.
Grading only touches ``manual_scores`` and the stored aggregate, which is
recomputed from the question snapshot on every update (last write wins).
"""

from datetime import datetime
from typing import Dict, List, Mapping, Optional

from sqlmodel import Session, select

from quizbuilder.exceptions import InvalidScoreFormat, NotAuthorizedError, NotFoundError, ValidationError
from quizbuilder.logging_config import get_logger
from quizbuilder.models import AnswerScript, User
from quizbuilder.schemas import (
    FreeTextAnswer,
    Question,
    QuestionType,
    SubmissionIn,
    SubmittedAnswer,
    TemplateKind,
    submitted_answer_adapter,
)
from quizbuilder.services.scoring import AnswerStatus, ScoreSummary, aggregate, evaluate
from quizbuilder.services.template_service import can_manage, ensure_can_manage, get_template, template_questions
from quizbuilder.utils import sanitize_text, validate_marks

logger = get_logger(__name__)


def snapshot_questions(script: AnswerScript) -> List[Question]:
    return [Question.model_validate(q) for q in script.questions_snapshot]


def stored_answers(script: AnswerScript) -> List[SubmittedAnswer]:
    return [submitted_answer_adapter.validate_python(a) for a in script.answers]


def stored_manual_scores(script: AnswerScript) -> Dict[int, int]:
    return {int(index): points for index, points in (script.manual_scores or {}).items()}


def summarize(script: AnswerScript) -> ScoreSummary:
    """Run the aggregator over what is stored on the script. No writes."""
    return aggregate(snapshot_questions(script), stored_answers(script), stored_manual_scores(script))


def _apply_summary(script: AnswerScript, summary: ScoreSummary) -> None:
    script.score = summary.score
    script.final_points = summary.final_points
    script.total_possible_points = summary.total_possible_points
    script.percentage = summary.percentage
    script.grading_state = summary.grading_state.value


def _validate_answers(questions: List[Question], answers: List[SubmittedAnswer]) -> None:
    if len(answers) != len(questions):
        raise ValidationError(
            f"Expected {len(questions)} answers, got {len(answers)}",
            {"answers": "Every question must be answered (use an empty answer to skip)."},
        )

    errors: Dict[str, str] = {}
    for index, (question, answer) in enumerate(zip(questions, answers)):
        if answer.type != question.type.value:
            errors[f"answers[{index}]"] = f"Expected a {question.type.value} answer, got {answer.type}."
    if errors:
        raise ValidationError("Answers do not match the template questions", errors)


def submit_answer_script(session: Session, payload: SubmissionIn, current_user: Optional[User] = None) -> AnswerScript:
    """Validate a submission against its template and persist it in one write.

    Nothing is stored when validation fails.
    """
    template = get_template(session, payload.template_id)
    questions = template_questions(template)

    _validate_answers(questions, payload.answers)

    if payload.preview and not can_manage(template.owner_id, current_user):
        raise NotAuthorizedError("Only the template owner can submit a preview")
    if payload.reason == "timed_out" and template.kind != TemplateKind.TEST.value:
        raise ValidationError(
            "Only tests have a time limit", {"reason": "timed_out is only valid for tests."}
        )

    respondent_name = sanitize_text(payload.respondent_name)
    respondent_external_id = sanitize_text(payload.respondent_external_id)
    if not respondent_name or not respondent_external_id:
        raise ValidationError(
            "Respondent details are required",
            {"respondent": "Name and ID must contain text."},
        )

    answers: List[SubmittedAnswer] = []
    for answer in payload.answers:
        if isinstance(answer, FreeTextAnswer) and answer.text is not None:
            answer = FreeTextAnswer(text=sanitize_text(answer.text))
        answers.append(answer)

    stored = []
    for question, answer in zip(questions, answers):
        result = evaluate(question, answer)
        entry = answer.model_dump(mode="json")
        entry["is_auto_correct"] = None if question.type == QuestionType.FREE_TEXT else result.status == AnswerStatus.CORRECT
        stored.append(entry)

    summary = aggregate(questions, answers, {})
    script = AnswerScript(
        template_id=template.id,
        template_title=template.title,
        owner_id=template.owner_id,
        questions_snapshot=[q.model_dump(mode="json") for q in questions],
        respondent_name=respondent_name,
        respondent_external_id=respondent_external_id,
        answers=stored,
        auto_score=summary.auto_score,
        manual_scores={},
        is_preview=payload.preview,
        reason=payload.reason,
    )
    _apply_summary(script, summary)

    session.add(script)
    session.commit()
    session.refresh(script)
    logger.info(
        "Answer script %s submitted for template %s (%s, preview=%s)",
        script.id,
        template.id,
        payload.reason,
        payload.preview,
    )
    return script


def get_answer_script(session: Session, script_id: str, user: Optional[User]) -> AnswerScript:
    script = session.get(AnswerScript, script_id)
    if not script:
        raise NotFoundError("Answer script not found")
    ensure_can_manage(script.owner_id, user)
    return script


def list_answer_scripts(
    session: Session,
    user: User,
    template_id: Optional[str] = None,
    include_previews: bool = True,
) -> List[AnswerScript]:
    """Scripts submitted against the caller's templates, newest first."""
    stmt = select(AnswerScript).where(AnswerScript.owner_id == user.id)
    if template_id:
        stmt = stmt.where(AnswerScript.template_id == template_id)
    if not include_previews:
        stmt = stmt.where(AnswerScript.is_preview == False)  # noqa: E712
    scripts = session.exec(stmt).all()
    return sorted(scripts, key=lambda s: s.submitted_at, reverse=True)


def get_score_summary(session: Session, script_id: str, user: Optional[User]) -> ScoreSummary:
    return summarize(get_answer_script(session, script_id, user))


def _check_manual_score(questions: List[Question], index: int, points: int) -> None:
    if index < 0 or index >= len(questions):
        raise ValidationError(
            f"Question {index} does not exist", {"question_index": "Question index out of range."}
        )
    question = questions[index]
    if question.type != QuestionType.FREE_TEXT:
        raise ValidationError(
            f"Question {index} is graded automatically",
            {"question_index": "Only free-text questions take manual scores."},
        )
    try:
        validate_marks(points, question.points)
    except ValueError as e:
        raise InvalidScoreFormat(f"Question {index}: {e}", {"points": str(e)})


def update_manual_scores(
    session: Session, script_id: str, scores: Mapping[int, int], user: User
) -> ScoreSummary:
    """Set or revise grader scores for free-text questions and re-aggregate.

    Every entry is checked before anything is written; one bad entry rejects
    the whole update.
    """
    script = get_answer_script(session, script_id, user)
    questions = snapshot_questions(script)

    for index, points in scores.items():
        _check_manual_score(questions, index, points)

    merged = stored_manual_scores(script)
    merged.update(scores)
    # Reassign so SQLAlchemy sees the JSON column change
    script.manual_scores = {str(index): points for index, points in sorted(merged.items())}

    summary = aggregate(questions, stored_answers(script), merged)
    _apply_summary(script, summary)
    script.graded_at = datetime.utcnow()

    session.add(script)
    session.commit()
    session.refresh(script)
    logger.info(
        "Answer script %s graded by user %s: %s (%s)",
        script.id,
        user.id,
        summary.score,
        summary.grading_state.value,
    )
    return summary


def update_manual_score(session: Session, script_id: str, question_index: int, points: int, user: User) -> ScoreSummary:
    return update_manual_scores(session, script_id, {question_index: points}, user)


def delete_answer_script(session: Session, script_id: str, user: User) -> None:
    script = get_answer_script(session, script_id, user)
    session.delete(script)
    session.commit()
    logger.info("Answer script %s deleted by user %s", script_id, user.id)
