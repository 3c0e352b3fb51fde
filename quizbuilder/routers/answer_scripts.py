"""Answer script submission, review and manual grading."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlmodel import Session

from quizbuilder.database import get_session
from quizbuilder.deps import get_current_user, require_login
from quizbuilder.models import AnswerScript, User
from quizbuilder.schemas import ManualScoreIn, ManualScoresIn, SubmissionIn
from quizbuilder.services import answer_script_service as scripts
from quizbuilder.services.scoring import ScoreSummary

router = APIRouter()


def script_to_dict(script: AnswerScript, summary: Optional[ScoreSummary] = None) -> dict:
    data = {
        "id": script.id,
        "template_id": script.template_id,
        "template_title": script.template_title,
        "respondent_name": script.respondent_name,
        "respondent_external_id": script.respondent_external_id,
        "questions": script.questions_snapshot,
        "answers": script.answers,
        "auto_score": script.auto_score,
        "manual_scores": script.manual_scores,
        "score": script.score,
        "final_points": script.final_points,
        "total_possible_points": script.total_possible_points,
        "percentage": script.percentage,
        "grading_state": script.grading_state,
        "is_preview": script.is_preview,
        "reason": script.reason,
        "submitted_at": script.submitted_at,
        "graded_at": script.graded_at,
    }
    if summary is not None:
        data["summary"] = summary.model_dump(mode="json")
    return data


@router.post("", status_code=201)
def api_submit(
    payload: SubmissionIn = Body(...),
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_current_user),
):
    """Public: respondents submit through the share link without logging in."""
    script = scripts.submit_answer_script(session, payload, current_user)
    summary = scripts.summarize(script)
    # Respondents only get their own result, not the stored answer key
    return {
        "id": script.id,
        "template_id": script.template_id,
        "template_title": script.template_title,
        "auto_score": script.auto_score,
        "score": script.score,
        "submitted_at": script.submitted_at,
        "summary": summary.model_dump(mode="json"),
    }


@router.get("")
def api_list_scripts(
    template_id: Optional[str] = Query(None),
    include_previews: bool = Query(True),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    found = scripts.list_answer_scripts(session, current_user, template_id, include_previews)
    return [script_to_dict(s) for s in found]


@router.get("/{script_id}")
def api_get_script(
    script_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    script = scripts.get_answer_script(session, script_id, current_user)
    return script_to_dict(script, scripts.summarize(script))


@router.get("/{script_id}/score")
def api_get_score(
    script_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    return scripts.get_score_summary(session, script_id, current_user).model_dump(mode="json")


@router.put("/{script_id}/manual-scores/{question_index}")
def api_update_manual_score(
    script_id: str,
    question_index: int,
    payload: ManualScoreIn = Body(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    summary = scripts.update_manual_score(session, script_id, question_index, payload.points, current_user)
    return summary.model_dump(mode="json")


@router.put("/{script_id}/manual-scores")
def api_update_manual_scores(
    script_id: str,
    payload: ManualScoresIn = Body(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    summary = scripts.update_manual_scores(session, script_id, payload.scores, current_user)
    return summary.model_dump(mode="json")


@router.delete("/{script_id}")
def api_delete_script(
    script_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    scripts.delete_answer_script(session, script_id, current_user)
    return {"detail": "Answer script removed"}
