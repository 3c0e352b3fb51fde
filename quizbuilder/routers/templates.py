"""Template CRUD, search and the public share endpoint."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlmodel import Session

from quizbuilder.database import get_session
from quizbuilder.deps import require_login
from quizbuilder.models import Template, User
from quizbuilder.schemas import TemplateDraft
from quizbuilder.services import template_service

router = APIRouter()

ANSWER_KEY_FIELDS = ("correct_option_index", "correct_option_indexes")


def template_to_dict(template: Template, include_answer_key: bool = True) -> dict:
    questions = template.questions
    if not include_answer_key:
        questions = [
            {k: v for k, v in q.items() if k not in ANSWER_KEY_FIELDS} for q in questions
        ]
    return {
        "id": template.id,
        "title": template.title,
        "description": template.description,
        "kind": template.kind,
        "duration_minutes": template.duration_minutes,
        "questions": questions,
        "owner_id": template.owner_id,
        "created_at": template.created_at,
        "updated_at": template.updated_at,
    }


@router.get("")
def api_list_templates(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    return [template_to_dict(t) for t in template_service.list_templates(session, current_user.id)]


@router.get("/search")
def api_search_templates(
    q: Optional[str] = Query(None),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    templates = template_service.search_templates(session, current_user.id, q or "")
    return [{"id": t.id, "title": t.title, "kind": t.kind} for t in templates]


@router.get("/share/{template_id}")
def api_get_shared_template(template_id: str, session: Session = Depends(get_session)):
    """Public view used by the share link: anyone holding the id may fetch it."""
    template = template_service.get_template(session, template_id)
    return template_to_dict(template, include_answer_key=False)


@router.post("", status_code=201)
def api_create_template(
    payload: TemplateDraft = Body(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    template = template_service.create_template(session, current_user.id, payload)
    return template_to_dict(template)


@router.get("/{template_id}")
def api_get_template(
    template_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    return template_to_dict(template_service.get_managed_template(session, template_id, current_user))


@router.put("/{template_id}")
def api_update_template(
    template_id: str,
    payload: TemplateDraft = Body(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    template = template_service.update_template(session, template_id, current_user, payload)
    return template_to_dict(template)


@router.delete("/{template_id}")
def api_delete_template(
    template_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    template_service.delete_template(session, template_id, current_user)
    return {"detail": "Template removed"}
