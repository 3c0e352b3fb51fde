"""Admin routes: any template, and user management."""

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from quizbuilder.database import get_session
from quizbuilder.deps import require_role
from quizbuilder.models import User
from quizbuilder.routers.templates import template_to_dict
from quizbuilder.schemas import TemplateDraft
from quizbuilder.services import template_service, user_service

router = APIRouter()

admin_only = require_role(["admin"])


@router.get("/templates/{template_id}")
def admin_get_template(
    template_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(admin_only),
):
    return template_to_dict(template_service.get_template(session, template_id))


@router.put("/templates/{template_id}")
def admin_update_template(
    template_id: str,
    payload: TemplateDraft = Body(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(admin_only),
):
    template = template_service.update_template(session, template_id, current_user, payload)
    return template_to_dict(template)


@router.delete("/templates/{template_id}")
def admin_delete_template(
    template_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(admin_only),
):
    template_service.delete_template(session, template_id, current_user)
    return {"detail": "Template removed"}


@router.get("/users")
def admin_list_users(
    session: Session = Depends(get_session),
    current_user: User = Depends(admin_only),
):
    return user_service.list_users_with_templates(session)


@router.get("/users/{user_id}/templates")
def admin_user_templates(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(admin_only),
):
    user = user_service.get_user(session, user_id)
    return [template_to_dict(t) for t in template_service.list_templates(session, user.id)]


@router.delete("/users/{user_id}")
def admin_delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(admin_only),
):
    user_service.delete_user(session, user_id)
    return {"detail": "User and associated templates removed"}


@router.put("/users/{user_id}/block")
def admin_toggle_block(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(admin_only),
):
    user = user_service.toggle_block(session, user_id)
    state = "blocked" if user.is_blocked else "unblocked"
    return {"detail": f"User {state} successfully", "user": user_service.user_to_dict(user)}


@router.put("/users/{user_id}/role")
def admin_toggle_role(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(admin_only),
):
    user = user_service.toggle_role(session, user_id)
    return {"detail": f"User role updated to {user.role}", "user": user_service.user_to_dict(user)}
