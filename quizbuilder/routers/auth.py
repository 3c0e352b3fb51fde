"""Authentication and account routes (JSON, cookie session)."""

from fastapi import APIRouter, Body, Depends, Request
from sqlmodel import Session

from quizbuilder.database import get_session
from quizbuilder.deps import require_login
from quizbuilder.models import User
from quizbuilder.schemas import LoginIn, RegisterIn
from quizbuilder.services import user_service

router = APIRouter()


@router.post("/register", status_code=201)
def register(
    request: Request,
    payload: RegisterIn = Body(...),
    session: Session = Depends(get_session),
):
    user = user_service.register_user(session, payload.username, payload.email, payload.password)
    request.session["user_id"] = user.id
    return user_service.user_to_dict(user)


@router.post("/login")
def login(
    request: Request,
    payload: LoginIn = Body(...),
    session: Session = Depends(get_session),
):
    user = user_service.authenticate(session, payload.email, payload.password)
    request.session.clear()
    request.session["user_id"] = user.id
    return user_service.user_to_dict(user)


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"detail": "Logged out"}


@router.get("/me")
def me(current_user: User = Depends(require_login)):
    return user_service.user_to_dict(current_user)
