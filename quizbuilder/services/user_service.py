"""Accounts: registration, login checks and the admin user operations."""

import re
from typing import Dict, List

from sqlalchemy import func
from sqlmodel import Session, select

from quizbuilder.auth_utils import hash_password, verify_password
from quizbuilder.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from quizbuilder.logging_config import get_logger
from quizbuilder.models import Template, User

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6


def register_user(session: Session, username: str, email: str, password: str) -> User:
    errors: Dict[str, str] = {}

    username_clean = (username or "").strip()
    email_clean = (email or "").strip().lower()

    if len(username_clean) < USERNAME_MIN_LENGTH:
        errors["username"] = f"Username must be at least {USERNAME_MIN_LENGTH} characters long."
    elif session.exec(select(User).where(func.lower(User.username) == username_clean.lower())).first():
        errors["username"] = "This username is already taken."

    if not EMAIL_PATTERN.match(email_clean):
        errors["email"] = "Please enter a valid email address."
    elif session.exec(select(User).where(User.email == email_clean)).first():
        errors["email"] = "This email is already registered."

    if not password or len(password) < PASSWORD_MIN_LENGTH:
        errors["password"] = f"Password must be at least {PASSWORD_MIN_LENGTH} characters long."

    if errors:
        raise ValidationError("Invalid registration", errors)

    user = User(username=username_clean, email=email_clean, password_hash=hash_password(password))
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


def authenticate(session: Session, email: str, password: str) -> User:
    """Return the user for a correct email/password pair.

    Raises:
        ValidationError: unknown email or wrong password
        NotAuthorizedError: the account is blocked
    """
    email_clean = (email or "").strip().lower()
    user = session.exec(select(User).where(User.email == email_clean)).first()
    if not user or not verify_password(password or "", user.password_hash):
        logger.warning("Failed login for %s", email_clean)
        raise ValidationError("Invalid credentials", {"email": "Invalid email or password."})
    if user.is_blocked:
        logger.warning("Blocked user %s tried to log in", user.id)
        raise NotAuthorizedError("This account has been blocked")
    return user


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users_with_templates(session: Session) -> List[dict]:
    users = session.exec(select(User).order_by(User.created_at)).all()
    result = []
    for user in users:
        templates = session.exec(select(Template).where(Template.owner_id == user.id)).all()
        result.append(
            {
                **user_to_dict(user),
                "templates": [
                    {
                        "id": t.id,
                        "title": t.title,
                        "kind": t.kind,
                        "question_count": len(t.questions),
                    }
                    for t in templates
                ],
            }
        )
    return result


def delete_user(session: Session, user_id: int) -> None:
    """Delete a user and the templates they own.

    Two separate commits: if removing the user fails, the templates stay
    deleted. Answer scripts are not touched.
    """
    user = get_user(session, user_id)

    templates = session.exec(select(Template).where(Template.owner_id == user.id)).all()
    for template in templates:
        session.delete(template)
    session.commit()

    session.delete(user)
    session.commit()
    logger.info("Deleted user %s and %d templates", user_id, len(templates))


def toggle_block(session: Session, user_id: int) -> User:
    user = get_user(session, user_id)
    if user.role == "admin":
        raise ValidationError("Cannot block admin users", {"user": "Admins cannot be blocked."})
    user.is_blocked = not user.is_blocked
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("User %s %s", user.id, "blocked" if user.is_blocked else "unblocked")
    return user


def toggle_role(session: Session, user_id: int) -> User:
    user = get_user(session, user_id)
    user.role = "user" if user.role == "admin" else "admin"
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("User %s role set to %s", user.id, user.role)
    return user


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "is_blocked": user.is_blocked,
        "created_at": user.created_at,
    }
