"""Template validation, storage, search and ownership checks."""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from quizbuilder.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from quizbuilder.logging_config import get_logger
from quizbuilder.models import Template, User
from quizbuilder.schemas import Question, QuestionType, TemplateDraft, TemplateKind
from quizbuilder.utils import sanitize_text

logger = get_logger(__name__)

TITLE_MAX_LENGTH = 200
QUESTION_TEXT_MAX_LENGTH = 5000
OPTION_MAX_LENGTH = 1000


def can_manage(owner_id: int, user: Optional[User]) -> bool:
    """Owners and admins may read, change and grade what hangs off a template."""
    return user is not None and (user.role == "admin" or user.id == owner_id)


def ensure_can_manage(owner_id: int, user: Optional[User]) -> None:
    if not can_manage(owner_id, user):
        raise NotAuthorizedError("Not authorized")


def _validate_question(index: int, question: Question, errors: Dict[str, str]) -> Question:
    """Check one question and return its cleaned copy; problems go into ``errors``."""
    prefix = f"questions[{index}]"

    text = sanitize_text(question.text)
    if not text:
        errors[f"{prefix}.text"] = "Question text is required."
    elif len(text) > QUESTION_TEXT_MAX_LENGTH:
        errors[f"{prefix}.text"] = f"Question text must be at most {QUESTION_TEXT_MAX_LENGTH} characters."

    if question.points < 1:
        errors[f"{prefix}.points"] = "Points must be at least 1."

    if question.type == QuestionType.FREE_TEXT:
        return question.model_copy(
            update={
                "text": text,
                "options": [],
                "correct_option_index": None,
                "correct_option_indexes": [],
            }
        )

    options = [sanitize_text(option) for option in question.options]
    if not options:
        errors[f"{prefix}.options"] = "Choice questions need at least one option."
    elif any(not option for option in options):
        errors[f"{prefix}.options"] = "Options must be non-empty."
    elif any(len(option) > OPTION_MAX_LENGTH for option in options):
        errors[f"{prefix}.options"] = f"Options must be at most {OPTION_MAX_LENGTH} characters."

    valid_indexes = range(len(options))
    update = {"text": text, "options": options}

    if question.type == QuestionType.SINGLE_CHOICE:
        if question.correct_option_index is None:
            errors[f"{prefix}.correct_option_index"] = "Correct option must be specified."
        elif question.correct_option_index not in valid_indexes:
            errors[f"{prefix}.correct_option_index"] = "Correct option must refer to an existing option."
        update["correct_option_indexes"] = []
    else:
        correct = sorted(set(question.correct_option_indexes))
        if not correct:
            errors[f"{prefix}.correct_option_indexes"] = "At least one correct option must be specified."
        elif any(i not in valid_indexes for i in correct):
            errors[f"{prefix}.correct_option_indexes"] = "Correct options must refer to existing options."
        update["correct_option_indexes"] = correct
        update["correct_option_index"] = None

    return question.model_copy(update=update)


def validate_template_draft(draft: TemplateDraft) -> TemplateDraft:
    """Validate a template draft and return a cleaned copy.

    Raises:
        ValidationError: with one entry per offending field
    """
    errors: Dict[str, str] = {}

    title = sanitize_text(draft.title)
    if not title:
        errors["title"] = "Title is required."
    elif len(title) > TITLE_MAX_LENGTH:
        errors["title"] = f"Title must be at most {TITLE_MAX_LENGTH} characters."

    duration = None
    if draft.kind == TemplateKind.TEST:
        if draft.duration_minutes is None or draft.duration_minutes < 1:
            errors["duration_minutes"] = "Tests need a duration of at least 1 minute."
        else:
            duration = draft.duration_minutes

    questions = [_validate_question(i, q, errors) for i, q in enumerate(draft.questions)]

    if errors:
        raise ValidationError("Invalid template", errors)

    return TemplateDraft(
        title=title,
        description=sanitize_text(draft.description) or None,
        kind=draft.kind,
        duration_minutes=duration,
        questions=questions,
    )


def template_questions(template: Template) -> List[Question]:
    return [Question.model_validate(q) for q in template.questions]


def create_template(session: Session, owner_id: int, draft: TemplateDraft) -> Template:
    clean = validate_template_draft(draft)
    template = Template(
        title=clean.title,
        description=clean.description,
        kind=clean.kind.value,
        duration_minutes=clean.duration_minutes,
        questions=[q.model_dump(mode="json") for q in clean.questions],
        owner_id=owner_id,
    )
    session.add(template)
    session.commit()
    session.refresh(template)
    logger.info("Template %s created by user %s", template.id, owner_id)
    return template


def get_template(session: Session, template_id: str) -> Template:
    template = session.get(Template, template_id)
    if not template:
        raise NotFoundError("Template not found")
    return template


def get_managed_template(session: Session, template_id: str, user: Optional[User]) -> Template:
    """Fetch a template the caller owns (or any template, for admins)."""
    template = get_template(session, template_id)
    if not can_manage(template.owner_id, user):
        logger.warning("User %s denied access to template %s", user.id if user else None, template_id)
        raise NotAuthorizedError("Not authorized")
    return template


def list_templates(session: Session, owner_id: int) -> List[Template]:
    stmt = select(Template).where(Template.owner_id == owner_id).order_by(Template.created_at.desc())
    return list(session.exec(stmt).all())


def search_templates(session: Session, owner_id: int, query: str) -> List[Template]:
    """Case-insensitive title search over the owner's templates."""
    query = (query or "").strip()
    if not query:
        return []
    stmt = select(Template).where(
        (Template.owner_id == owner_id) & (func.lower(Template.title).contains(query.lower(), autoescape=True))
    )
    return list(session.exec(stmt).all())


def update_template(session: Session, template_id: str, user: User, draft: TemplateDraft) -> Template:
    """Replace a template's content. Existing answer scripts keep their snapshots."""
    template = get_managed_template(session, template_id, user)
    clean = validate_template_draft(draft)

    template.title = clean.title
    template.description = clean.description
    template.kind = clean.kind.value
    template.duration_minutes = clean.duration_minutes
    template.questions = [q.model_dump(mode="json") for q in clean.questions]
    template.updated_at = datetime.utcnow()

    session.add(template)
    session.commit()
    session.refresh(template)
    logger.info("Template %s updated by user %s", template.id, user.id)
    return template


def delete_template(session: Session, template_id: str, user: User) -> None:
    """Delete a template. Its answer scripts are left in place."""
    template = get_managed_template(session, template_id, user)
    session.delete(template)
    session.commit()
    logger.info("Template %s deleted by user %s", template_id, user.id)
