"""Dashboard counts for a template owner."""

from sqlalchemy import func
from sqlmodel import Session, select

from quizbuilder.models import AnswerScript, Template, User


def dashboard_stats(session: Session, user: User) -> dict:
    """Counts for the owner's dashboard.

    Only scripts whose template still exists are counted; preview submissions
    are counted apart.
    """
    templates = session.exec(select(Template).where(Template.owner_id == user.id)).all()
    template_ids = [t.id for t in templates]

    def _count(is_preview: bool) -> int:
        if not template_ids:
            return 0
        stmt = select(func.count()).select_from(AnswerScript).where(
            AnswerScript.template_id.in_(template_ids) & (AnswerScript.is_preview == is_preview)
        )
        return session.exec(stmt).one()

    return {
        "templates_count": len(templates),
        "questions_count": sum(len(t.questions) for t in templates),
        "responses_count": _count(False),
        "preview_count": _count(True),
    }
