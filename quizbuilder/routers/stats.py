"""Dashboard statistics endpoint."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from quizbuilder.database import get_session
from quizbuilder.deps import require_login
from quizbuilder.models import User
from quizbuilder.services.stats_service import dashboard_stats

router = APIRouter()


@router.get("/dashboard")
def api_dashboard(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_login),
):
    return dashboard_stats(session, current_user)
