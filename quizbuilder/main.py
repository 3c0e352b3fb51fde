"""FastAPI entrypoint for the Quiz & Questionnaire Builder."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session, select
from starlette.middleware.sessions import SessionMiddleware

from quizbuilder.auth_utils import hash_password
from quizbuilder.config import get_settings
from quizbuilder.database import create_db_and_tables, engine
from quizbuilder.exceptions import QuizBuilderError, ValidationError
from quizbuilder.logging_config import configure_logging, get_logger
from quizbuilder.models import User
from quizbuilder.routers import admin as admin_router_module
from quizbuilder.routers import answer_scripts as answer_scripts_router_module
from quizbuilder.routers import auth as auth_router_module
from quizbuilder.routers import stats as stats_router_module
from quizbuilder.routers import templates as templates_router_module

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(title=settings.app_name)


@app.exception_handler(QuizBuilderError)
async def domain_exception_handler(request: Request, exc: QuizBuilderError):
    """Render domain errors as JSON with the status their class declares."""
    content = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    if exc.status_code >= 500:
        logger.error("Unhandled domain error on %s: %s", request.url.path, exc.message)
    else:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


# Cookie-based sessions carry the logged-in user id
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router_module.router, prefix="/auth", tags=["auth"])
app.include_router(templates_router_module.router, prefix="/templates", tags=["templates"])
app.include_router(answer_scripts_router_module.router, prefix="/answer-scripts", tags=["answer-scripts"])
app.include_router(admin_router_module.router, prefix="/admin", tags=["admin"])
app.include_router(stats_router_module.router, prefix="/stats", tags=["stats"])


@app.get("/")
def home():
    return {"name": settings.app_name, "status": "ok"}


def seed_admin(session: Session) -> None:
    """Create the configured default admin unless an admin already exists."""
    if not settings.seed_admin_email:
        return
    existing_admin = session.exec(select(User).where(User.role == "admin")).first()
    if existing_admin:
        return
    admin_user = User(
        username="admin",
        email=settings.seed_admin_email.lower(),
        password_hash=hash_password(settings.seed_admin_password),
        role="admin",
    )
    session.add(admin_user)
    session.commit()
    logger.info("Seeded default admin user: %s", admin_user.email)


@app.on_event("startup")
def on_startup():
    """Initialize database schema and the default admin."""
    create_db_and_tables()
    with Session(engine) as session:
        seed_admin(session)
