import os

# Must be set before the application modules read their settings
os.environ.setdefault("QUIZBUILDER_DATABASE_URL", "sqlite://")
os.environ.setdefault("QUIZBUILDER_BCRYPT_ROUNDS", "4")
os.environ.setdefault("QUIZBUILDER_SEED_ADMIN_EMAIL", "")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, text

from quizbuilder.auth_utils import hash_password
from quizbuilder.database import get_session
from quizbuilder.main import app
from quizbuilder.models import User
from quizbuilder.schemas import Question, QuestionType, TemplateDraft, TemplateKind
from quizbuilder.services.template_service import create_template

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

# StaticPool: every connection shares the same in-memory database
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

PASSWORD = "secret123"


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create all tables in the test database once per session."""
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def cleanup_db_between_tests():
    """Clean up test data after each test."""
    yield
    with Session(test_engine) as session:
        session.exec(text("DELETE FROM answerscript"))
        session.exec(text("DELETE FROM template"))
        session.exec(text("DELETE FROM user"))
        session.commit()


@pytest.fixture
def session():
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


# ============================================================================
# FASTAPI APP & TEST CLIENTS
# ============================================================================


@pytest.fixture(autouse=True)
def override_session_dependency():
    def override_get_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield
    app.dependency_overrides.clear()


def login(client: TestClient, email: str, password: str = PASSWORD):
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response


@pytest.fixture
def client():
    """Anonymous client (share-link respondents)."""
    return TestClient(app)


def _make_user(username: str, email: str, role: str = "user") -> User:
    with Session(test_engine) as session:
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(PASSWORD),
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


@pytest.fixture
def owner_user():
    return _make_user("owner", "owner@example.com")


@pytest.fixture
def other_user():
    return _make_user("other", "other@example.com")


@pytest.fixture
def admin_user():
    return _make_user("boss", "boss@example.com", role="admin")


@pytest.fixture
def owner_client(owner_user):
    c = TestClient(app)
    login(c, owner_user.email)
    return c


@pytest.fixture
def other_client(other_user):
    c = TestClient(app)
    login(c, other_user.email)
    return c


@pytest.fixture
def admin_client(admin_user):
    c = TestClient(app)
    login(c, admin_user.email)
    return c


def single(text, options, correct, points=1):
    return Question(
        text=text,
        type=QuestionType.SINGLE_CHOICE,
        options=options,
        correct_option_index=correct,
        points=points,
    )


def multi(text, options, correct, points=1):
    return Question(
        text=text,
        type=QuestionType.MULTI_CHOICE,
        options=options,
        correct_option_indexes=correct,
        points=points,
    )


def free_text(text, points=1):
    return Question(text=text, type=QuestionType.FREE_TEXT, points=points)


@pytest.fixture
def mixed_template(owner_user):
    """One single-choice (1 point) and one free-text (3 points) question."""
    draft = TemplateDraft(
        title="Biology basics",
        description="Cells and such",
        kind=TemplateKind.QUIZ,
        questions=[
            single("Powerhouse of the cell?", ["Nucleus", "Mitochondria"], 1),
            free_text("Describe osmosis.", points=3),
        ],
    )
    with Session(test_engine) as session:
        return create_template(session, owner_user.id, draft)


@pytest.fixture
def choice_template(owner_user):
    """Auto-gradable only: one single choice, one multi choice (2 points)."""
    draft = TemplateDraft(
        title="Arithmetic",
        kind=TemplateKind.TEST,
        duration_minutes=10,
        questions=[
            single("2 + 2?", ["3", "4", "5"], 1),
            multi("Even numbers?", ["2", "3", "4"], [0, 2], points=2),
        ],
    )
    with Session(test_engine) as session:
        return create_template(session, owner_user.id, draft)
