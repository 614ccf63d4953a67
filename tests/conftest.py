import secrets
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from netprophet.database import get_session
from netprophet.models import Match, User, Session as UserSession

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def make_token(session: Session, user: User) -> str:
    """Provision a session the way the auth service would."""
    token = secrets.token_urlsafe(32)
    user_session = UserSession(
        user_id=user.id,
        session_token=token,
        expires_at=datetime.now(timezone.utc) + timedelta(days=7)
    )
    session.add(user_session)
    session.commit()
    return token


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="user")
def user_fixture(session: Session):
    user = User(username="testuser", balance=1000)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="admin")
def admin_fixture(session: Session):
    admin = User(username="admin", is_admin=True)
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin


@pytest.fixture(name="user_token")
def user_token_fixture(session: Session, user: User):
    return make_token(session, user)


@pytest.fixture(name="admin_token")
def admin_token_fixture(session: Session, admin: User):
    return make_token(session, admin)


@pytest.fixture(name="match")
def match_fixture(session: Session):
    match = Match(
        player1_name="Alcaraz",
        player2_name="Sinner",
        odds_a=1.85,
        odds_b=2.10,
        start_time=datetime.now(timezone.utc) + timedelta(days=1)
    )
    session.add(match)
    session.commit()
    session.refresh(match)
    return match
