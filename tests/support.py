"""Shared helpers for tests: in-memory SQLite store, seeded users, API client wiring."""

from collections.abc import Callable, Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from peninsula.core.database import get_db
from peninsula.core.security import create_access_token, hash_password
from peninsula.main import app
from peninsula.models import Base, User
from peninsula.services.updater import UpdateOrchestrator, get_update_orchestrator


def make_session_factory() -> sessionmaker:
    """
    Fresh in-memory SQLite database with the full schema.

    StaticPool keeps one connection so every session (including those opened
    from TestClient worker threads) sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def add_user(db: Session, username: str, password: str, role: str = "user") -> User:
    user = User(username=username, password_hash=hash_password(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(user: User) -> dict[str, str]:
    """Authorization header with a freshly issued access token for user."""
    token = create_access_token(sub=user.id, role=user.role, username=user.username)
    return {"Authorization": f"Bearer {token}"}


def make_client(
    session_factory: sessionmaker,
    orchestrator: UpdateOrchestrator | None = None,
) -> TestClient:
    """
    TestClient bound to session_factory (and optionally a test orchestrator).
    Lifespan is not entered, so no PostgreSQL is needed. Call clear_overrides() in tearDown.
    """

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    if orchestrator is not None:
        provide: Callable[[], UpdateOrchestrator] = lambda: orchestrator
        app.dependency_overrides[get_update_orchestrator] = provide
    return TestClient(app)


def clear_overrides() -> None:
    app.dependency_overrides.clear()
