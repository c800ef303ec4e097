# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from contextlib import nullcontext

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CHANGE_FEED_BACKEND", "memory")
os.environ.setdefault("PASSWORD_BCRYPT_ROUNDS", "4")

from bulletin_board.core.security import create_token, hash_password
from bulletin_board.db.session import Base
from bulletin_board.db.session import get_db as app_get_session
from bulletin_board.db.session import get_session_factory
from bulletin_board.main import app as fastapi_app
from bulletin_board.models import AnonymousPost, BoardCategory, Comment, Employee
from bulletin_board.services.change_feed import InMemoryChangeFeed, get_change_feed

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "password123"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def feed() -> InMemoryChangeFeed:
    """A fresh change feed per test so subscriptions never leak across tests."""
    return InMemoryChangeFeed(queue_size=16)


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    feed: InMemoryChangeFeed,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    def _session_factory_override():
        # Handlers that open their own sessions share the test transaction.
        return lambda: nullcontext(db_session)

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_factory] = _session_factory_override
    app.dependency_overrides[get_change_feed] = lambda: feed
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_session_factory, None)
        app.dependency_overrides.pop(get_change_feed, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def make_employee(
    db: Session,
    employee_id: str,
    *,
    name: str | None = None,
    role: str = "user",
    department_id: int | None = 1,
    position_id: int | None = 1,
    is_active: bool = True,
    status: str = "approved",
) -> Employee:
    employee = Employee(
        employee_id=employee_id,
        name=name or f"Employee {employee_id}",
        email=f"{employee_id.lower()}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        department_id=department_id,
        position_id=position_id,
        role=role,
        is_active=is_active,
        status=status,
    )
    db.add(employee)
    db.flush()
    db.refresh(employee)
    return employee


def bearer(employee: Employee) -> dict[str, str]:
    token = create_token(employee.employee_id, role=employee.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def employee(db_session: Session) -> Employee:
    """Primary signed-in employee (department 1)."""
    return make_employee(db_session, "E001", name="Kim")


@pytest.fixture()
def other_employee(db_session: Session) -> Employee:
    """Second employee in another department."""
    return make_employee(db_session, "E002", name="Lee", department_id=2, position_id=2)


@pytest.fixture()
def admin(db_session: Session) -> Employee:
    return make_employee(db_session, "A001", name="Admin", role="admin", department_id=9)


@pytest.fixture()
def auth_headers(employee: Employee) -> dict[str, str]:
    return bearer(employee)


@pytest.fixture()
def other_auth_headers(other_employee: Employee) -> dict[str, str]:
    return bearer(other_employee)


@pytest.fixture()
def admin_headers(admin: Employee) -> dict[str, str]:
    return bearer(admin)


@pytest.fixture()
def category(db_session: Session) -> BoardCategory:
    category = BoardCategory(name="Free talk", description="Anything goes", is_anonymous=True)
    db_session.add(category)
    db_session.flush()
    db_session.refresh(category)
    return category


@pytest.fixture()
def post(db_session: Session, category: BoardCategory, employee: Employee) -> AnonymousPost:
    """A post written by ``employee``."""
    post = AnonymousPost(
        title="Cafeteria menu",
        content="Can we get more vegetarian options?",
        category_id=category.id,
        author_employee_id=employee.employee_id,
        likes=0,
        dislikes=0,
    )
    db_session.add(post)
    db_session.flush()
    db_session.refresh(post)
    return post


@pytest.fixture()
def comment(db_session: Session, post: AnonymousPost, other_employee: Employee) -> Comment:
    """A comment on ``post`` by ``other_employee`` with two existing likes."""
    comment = Comment(
        post_id=post.id,
        author_employee_id=other_employee.employee_id,
        content="Agreed, the salad bar is tiny.",
        likes=2,
        dislikes=0,
    )
    db_session.add(comment)
    db_session.flush()
    db_session.refresh(comment)
    return comment
