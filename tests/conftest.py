# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "threadline-test-secret")

from threadline.core.security import create_access_token  # noqa: E402
from threadline.db.session import Base, build_engine  # noqa: E402
from threadline.db.session import get_db as app_get_session  # noqa: E402
from threadline.main import app as fastapi_app  # noqa: E402
from threadline.models import Comment, Community, Post, User  # noqa: E402
from threadline.models.user import ROLE_ADMIN  # noqa: E402

TEST_DB_URL = "sqlite://"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def executed_statements(db_session: Session, monkeypatch: pytest.MonkeyPatch) -> list[Any]:
    """Record every statement passed to ``db_session.execute``."""
    statements: list[Any] = []
    real_execute = db_session.execute

    def _execute(statement: Any, *args: Any, **kwargs: Any) -> Any:
        statements.append(statement)
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", _execute)
    return statements


@pytest.fixture()
def fail_counter_updates(
    db_session: Session,
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[[], None]:
    """Return a switch that makes bulk UPDATE statements on ``db_session`` fail.

    ORM flushes are untouched, so ledger and comment inserts still reach the
    database before the counter update raises.
    """

    def _install() -> None:
        real_execute = db_session.execute

        def _execute(statement: Any, *args: Any, **kwargs: Any) -> Any:
            if isinstance(statement, Update):
                raise OperationalError(str(statement), {}, Exception("database is locked"))
            return real_execute(statement, *args, **kwargs)

        monkeypatch.setattr(db_session, "execute", _execute)

    return _install


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _make_user(db_session: Session, username: str, role: str = "user") -> User:
    user = User(username=username, role=role)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return _make_user(db_session, "test_user")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return _make_user(db_session, "other_user")


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """Create and return a user with the admin role."""
    return _make_user(db_session, "admin_user", role=ROLE_ADMIN)


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_auth_token(admin_user: User) -> dict[str, str]:
    """Return authorization headers for the admin user."""
    token = create_access_token(admin_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def community(db_session: Session, test_user: User) -> Community:
    """Create a default test community."""
    community = Community(
        name="testing",
        description="Test community description",
        created_by=test_user.id,
    )
    db_session.add(community)
    db_session.commit()
    db_session.refresh(community)
    return community


@pytest.fixture()
def test_post(db_session: Session, test_user: User, community: Community) -> Post:
    """Create a baseline post for tests."""
    post = Post(
        author_id=test_user.id,
        community_id=community.id,
        title="A baseline test post",
        content="Test post content",
    )
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    return post


@pytest.fixture()
def test_comment(db_session: Session, test_post: Post, other_user: User) -> Comment:
    """Create a top-level comment on the baseline post.

    Inserted directly, so the post's comment_count is bumped by hand.
    """
    comment = Comment(
        post_id=test_post.id,
        author_id=other_user.id,
        content="First!",
        depth=0,
    )
    db_session.add(comment)
    test_post.comment_count += 1
    db_session.commit()
    db_session.refresh(comment)
    return comment
