# tests/conftest.py

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from studytrack.database import create_tables, get_db
from studytrack.models import User
from studytrack.routers.auth import get_current_user, get_password_hash
from studytrack.services.facade import TaskService
from studytrack.services.gateway import ChangeFeed, TaskGateway
from studytrack.services.records import RecordGateway
from studytrack.services.store import StoreRegistry, stores


@pytest.fixture()
def engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps the single connection alive so the TestClient worker
    thread sees the same database as the test body.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def user(db: Session) -> User:
    user = User(email="student@example.com", hashed_password=get_password_hash("secret"))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture()
def registry(feed: ChangeFeed) -> StoreRegistry:
    return StoreRegistry(feed)


@pytest.fixture()
def gateway(db: Session, user: User, feed: ChangeFeed) -> TaskGateway:
    return TaskGateway(db, user.id, feed)


@pytest.fixture()
def service(gateway: TaskGateway, registry: StoreRegistry, user: User) -> TaskService:
    return TaskService(gateway, registry.get(user.id), reset_progress_on_uncomplete=False)


@pytest.fixture()
def records(db: Session, user: User, feed: ChangeFeed) -> RecordGateway:
    return RecordGateway(db, user.id, feed)


@pytest.fixture()
def client(db: Session, user: User):
    """TestClient signed in as ``user`` and bound to the test database."""
    from studytrack.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: user
    stores.clear()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        stores.clear()
