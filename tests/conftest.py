"""Pytest configuration and shared fixtures.

Each test gets its own file-backed SQLite database (tables created from the
ORM metadata) and a TestClient whose ``get_db`` yields the test's session.
"""

import itertools
import os
from datetime import timedelta

# The module-level engine in activityhub.database is never used by tests.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["ENVIRONMENT"] = "development"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from activityhub.database import build_engine, get_db
from activityhub.main import app
from activityhub.models.activity import Activity
from activityhub.models.base import Base, utc_now
from activityhub.models.category import Category
from activityhub.models.comment import Comment  # noqa: F401 (register table metadata)
from activityhub.models.participation import Participation, ParticipationStatus
from activityhub.models.user import Account, User  # noqa: F401
from activityhub.security import create_access_token


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(**kwargs) -> User:
        n = next(counter)
        fields = {"email": f"user{n}@example.com", "name": f"User {n}", "interests": []}
        fields.update(kwargs)
        user = User(**fields)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def category(db) -> Category:
    category = Category(name="Sports & Fitness", description="Physical activities and sports events")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def make_activity(db, make_user, category):
    """Insert an activity row directly (bypasses request validation, e.g. for past dates)."""

    def _make(creator=None, start=None, duration=timedelta(hours=2), max_participants=10, **kwargs) -> Activity:
        creator = creator or make_user()
        start = start or utc_now() + timedelta(days=3)
        fields = {
            "title": "Morning run",
            "description": "An easy 5k around the park",
            "location": "Central Park",
            "status": "upcoming",
            "images": [],
            "is_private": False,
            "is_paid": False,
            "category_id": category.id,
        }
        fields.update(kwargs)
        activity = Activity(
            start_date=start,
            end_date=start + duration,
            max_participants=max_participants,
            current_participants=0,
            creator_id=creator.id,
            **fields,
        )
        db.add(activity)
        db.commit()
        return activity

    return _make


@pytest.fixture
def counts(db):
    """(stored counter, active participation rows) for an activity, read from the database."""

    def _counts(activity_id: str):
        counter = db.execute(
            select(Activity.current_participants).where(Activity.id == activity_id)
        ).scalar_one()
        rows = db.execute(
            select(func.count(Participation.id)).where(
                Participation.activity_id == activity_id,
                Participation.status != ParticipationStatus.CANCELLED.value,
            )
        ).scalar_one()
        db.commit()
        return counter, rows

    return _counts
