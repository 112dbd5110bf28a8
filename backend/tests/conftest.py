import os

# Must be set before calshare is imported: settings and the engine are built at import time.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["SECRET_KEY"] = "test-secret"

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import calshare.models  # noqa: F401  registers tables on the metadata
from calshare.core.security import create_access_token
from calshare.db import get_session
from calshare.main import app
from calshare.models import (
    Calendar,
    CalendarMember,
    Event,
    EventParticipant,
    ParticipantRole,
    User,
)
from calshare.services.notifications import NotificationKind

DOMAIN = "acme.org"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def dispatched(monkeypatch):
    """Capture notification dispatches instead of queueing Celery tasks."""
    calls = []

    def fake_delay(task, kind, initiator_id, target_id, payload):
        calls.append(
            SimpleNamespace(
                kind=NotificationKind(kind),
                initiator_id=initiator_id,
                target_id=target_id,
                payload=payload,
            )
        )
        return None

    monkeypatch.setattr("calshare.services.notifications.safe_celery_delay", fake_delay)
    return calls


def kinds(calls):
    return [call.kind for call in calls]


@pytest.fixture
def make_user(session):
    def _make(name: str) -> User:
        user = User(
            email=f"{name}@{DOMAIN}",
            username=name,
            full_name=name.title(),
            hashed_password="not-a-real-hash",
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_calendar(session):
    def _make(owner: User, name: str = "Team", **kwargs) -> Calendar:
        calendar = Calendar(name=name, owner_id=owner.id, **kwargs)
        session.add(calendar)
        session.commit()
        session.refresh(calendar)
        return calendar

    return _make


@pytest.fixture
def add_member(session):
    def _add(calendar: Calendar, user: User, role: ParticipantRole) -> CalendarMember:
        membership = CalendarMember(calendar_id=calendar.id, user_id=user.id, role=role)
        session.add(membership)
        session.commit()
        return membership

    return _add


@pytest.fixture
def make_event(session):
    def _make(calendar: Calendar, creator: User, name: str = "Standup", **kwargs) -> Event:
        starts_at = kwargs.pop("starts_at", datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))
        event = Event(
            calendar_id=calendar.id,
            creator_id=creator.id,
            name=name,
            starts_at=starts_at,
            ends_at=kwargs.pop("ends_at", starts_at + timedelta(minutes=30)),
            **kwargs,
        )
        session.add(event)
        session.add(EventParticipant(event_id=event.id, user_id=creator.id, has_confirmed=True))
        session.commit()
        session.refresh(event)
        return event

    return _make


@pytest.fixture
def owner(make_user):
    return make_user("olivia")


@pytest.fixture
def admin(make_user):
    return make_user("adam")


@pytest.fixture
def creator(make_user):
    return make_user("carla")


@pytest.fixture
def reader(make_user):
    return make_user("rita")


@pytest.fixture
def outsider(make_user):
    return make_user("oscar")


@pytest.fixture
def shared_calendar(make_calendar, add_member, owner, admin, creator, reader):
    """Calendar owned by ``owner`` with one member per role."""
    calendar = make_calendar(owner)
    add_member(calendar, admin, ParticipantRole.ADMIN)
    add_member(calendar, creator, ParticipantRole.CREATOR)
    add_member(calendar, reader, ParticipantRole.READER)
    return calendar


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    # No context manager: the lifespan would create tables on the app engine.
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
