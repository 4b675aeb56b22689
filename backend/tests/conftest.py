"""Common pytest fixtures for the academy API tests.

Every test gets its own in-memory SQLite database shared between the test
session and the app (``StaticPool``), with ``get_db`` overridden so requests
made through ``client`` see the rows the fixtures create.

Fixtures:
    - ``db_session``: session bound to the test database.
    - ``client``: ``TestClient`` for the app.
    - ``admin``, ``coach``, ``volunteer``: one user per role.
    - ``auth_headers``: builds bearer headers for a user.
    - ``make_team``, ``make_player``: minimal row builders.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import datetime as _dt
from typing import Any, Callable, Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from academy import auth, models
from academy.db import Base, get_db
from academy.main import app


@pytest.fixture
def engine() -> Iterator[Any]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Any) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(db: Session, role: str, name: str, password: str = None) -> models.User:
    user = models.User(
        name=name,
        email=f"{name.lower().replace(' ', '.')}@academy.org",
        role=role,
        password_hash=auth.hash_password(password) if password else None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db_session: Session) -> models.User:
    return _make_user(db_session, "admin", "Ada Admin")


@pytest.fixture
def coach(db_session: Session) -> models.User:
    return _make_user(db_session, "coach", "Cole Coach")


@pytest.fixture
def volunteer(db_session: Session) -> models.User:
    return _make_user(db_session, "volunteer", "Val Volunteer")


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., models.User]:
    def build(role: str, name: str, password: str = None) -> models.User:
        return _make_user(db_session, role, name, password)

    return build


@pytest.fixture
def auth_headers() -> Callable[[models.User], Dict[str, str]]:
    def build(user: models.User) -> Dict[str, str]:
        token = auth.create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture
def make_team(db_session: Session, coach: models.User) -> Callable[..., models.Team]:
    def build(name: str = "Under 12") -> models.Team:
        team = models.Team(name=name, main_coach_id=coach.id, coach_ids=[], volunteer_ids=[])
        db_session.add(team)
        db_session.commit()
        db_session.refresh(team)
        return team

    return build


@pytest.fixture
def make_player(db_session: Session) -> Callable[..., models.Player]:
    def build(first_name: str, last_name: str = "Player", team: models.Team = None, **extra: Any) -> models.Player:
        player = models.Player(
            first_name=first_name,
            last_name=last_name,
            dob=extra.pop("dob", _dt.date(2013, 4, 2)),
            positions=extra.pop("positions", []),
            team_id=team.id if team else None,
            guardian_name=extra.pop("guardian_name", "Pat Guardian"),
            guardian_phone=extra.pop("guardian_phone", "07700900123"),
            **extra,
        )
        db_session.add(player)
        db_session.commit()
        db_session.refresh(player)
        return player

    return build
