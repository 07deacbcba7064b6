from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import gym_arena.models  # noqa: F401  registers every table on Base
from gym_arena.core.database import Base
from gym_arena.models.profile import Profile
from gym_arena.schemas import tournament_schemas
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import tournament_service

ADMIN = TokenData(user_id="admin-1", role="admin")


@pytest.fixture
def engine():
    # One shared in-memory database per test
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def make_tournament(db, admin):
    def _make(max_participants=8, name="Spring Smash", user=admin):
        tournament_in = tournament_schemas.TournamentCreate(
            name=name,
            description="Club ladder",
            start_date=datetime.utcnow() + timedelta(days=7),
            max_participants=max_participants,
        )
        return tournament_service.create_tournament(db, tournament_in, user)
    return _make


@pytest.fixture
def enroll(db):
    """Joins player-1..player-N in order, so seed k is player-k."""
    def _enroll(tournament, count=None):
        count = tournament.max_participants if count is None else count
        players = [f"player-{i}" for i in range(1, count + 1)]
        for user_id in players:
            tournament_service.join_tournament(db, tournament.id, user_id)
        return players
    return _enroll


@pytest.fixture
def active_tournament(db, admin, make_tournament, enroll):
    def _active(max_participants=8):
        tournament = make_tournament(max_participants)
        enroll(tournament)
        return tournament_service.start_tournament(db, tournament.id, admin)
    return _active


@pytest.fixture
def profiles(db):
    def _profiles(*user_ids):
        for user_id in user_ids:
            db.add(Profile(id=user_id, full_name=f"Name of {user_id}"))
        db.commit()
    return _profiles
