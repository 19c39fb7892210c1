"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite database file under tmp_path.
"""
import sys
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from studysheet.database import make_engine, init_db
from studysheet.crud import create_user, create_problem
from studysheet.schemas import UserCreate, ProblemCreate

NOW = datetime(2026, 3, 2, 9, 0)


@pytest.fixture
def engine(tmp_path):
    """Fresh database with all tables"""
    db_engine = make_engine(f"sqlite:///{tmp_path / 'studysheet-test.db'}")
    init_db(bind=db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def now():
    """Fixed clock for scheduling assertions"""
    return NOW


@pytest.fixture
def user(db):
    return create_user(db, UserCreate(name="Ada"))


@pytest.fixture
def other_user(db):
    return create_user(db, UserCreate(name="Grace"))


@pytest.fixture
def make_problem(db, user):
    """Factory for problems owned by `user` unless `owner` is given"""
    def _make(title="Two Sum", owner=None, **fields):
        return create_problem(db, (owner or user).id, ProblemCreate(title=title, **fields))
    return _make
