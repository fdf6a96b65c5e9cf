"""Shared pytest fixtures for quorum tests."""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from quorum.db.schema import Base
from quorum.db.session import enable_sqlite_foreign_keys
from quorum.models.domain import Gender, RespondentEntity

# Fixed reference date so respondent ages are stable
TODAY = date(2026, 6, 15)


def respondent(gender: str = "F", age: int = 40) -> RespondentEntity:
    """Respondent who is exactly ``age`` years old on TODAY."""
    return RespondentEntity(gender=Gender(gender), birthdate=date(TODAY.year - age, 1, 1))


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()
