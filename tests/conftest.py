"""
Pytest fixtures for testing
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from paytracker.infrastructure.db import models  # noqa: F401
from paytracker.infrastructure.db.session import Base
from paytracker.infrastructure.store.memory import InMemoryRecordStore
from paytracker.infrastructure.store.sql import SqlAlchemyRecordStore


@pytest.fixture
def db_engine():
    """In-memory SQLite engine for tests"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Each test using this fixture runs against both store variants"""
    if request.param == "memory":
        return InMemoryRecordStore()
    return SqlAlchemyRecordStore(request.getfixturevalue("db_session"))


@pytest.fixture
def today():
    return date(2026, 3, 10)


@pytest.fixture
def make_profile_row():
    def _make(user_id="old-1", email="a@b.com", available_money="0", is_premium=False):
        return {
            "id": user_id,
            "email": email,
            "is_premium": is_premium,
            "available_money": Decimal(available_money),
        }
    return _make
