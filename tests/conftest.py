"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import date

from recurring_engine.database import Base
from recurring_engine.models.recurring import RecurringExpense
from recurring_engine.schemas.recurring import CategorySnapshot
from recurring_engine.services import recurring_service


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def sample_category():
    """A category snapshot as the UI would pass it."""
    return CategorySnapshot(
        id="cat-rent",
        name="Rent",
        icon="home",
        color="#3b82f6",
    )


@pytest.fixture
def make_recurring(db_session, sample_category):
    """Factory creating stored recurring expenses through the pattern store."""
    def _make(schedule, start_date, end_date=None, amount="25.00", note="", category=None):
        return recurring_service.create_recurring_expense(db_session, {
            "amount": amount,
            "category": (category or sample_category).model_dump(),
            "note": note,
            "schedule": schedule,
            "start_date": start_date,
            "end_date": end_date,
        })
    return _make


@pytest.fixture
def sample_recurring_expense(make_recurring):
    """A monthly rent payment on the 1st."""
    return make_recurring(
        {"frequency": "monthly", "day_of_month": 1},
        start_date=date(2024, 1, 1),
        amount="1200.00",
        note="Apartment rent",
    )


@pytest.fixture
def build_pattern():
    """Factory for unsaved patterns used in pure occurrence calculations."""
    def _build(schedule, start_date, end_date=None, last_generated_date=None, is_active=True):
        pattern = RecurringExpense(
            id="pattern-1",
            amount="10.00",
            start_date=start_date,
            end_date=end_date,
            last_generated_date=last_generated_date,
            is_active=is_active,
        )
        pattern.schedule = schedule
        pattern.category = CategorySnapshot(id="cat-1", name="Food", icon="fast-food", color="#f59e0b")
        return pattern
    return _build
