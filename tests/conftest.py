"""Pytest configuration and shared fixtures for the family_activities test suite."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from family_activities.config import Settings
from family_activities.models import init_db
from family_activities.services.activity_builder import ActivityBuilder
from family_activities.services.conversion_service import ConversionService

# Conversions are pinned to this date so past-date checks and year inference
# do not depend on the clock.
REFERENCE_DATE = date(2024, 12, 1)


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture
def service(settings, reference_date) -> ConversionService:
    return ConversionService(settings=settings, reference_date=reference_date)


@pytest.fixture
def builder(settings, reference_date) -> ActivityBuilder:
    return ActivityBuilder(settings=settings, reference_date=reference_date)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def perfect_record() -> dict:
    """Every field present under its primary key."""
    return {
        "title": "Kids Art Workshop",
        "description": "A hands-on art workshop where young children explore painting and collage.",
        "date": "2024-12-15",
        "time": "10:00 AM",
        "location": "Seattle Community Center",
        "address": "123 Main St, Seattle, WA 98101",
        "price": "$15",
        "age_groups": "Ages 5-10",
        "registration_url": "https://example.com/register",
    }


@pytest.fixture
def fallback_record() -> dict:
    """Every field present, but only under secondary keys."""
    return {
        "name": "Story Time",
        "details": "Weekly story time for toddlers and their grown-ups at the library.",
        "start_date": "2024-12-20",
        "venue": "Central Library",
        "cost": "Free",
        "ages": "Toddlers",
        "website": "https://lib.example.org/storytime",
    }


@pytest.fixture
def problematic_record() -> dict:
    """Non-standard keys and vague values."""
    return {
        "name": "Family Fun Day",
        "info": "Games and crafts for the whole family",
        "venue": "Green Lake Park",
        "when": "Saturday",
        "cost": "TBD",
    }
