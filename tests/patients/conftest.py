"""
Shared test fixtures and configuration for pytest.
"""

from datetime import date, timedelta
from typing import AsyncGenerator, List

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from patients_api.api.dependencies import get_db
from patients_api.core.revalidation import view_refresh
from patients_api.core.utils import utcnow
from patients_api.db.base import Base
from patients_api.main import app
from patients_api.models.patient_model import Patient


# One in-memory database per test; StaticPool keeps it on a single connection
TEST_DATABASE_URL = "sqlite+aiosqlite://"

API = "/api/patients"


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    This fixture:
    - Creates all tables on a new in-memory database
    - Yields a session
    - Disposes the engine (and with it the database) afterwards
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL, poolclass=StaticPool, echo=False
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with TestSessionLocal() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture
def override_get_db(db_session: AsyncSession):
    """Override the get_db dependency for testing."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture
async def client(override_get_db) -> AsyncGenerator[AsyncClient, None]:
    """Test client talking to the app in-process with the test database."""
    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def refreshed_paths() -> List[List[str]]:
    """Collects every batch of stale view paths emitted during the test."""
    events: List[List[str]] = []
    unsubscribe = view_refresh.subscribe(events.append)
    yield events
    unsubscribe()


@pytest.fixture
def make_patient(db_session: AsyncSession):
    """
    Factory inserting a patient directly through the session.

    ``minutes_ago`` backdates both timestamps so ordering by creation time is
    deterministic.
    """

    async def _make(name: str = "Test Patient", minutes_ago: int = 0, **overrides) -> Patient:
        stamp = utcnow() - timedelta(minutes=minutes_ago)
        fields = {
            "status": "Active",
            "intake_date": date(2024, 1, 1),
            "created_at": stamp,
            "updated_at": stamp,
        }
        fields.update(overrides)
        patient = Patient(name=name, **fields)
        db_session.add(patient)
        await db_session.commit()
        await db_session.refresh(patient)
        return patient

    return _make


@pytest.fixture
def sample_patient_data() -> dict:
    """Sample create payload, keyed the way the dashboard form submits it."""
    return {
        "name": "Jane Doe",
        "email": "jane.doe@example.com",
        "phone": "+15551234567",
        "status": "Intake",
        "intakeDate": "2024-01-01",
        "insuranceStatus": "Pending Approval",
        "dateOfBirth": "1990-05-17",
    }


# Helper functions for tests
def assert_valid_patient_response(data: dict):
    """Assert that response contains a camelCase patient record."""
    for key in (
        "id",
        "name",
        "status",
        "intakeDate",
        "isArchived",
        "createdAt",
        "updatedAt",
    ):
        assert key in data
    assert "is_archived" not in data


def assert_paginated_response(data: dict):
    """Assert that response is a valid {data, meta} page."""
    assert "data" in data
    assert "meta" in data
    for key in ("page", "limit", "totalItems", "totalPages"):
        assert key in data["meta"]
