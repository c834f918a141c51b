"""Pytest fixtures for timecard engine tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from timecard_engine.api.app import create_app
from timecard_engine.api.dependencies import get_db_session
from timecard_engine.models import Base, Client

# In-memory SQLite shared across connections of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

RowFactory = Callable[..., dict[str, Any]]


@pytest_asyncio.fixture
async def engine():
    """Create test database engine with the schema in place."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client_record(session: AsyncSession) -> Client:
    """Create a test client network."""
    client = Client(client_id="1", name="LVHN", status="active")
    session.add(client)
    await session.flush()
    return client


@pytest_asyncio.fixture
async def api_client(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test session injected."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def punch_row() -> RowFactory:
    """Factory for timeclock extract rows with sensible defaults."""

    def make(**overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "EmployeeID": "E100",
            "FirstName": "Dana",
            "LastName": "Reyes",
            "In-Clocking GUID": "guid-1",
            "Hours": "12.5",
            "Paycode": "REG",
            "In-Clocking Date": "2025-06-04",
            "In-Clocking Time": "07:00",
            "Out-Clocking Date": "2025-06-04",
            "Out-Clocking Time": "19:30",
            "UserShiftAnswer-OutClocking": "Yes",
            "Company": "100402",
            "Company Description": "Lehigh Valley Hospital",
            "Cost Center": "09343",
            "Cost Center Description": "ICU",
            "Department": "Nursing",
        }
        row.update(overrides)
        return row

    return make


@pytest.fixture
def crosswalk_rows() -> list[dict[str, Any]]:
    """Employee crosswalk mapping E100 and E200."""
    return [
        {"EEID": "E100", "Employee Number": "NU5001"},
        {"EEID": "E200", "Employee Number": "HS5002"},
    ]


@pytest.fixture
def payroll_row() -> RowFactory:
    """Factory for payroll output rows as consumed by the invoice pipeline."""

    def make(**overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "Employee ID": "5001",
            "Pay Code": "FXDY",
            "Pay Hours": "10.00",
            "Pay Rate": "58",
            "Blank": " ",
            "Lookup TNAA": "100402",
            "Adjusted Pay Rate Date Start": " ",
            "Adjusted Pay Rate Date End": " ",
            "Timecard ID": "guid-1",
            "Meta Info": "6/10/25",
            "Lookup Shift ID": "S-1",
            "Lookup Person Name": "Dana Reyes",
            "In-Clocking Date": "6/4/25",
            "In-Clocking Time": "07:00",
            "Out-Clocking Date": "6/4/25",
            "Out-Clocking Time": "17:30",
            "Approver": "Jennifer Devine",
            "Company": "100402",
            "Company Description": "Lehigh Valley Hospital",
            "Cost Center": "9343",
            "Cost Center Description": "ICU",
        }
        row.update(overrides)
        return row

    return make
