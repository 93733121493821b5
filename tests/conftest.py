import os

# Point the app at in-memory SQLite before src.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator
from src.main import app
from src.database import get_db, Base

# Register every table on Base.metadata
from src.projects.models import Project
from src.feedstocks.models import Feedstock, Certificate
from src.covenants.models import CovenantBreachEvent
from src.lender.models import LenderReport
from src.ci_reports.models import CarbonIntensityReport
from src.audit.models import AuditEvent


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database and session for each test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestingSessionLocal = sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with TestingSessionLocal() as session:
        yield session

    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path):
    """Sessionmaker over a file-backed database, for tests that need independent connections."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'abfi.db'}", echo=False)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Client for testing API endpoints."""
    # Override the get_db dependency to use our test session
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def offline_client() -> AsyncGenerator[AsyncClient, None]:
    """Client whose requests see no configured database."""
    async def override_get_db():
        yield None

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def project(db_session: AsyncSession) -> Project:
    project = Project(name="Riverina Renewable Diesel", developer_name="Murray Bioenergy", state="NSW")
    db_session.add(project)
    await db_session.commit()
    await db_session.refresh(project)
    return project


@pytest.fixture
def feedstock_data():
    """Factory for valid feedstock business fields, as a JSON client sends them."""
    def make(**overrides) -> dict:
        data = {
            "abfi_id": "ABFI-OS-NSW-000123",
            "supplier_id": "0b8a1c52-2f0e-4a57-9d4c-3b2f1e6a7c90",
            "category": "oilseed",
            "type": "Canola",
            "state": "NSW",
            "latitude": "-34.7500",
            "longitude": "146.5500",
            "production_method": "crop",
            "annual_capacity_tonnes": 45000,
            "available_volume_current": 30000,
            "abfi_score": 78,
            "status": "active",
            "verification_level": "document_verified",
        }
        data.update(overrides)
        return data
    return make
