"""
Pytest Configuration and Fixtures

Provides common fixtures for all tests including:
- Application with a per-test SQLite database
- Database sessions and services
- Test tenant with branches
- API client
"""

from typing import AsyncGenerator
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from school_records.api.container import Services
from school_records.api.database.models import Branch, Tenant
from school_records.api.database.session import init_models
from school_records.api.main import create_app
from school_records.config import Settings
from school_records.core.models.grading import GradingConfig, StrategyType


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a fresh SQLite file for each test"""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        environment="test",
        log_level="WARNING",
    )


@pytest.fixture
async def app(settings: Settings):
    """Application with tables created"""
    application = create_app(settings)
    await init_models(application.state.engine)

    yield application

    await application.state.engine.dispose()


@pytest.fixture
def services(app) -> Services:
    return app.state.services


@pytest.fixture
async def db_session(services: Services) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for each test"""
    async with services.session_factory() as session:
        yield session


@pytest.fixture
async def test_tenant(db_session: AsyncSession) -> Tenant:
    """Create a test tenant with two branches (PREFIX_START, '-')"""
    tenant = Tenant(
        id=uuid4(),
        name="Test School",
        subdomain="test",
        admission_format_type="PREFIX_START",
        branch_separator="-",
        branches=[
            Branch(code="KB", name="Kibera"),
            Branch(code="NRB", name="Nairobi West"),
        ],
    )
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest.fixture
async def make_tenant(db_session: AsyncSession):
    """Factory for tenants with a given format type and separator"""

    async def _make(format_type: str = "PREFIX_START", separator: str = "-", branches=("KB",)) -> Tenant:
        tenant = Tenant(
            id=uuid4(),
            name=f"School {format_type} {separator}",
            subdomain=f"school-{uuid4().hex[:8]}",
            admission_format_type=format_type,
            branch_separator=separator,
            branches=[Branch(code=code, name=code) for code in branches],
        )
        db_session.add(tenant)
        await db_session.commit()
        return tenant

    return _make


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing"""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_configs():
    """Aggregation configs across every specificity tier for QUIZ"""
    return [
        GradingConfig(assessment_type="QUIZ", strategy=StrategyType.SIMPLE_AVERAGE),
        GradingConfig(assessment_type="QUIZ", grade="GRADE_1", strategy=StrategyType.BEST_N, n=2),
        GradingConfig(assessment_type="QUIZ", learning_area="MATHEMATICS", strategy=StrategyType.MEDIAN),
        GradingConfig(
            assessment_type="QUIZ",
            grade="GRADE_1",
            learning_area="MATHEMATICS",
            strategy=StrategyType.DROP_LOWEST_N,
            n=1,
        ),
        GradingConfig(assessment_type="HOMEWORK", strategy=StrategyType.WEIGHTED_AVERAGE, weight=0.5),
    ]
