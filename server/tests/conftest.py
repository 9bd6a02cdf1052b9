"""Test configuration and fixtures."""

import os

# Settings are read at import time, so the test environment comes first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("WORKERS_ENABLED", "false")
os.environ.setdefault("BEARER_TOKEN_SECRET", "test-secret")
os.environ.setdefault("CRON_SECRET", "cron-test-secret")

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tramboory.core.clock import business_today
from tramboory.core.database import Base, get_db
from tramboory.core.dependencies import issue_token
from tramboory.core.roles import UserRole
from tramboory.models import *  # noqa: F403 - Import all models

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create a test FastAPI application."""
    from fastapi import FastAPI
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    from tramboory.core.exceptions import (
        ProblemDetailsException,
        generic_exception_handler,
        http_exception_handler,
        problem_details_handler,
        validation_exception_handler,
    )
    from tramboory.routers import (
        access,
        catalog,
        content,
        finances,
        health,
        inventory,
        metrics,
        posts,
        purchase_orders,
        reservations,
        suppliers,
        system_config,
    )

    # Simplified app without lifespan or middleware
    app = FastAPI(
        title="Tramboory API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router)
    app.include_router(access.router)
    app.include_router(system_config.router)
    app.include_router(catalog.router)
    app.include_router(reservations.router)
    app.include_router(reservations.admin_router)
    app.include_router(finances.router)
    app.include_router(inventory.router)
    app.include_router(purchase_orders.router)
    app.include_router(suppliers.router)
    app.include_router(suppliers.portal_router)
    app.include_router(content.router)
    app.include_router(posts.router)
    app.include_router(metrics.router)

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    from httpx import ASGITransport
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def auth_headers(role: UserRole, user_id: str | None = None, email: str | None = None) -> dict:
    """Bearer header for a signed session token with the given role."""
    token = issue_token(
        user_id or f"user_{role.value}",
        role,
        email=email or f"{role.value}@tramboory.test",
        name=f"Test {role.value}",
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_headers():
    return auth_headers


@pytest.fixture
def admin_headers():
    return auth_headers(UserRole.ADMIN)


@pytest.fixture
def manager_headers():
    return auth_headers(UserRole.GERENTE)


@pytest.fixture
def seller_headers():
    return auth_headers(UserRole.VENDEDOR)


@pytest.fixture
def supplier_headers():
    return auth_headers(UserRole.PROVEEDOR)


@pytest.fixture
def customer_headers():
    return auth_headers(UserRole.CUSTOMER)


@pytest.fixture
def bookable_date():
    """A date inside the default booking window (7 to 30 days ahead)."""
    return business_today() + timedelta(days=10)


@pytest.fixture
def sample_package_data():
    """Sample package data for testing."""
    return {
        "name": "Paquete Fiesta",
        "description": "Salón, animación y pastel",
        "pricing": {"weekday": 5000, "weekend": 6500, "holiday": 7000},
        "duration": 4,
        "maxGuests": 60,
        "features": ["Salón", "Animador"],
    }


@pytest.fixture
def sample_reservation_data(bookable_date):
    """Reservation request without the package id."""
    return {
        "eventDate": bookable_date.isoformat(),
        "eventTime": "14:00",
        "customer": {"name": "Ana López", "phone": "5512345678", "email": "Ana@Example.com"},
        "child": {"name": "Sofía", "age": 6},
        "specialComments": "Pastel sin nueces",
    }


@pytest.fixture
def sample_product_data():
    """Sample product data for testing."""
    return {
        "name": "Refresco de cola",
        "sku": "REF-COLA-600",
        "category": "bebidas",
        "baseUnit": "l",
        "alternativeUnits": [{"code": "caja", "name": "Caja 12 x 0.6 l", "conversionFactor": 7.2}],
        "stockLevels": {"minimum": 5, "reorderPoint": 10, "maximum": 100},
        "costPrice": 20,
        "unitPrice": 35,
    }


@pytest.fixture
def sample_supplier_data():
    """Sample supplier data for testing."""
    return {
        "name": "Distribuidora del Valle",
        "code": "DVALLE",
        "contactInfo": {"email": "ventas@dvalle.mx", "phone": "5587654321"},
        "paymentTerms": {"method": "transfer", "creditDays": 30},
    }
