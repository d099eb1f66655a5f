"""Test configuration and fixtures."""

import os

# Point the application engine at SQLite before any app module is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from car_rental.core.config import settings
from car_rental.core.database import Base
from car_rental.core.dependencies import get_booking_registry, get_db, get_notifier
from car_rental.models import *  # noqa: F403 - Import all models
from car_rental.models.car import Car
from car_rental.services.booking_store import BookingSessionRegistry
from car_rental.services.notification_service import EmailClient, NotificationDispatcher

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
async def test_session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_session(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def registry():
    """Fresh booking session registry per test."""
    return BookingSessionRegistry()


@pytest.fixture
def notifier(test_session_factory):
    """Dispatcher with email disabled; jobs stay queued until drained by the test."""
    return NotificationDispatcher(
        email_client=EmailClient(api_key=""),
        session_factory=test_session_factory,
        maxsize=100,
    )


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, registry, notifier):
    """Create a test FastAPI application."""
    from fastapi import FastAPI

    from car_rental.core.exceptions import (
        ProblemDetailsException,
        generic_exception_handler,
        problem_details_handler,
    )
    from car_rental.routers import admin, booking, fleet, health, metrics

    # Simplified test app without lifespan or middleware
    app = FastAPI(title="Car Rental Booking API (Test)", version="1.0.0-test")

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router)
    app.include_router(booking.router)
    app.include_router(fleet.router)
    app.include_router(admin.router)
    app.include_router(metrics.router)

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_registry] = lambda: registry
    app.dependency_overrides[get_notifier] = lambda: notifier

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def make_token(roles: list[str], sub: str = "user-1") -> str:
    return jwt.encode({"sub": sub, "roles": roles}, settings.bearer_token_secret, algorithm="HS256")


@pytest.fixture
def admin_headers():
    """Authorization header for an admin user."""
    return {"Authorization": f"Bearer {make_token(['admin'], sub='admin-1')}"}


@pytest.fixture
def customer_headers():
    """Authorization header for a signed-in user without the admin role."""
    return {"Authorization": f"Bearer {make_token([], sub='customer-1')}"}


@pytest.fixture
def sample_car_data():
    """Sample car data for testing."""
    return {
        "name": "Swift",
        "brand": "Maruti Suzuki",
        "category": "5-Seater",
        "category_label": "Hatchback",
        "transmission": "Manual & Automatic",
        "fuel": "Petrol",
        "image": "https://example.com/swift.jpg",
        "images": [],
        "price": 2500,
        "price_3_days": 2200,
        "price_7_days": 2000,
        "price_15_days": 1800,
    }


@pytest_asyncio.fixture
async def fleet(test_session):
    """Three cars covering every transmission value, inserted out of price order."""
    cars = [
        Car(
            name="Creta", brand="Hyundai", category="5-Seater", category_label="SUV",
            transmission="Automatic", fuel="Petrol", images=[],
            price=4000, price_3_days=3700, price_7_days=None, price_15_days=None,
        ),
        Car(
            name="Swift", brand="Maruti Suzuki", category="5-Seater", category_label="Hatchback",
            transmission="Manual & Automatic", fuel="Petrol", images=[],
            price=2500, price_3_days=2200, price_7_days=2000, price_15_days=1800,
        ),
        Car(
            name="Innova", brand="Toyota", category="7-Seater", category_label="MUV",
            transmission="Manual", fuel="Diesel", images=[],
            price=3000, price_3_days=None, price_7_days=None, price_15_days=None,
        ),
    ]
    test_session.add_all(cars)
    await test_session.commit()
    for car in cars:
        await test_session.refresh(car)
    return {car.name: car for car in cars}


@pytest.fixture
def intake_data():
    """Valid intake for a 76-hour trip."""
    return {
        "customer_name": "Asha Rao",
        "customer_phone": "98450 12345",
        "pickup_date": "2024-06-01",
        "pickup_time": "10:00",
        "drop_date": "2024-06-04",
        "drop_time": "14:00",
        "pickup_location": "Hebbal",
        "transmission": "All",
    }
