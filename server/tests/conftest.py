"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from revvdoc.config import settings
from revvdoc.main import app
from revvdoc.models.base import Base
from revvdoc.models.booking import Booking, BookingStatus, BookingTimeWindow
from revvdoc.models.service import Service, ServiceCategory
from revvdoc.models.user import User, UserRole
from revvdoc.models.vehicle import Vehicle
from revvdoc.services.booking_state import BookingStateMachine, get_booking_state_machine
from revvdoc.services.database import get_db
from revvdoc.utils.background_tasks import BackgroundTaskDispatcher
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

TEST_JWT_SECRET = "test-secret"  # pragma: allowlist secret

CUSTOMER_ID = "customer-1"
OTHER_CUSTOMER_ID = "customer-2"
TECH_ID = "tech-1"
OTHER_TECH_ID = "tech-2"
ADMIN_ID = "admin-1"

TEST_VIN = "1HGCM82633A004352"


def make_token(user_id: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Mint a signed bearer token for ``user_id``."""
    claims = {"sub": user_id, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, TEST_JWT_SECRET, algorithm="HS256")


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture(autouse=True)
def jwt_settings(monkeypatch):
    """Verify tokens against the test secret, without audience checks."""
    monkeypatch.setattr(settings, "AUTH_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setattr(settings, "AUTH_JWT_ALGORITHM", "HS256")
    monkeypatch.setattr(settings, "AUTH_JWT_AUDIENCE", None)


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """File-backed SQLite engine; NullPool gives every session its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'revvdoc_test.db'}", poolclass=NullPool, echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def dispatcher(db_engine):
    """Background dispatcher drained before the database goes away."""
    dispatcher = BackgroundTaskDispatcher()
    yield dispatcher
    await dispatcher.drain()


@pytest.fixture
def geocode_calls():
    return []


@pytest.fixture
def state_machine(session_maker, dispatcher, geocode_calls):
    """State machine with a recording geocoder that never resolves."""

    async def fake_geocoder(full_address):
        geocode_calls.append(full_address)
        return None

    return BookingStateMachine(
        session_factory=session_maker, geocoder=fake_geocoder, dispatcher=dispatcher
    )


@pytest_asyncio.fixture(scope="function")
async def client(session_maker, state_machine) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client; every request gets its own session, like production."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_state_machine] = lambda: state_machine

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def users(db_session: AsyncSession):
    """Customers, technicians and an admin."""
    db_session.add_all(
        [
            User(id=CUSTOMER_ID, role=UserRole.CUSTOMER, name="Jane Driver", email="jane@example.com"),
            User(id=OTHER_CUSTOMER_ID, role=UserRole.CUSTOMER, name="Sam Other"),
            User(id=TECH_ID, role=UserRole.TECHNICIAN, name="Tom Wrench", is_available=True),
            User(id=OTHER_TECH_ID, role=UserRole.TECHNICIAN, name="Tina Torque", is_available=True),
            User(id=ADMIN_ID, role=UserRole.ADMIN, name="Ada Admin"),
        ]
    )
    await db_session.commit()


@pytest_asyncio.fixture
async def vehicle(db_session: AsyncSession, users) -> Vehicle:
    vehicle = Vehicle(
        owner_id=CUSTOMER_ID,
        vin=TEST_VIN,
        make="Honda",
        model="Accord",
        year=2018,
        nickname="Daily",
        mileage=50000,
    )
    db_session.add(vehicle)
    await db_session.commit()
    return vehicle


@pytest_asyncio.fixture
async def service(db_session: AsyncSession) -> Service:
    service = Service(
        name="Synthetic Oil Change",
        category=ServiceCategory.MECHANIC,
        base_price=8999,
        duration_mins=45,
        is_active=True,
    )
    db_session.add(service)
    await db_session.commit()
    return service


async def create_booking_row(db: AsyncSession, vehicle: Vehicle, service: Service, **overrides) -> Booking:
    """Insert a booking directly, bypassing creation checks."""
    values = dict(
        customer_id=vehicle.owner_id,
        technician_id=None,
        job_id=None,
        vehicle_id=vehicle.id,
        service_id=service.id,
        service_snapshot={
            "serviceId": service.id,
            "name": service.name,
            "category": service.category.value,
            "basePrice": service.base_price,
            "durationMins": service.duration_mins,
        },
        vehicle_snapshot={
            "vehicleId": vehicle.id,
            "vin": vehicle.vin,
            "make": vehicle.make,
            "model": vehicle.model,
            "year": vehicle.year,
            "nickname": vehicle.nickname,
            "mileage": vehicle.mileage,
        },
        scheduled_at=datetime.now(timezone.utc) + timedelta(days=2),
        scheduled_time_window=BookingTimeWindow.MORNING,
        status=BookingStatus.PENDING,
        address={"street": "1 Main St", "city": "Austin", "state": "TX", "zip": "78701"},
        total_price=service.base_price,
        notes="Customer notes",
    )
    values.update(overrides)
    booking = Booking(**values)
    db.add(booking)
    await db.commit()
    return booking


@pytest_asyncio.fixture
async def pending_booking(db_session: AsyncSession, vehicle, service) -> Booking:
    return await create_booking_row(db_session, vehicle, service)
