"""Test configuration and fixtures."""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from flight_bookings.clients.base import (
    Customer,
    Flight,
    LoyaltyAdjustment,
    LoyaltyOperation,
    LoyaltyProgram,
    SeatAvailability,
    SeatCounts,
)
from flight_bookings.core.database import Base
from flight_bookings.core.exceptions import UpstreamServiceError
from flight_bookings.models import *  # noqa: F403 - Import all models
from flight_bookings.schemas.booking import CreateBookingRequest
from flight_bookings.services.booking_service import BookingService
from flight_bookings.services.booking_store import BookingStore

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeFlightsClient:
    """In-memory flights service with switchable failures; records every call."""

    def __init__(self):
        self.seats: dict[UUID, dict[str, int]] = {}
        self.get_calls: list[UUID] = []
        self.reserve_calls: list[tuple[UUID, dict[str, int]]] = []
        self.release_calls: list[tuple[UUID, dict[str, int]]] = []
        self.fail_reserve = False
        self.fail_release = False

    def add_flight(self, economy: int = 50, business: int = 10, first: int = 5) -> UUID:
        flight_id = uuid4()
        self.seats[flight_id] = {"economy": economy, "business": business, "first": first}
        return flight_id

    def available(self, flight_id: UUID) -> dict[str, int]:
        return dict(self.seats[flight_id])

    async def get_flight(self, flight_id: UUID) -> Optional[Flight]:
        self.get_calls.append(flight_id)
        if flight_id not in self.seats:
            return None
        return Flight(
            flight_id=flight_id,
            flight_number="CL123",
            available_seats=SeatAvailability(**self.seats[flight_id]),
        )

    async def reserve_seats(self, flight_id: UUID, seats: SeatCounts) -> SeatAvailability:
        self.reserve_calls.append((flight_id, seats.as_dict()))
        if self.fail_reserve:
            raise UpstreamServiceError("flights", detail="seat update timed out")
        for cabin, count in seats.as_dict().items():
            self.seats[flight_id][cabin] -= count
        return SeatAvailability(**self.seats[flight_id])

    async def release_seats(self, flight_id: UUID, seats: SeatCounts) -> SeatAvailability:
        self.release_calls.append((flight_id, seats.as_dict()))
        if self.fail_release:
            raise UpstreamServiceError("flights", detail="seat update timed out")
        for cabin, count in seats.as_dict().items():
            self.seats[flight_id][cabin] += count
        return SeatAvailability(**self.seats[flight_id])


class FakeCustomersClient:
    """In-memory customers service with switchable loyalty failures."""

    def __init__(self):
        self.points: dict[UUID, Optional[int]] = {}
        self.get_calls: list[UUID] = []
        self.adjust_calls: list[tuple[UUID, LoyaltyAdjustment]] = []
        self.fail_loyalty = False

    def add_customer(self, loyalty: bool = True, points: int = 5000) -> UUID:
        customer_id = uuid4()
        self.points[customer_id] = points if loyalty else None
        return customer_id

    async def get_customer(self, customer_id: UUID) -> Optional[Customer]:
        self.get_calls.append(customer_id)
        if customer_id not in self.points:
            return None
        points = self.points[customer_id]
        return Customer(
            customer_id=customer_id,
            first_name="John",
            last_name="Doe",
            email="john@example.com",
            loyalty_program=LoyaltyProgram(membership_number="LP123456", tier="gold", points=points)
            if points is not None else None,
        )

    async def adjust_points(self, customer_id: UUID, adjustment: LoyaltyAdjustment) -> int:
        self.adjust_calls.append((customer_id, adjustment))
        if self.fail_loyalty:
            raise UpstreamServiceError("customers", detail="loyalty service unavailable")
        current = self.points.get(customer_id) or 0
        if adjustment.operation == LoyaltyOperation.ADD:
            current += adjustment.points
        else:
            current -= adjustment.points
        self.points[customer_id] = current
        return current


def build_booking_request(
    customer_id: UUID,
    flight_id: UUID,
    cabins: tuple[str, ...] = ("economy",),
    total: str = "344.99",
) -> CreateBookingRequest:
    """A valid create request with one passenger per cabin entry."""
    return CreateBookingRequest(
        customer_id=customer_id,
        flight_id=flight_id,
        passengers=[
            {"first_name": f"Passenger{i}", "last_name": "Doe", "cabin_class": cabin}
            for i, cabin in enumerate(cabins)
        ],
        pricing={"base_fare": Decimal("299.99"), "taxes": Decimal("45.00"), "total": Decimal(total)},
        payment={"transaction_id": "txn_123456", "status": "COMPLETED"},
    )


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
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def flights_client():
    return FakeFlightsClient()


@pytest.fixture
def customers_client():
    return FakeCustomersClient()


@pytest.fixture
def booking_store(test_session):
    return BookingStore(test_session)


@pytest.fixture
def booking_service(test_session, flights_client, customers_client):
    return BookingService(test_session, flights=flights_client, customers=customers_client)


@pytest.fixture
def make_booking_request():
    """Factory for valid create requests."""
    return build_booking_request


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, flights_client, customers_client):
    """Create the application with the database and downstream clients overridden."""
    from flight_bookings.core.dependencies import get_customers_client, get_db, get_flights_client
    from flight_bookings.main import create_app

    app = create_app()

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_flights_client] = lambda: flights_client
    app.dependency_overrides[get_customers_client] = lambda: customers_client

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
