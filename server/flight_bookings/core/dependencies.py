"""FastAPI dependencies for database sessions, downstream clients, and the booking service."""

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.base import CustomersGateway, FlightsGateway
from ..services.booking_service import BookingService
from .database import get_async_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency that provides async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async for session in get_async_session():
        yield session


def get_flights_client(request: Request) -> FlightsGateway:
    """Flights service client opened by the application lifespan."""
    return request.app.state.flights_client


def get_customers_client(request: Request) -> CustomersGateway:
    """Customers service client opened by the application lifespan."""
    return request.app.state.customers_client


# Define dependencies to avoid B008 linting errors
DatabaseSession = Depends(get_db)
FlightsClient = Depends(get_flights_client)
CustomersClient = Depends(get_customers_client)


def get_booking_service(
    db: AsyncSession = DatabaseSession,
    flights: FlightsGateway = FlightsClient,
    customers: CustomersGateway = CustomersClient,
) -> BookingService:
    """Booking service bound to the request's session and the shared clients."""
    return BookingService(db, flights=flights, customers=customers)
