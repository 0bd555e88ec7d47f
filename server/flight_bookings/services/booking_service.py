"""Booking lifecycle service: create, cancel and check-in across store, inventory and loyalty."""

from decimal import ROUND_FLOOR, Decimal
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.base import CustomersGateway, FlightsGateway, LoyaltyAdjustment, LoyaltyOperation, SeatCounts
from ..core.config import settings
from ..core.exceptions import (
    BookingNotFoundError,
    CustomerNotFoundError,
    FlightNotFoundError,
    InsufficientInventoryError,
    InvalidTransitionError,
    InventoryReservationFailedError,
    StoreUnavailableError,
)
from ..core.observability import StructuredLogger, get_logger, metrics_collector
from ..models.booking import Booking, BookingStatus
from ..schemas.booking import CreateBookingRequest
from .booking_store import BookingStore, StatusConflictError
from .lifecycle import TRANSITIONS

logger = get_logger(__name__)


def loyalty_points_for(total: Decimal, rate: float = settings.loyalty_points_rate) -> int:
    """Points earned (or forfeited) for a booking total, rounded down."""
    points = (Decimal(total) * Decimal(str(rate))).to_integral_value(rounding=ROUND_FLOOR)
    return max(int(points), 0)


class BookingService:
    """
    Service for booking lifecycle operations.

    Each operation validates first, then commits to the booking store, then
    performs external side effects. A failed seat reservation after the
    booking was written is compensated by deleting the booking; loyalty
    updates and seat releases are best-effort and never change the outcome.
    """

    def __init__(
        self,
        db: AsyncSession,
        flights: FlightsGateway,
        customers: CustomersGateway,
        store: Optional[BookingStore] = None,
        loyalty_points_rate: float = settings.loyalty_points_rate,
    ):
        self.db = db
        self.flights = flights
        self.customers = customers
        self.store = store or BookingStore(db)
        self.loyalty_points_rate = loyalty_points_rate

    async def create_booking(self, request: CreateBookingRequest) -> Booking:
        """
        Create a confirmed booking and reserve its seats.

        Args:
            request: Validated booking creation request

        Returns:
            The created booking, with seats already reserved

        Raises:
            CustomerNotFoundError: If the customer does not exist
            FlightNotFoundError: If the flight does not exist
            InsufficientInventoryError: If any cabin class lacks seats
            InventoryReservationFailedError: If seats could not be reserved (booking rolled back)
            StoreUnavailableError: If the booking could not be written
            UpstreamServiceError: If a customer or flight lookup failed
        """
        log = logger.with_context(customer_id=str(request.customer_id), flight_id=str(request.flight_id))

        customer = await self.customers.get_customer(request.customer_id)
        if customer is None:
            log.warning("Booking rejected - customer not found")
            raise CustomerNotFoundError(str(request.customer_id))

        flight = await self.flights.get_flight(request.flight_id)
        if flight is None:
            log.warning("Booking rejected - flight not found")
            raise FlightNotFoundError(str(request.flight_id))

        seats = SeatCounts.tally(passenger.cabin_class for passenger in request.passengers)
        if not seats.fits_within(flight.available_seats):
            log.warning(
                "Booking rejected - insufficient inventory",
                requested_seats=seats.as_dict(),
                available_seats=flight.available_seats.as_dict(),
            )
            raise InsufficientInventoryError(
                str(request.flight_id),
                requested=seats.as_dict(),
                available=flight.available_seats.as_dict(),
            )

        # Commit point: from here on failures are compensated, not aborted
        booking = await self.store.create(request)
        # A failed rollback expires the ORM instance, so keep plain copies of its keys
        booking_id = booking.id
        log = log.with_context(booking_id=str(booking_id), confirmation_code=booking.confirmation_code)

        try:
            await self.flights.reserve_seats(request.flight_id, seats)
        except Exception as e:
            log.error("Seat reservation failed, rolling back booking", error=str(e))
            rolled_back = await self._roll_back_create(booking_id, log)
            raise InventoryReservationFailedError(
                str(request.flight_id), str(booking_id), rolled_back=rolled_back
            ) from e

        if customer.loyalty_program is not None:
            await self._adjust_loyalty(
                booking,
                LoyaltyOperation.ADD,
                reason=f"Booking {booking.confirmation_code}",
                step="award_loyalty_points",
                log=log,
            )

        metrics_collector.record_booking_created()
        log.info("Booking created successfully", seats=seats.as_dict())
        return booking

    async def cancel_booking(self, booking_id: UUID) -> Booking:
        """
        Cancel a booking, then release its seats and forfeit its loyalty points.

        The cancellation stands even if releasing seats or adjusting points fails.

        Raises:
            BookingNotFoundError: If the booking does not exist
            AlreadyCancelledError: If the booking is already cancelled
            InvalidTransitionError: If the booking has been checked in
        """
        booking = await self.get_booking(booking_id)
        log = logger.with_context(booking_id=str(booking.id), confirmation_code=booking.confirmation_code)

        cancelled = await self._transition(booking, "cancel")
        metrics_collector.record_booking_cancelled()

        seats = SeatCounts.tally(cancelled.cabin_classes())
        if seats.total():
            await self._best_effort(
                "release_seats",
                lambda: self.flights.release_seats(cancelled.flight_id, seats),
                log,
            )

        await self._adjust_loyalty(
            cancelled,
            LoyaltyOperation.SUBTRACT,
            reason=f"Cancellation of booking {cancelled.confirmation_code}",
            step="deduct_loyalty_points",
            log=log,
        )

        log.info("Booking cancelled successfully", seats_released=seats.as_dict())
        return cancelled

    async def check_in(self, booking_id: UUID) -> Booking:
        """
        Check a confirmed booking in.

        Raises:
            BookingNotFoundError: If the booking does not exist
            InvalidTransitionError: If the booking is not confirmed
        """
        booking = await self.get_booking(booking_id)
        checked_in = await self._transition(booking, "check_in")
        metrics_collector.record_booking_checked_in()
        logger.info("Booking checked in", booking_id=str(booking_id))
        return checked_in

    async def get_booking(self, booking_id: UUID) -> Booking:
        """Get booking by ID or raise BookingNotFoundError."""
        booking = await self.store.get_by_id(booking_id)
        if booking is None:
            logger.warning("Booking not found", booking_id=str(booking_id))
            raise BookingNotFoundError(str(booking_id))
        return booking

    async def get_booking_by_confirmation_code(self, code: str) -> Booking:
        """Get booking by confirmation code (case-insensitive) or raise BookingNotFoundError."""
        normalized = code.strip().upper()
        booking = await self.store.get_by_confirmation_code(normalized)
        if booking is None:
            logger.warning("Booking not found by confirmation code", confirmation_code=normalized)
            raise BookingNotFoundError(normalized)
        return booking

    async def list_customer_bookings(self, customer_id: UUID) -> list[Booking]:
        """All of a customer's bookings, newest first."""
        return await self.store.get_by_customer_id(customer_id)

    async def list_flight_bookings(self, flight_id: UUID, status: Optional[BookingStatus] = None) -> list[Booking]:
        return await self.store.get_by_flight_id(flight_id, status=status)

    async def list_bookings_by_status(self, status: BookingStatus) -> list[Booking]:
        return await self.store.get_by_status(status)

    async def _transition(self, booking: Booking, operation: str) -> Booking:
        """Apply a lifecycle transition through the store's conditional write."""
        transition = TRANSITIONS[operation]
        booking_id = str(booking.id)
        new_status = transition(booking_id, booking.status)

        try:
            updated = await self.store.update_status(booking.id, new_status, expected_status=booking.status)
        except StatusConflictError as e:
            # Judge the request against the status that won the race
            transition(booking_id, e.current_status)
            raise InvalidTransitionError(booking_id, e.current_status, operation.replace("_", " ")) from e

        if updated is None:
            # Deleted between read and write
            raise BookingNotFoundError(booking_id)
        return updated

    async def _roll_back_create(self, booking_id: UUID, log: StructuredLogger) -> bool:
        """Delete a booking whose seats could not be reserved; True if it is gone."""
        try:
            await self.store.delete(booking_id)
        except StoreUnavailableError as e:
            log.error("Rollback failed, booking left without reserved seats", error=str(e))
            metrics_collector.record_rollback("failed")
            return False
        metrics_collector.record_rollback("deleted")
        log.info("Booking rolled back")
        return True

    async def _adjust_loyalty(
        self,
        booking: Booking,
        operation: LoyaltyOperation,
        reason: str,
        step: str,
        log: StructuredLogger,
    ) -> None:
        points = loyalty_points_for(booking.total, self.loyalty_points_rate)
        if points == 0:
            return

        adjustment = LoyaltyAdjustment(points=points, operation=operation, reason=reason)
        succeeded = await self._best_effort(
            step,
            lambda: self.customers.adjust_points(booking.customer_id, adjustment),
            log,
        )
        if succeeded:
            metrics_collector.record_loyalty_adjustment(operation.value, points)
            log.info("Loyalty points adjusted", points=points, operation=operation.value)

    async def _best_effort(
        self,
        step: str,
        call: Callable[[], Awaitable[Any]],
        log: StructuredLogger,
    ) -> bool:
        """Run a step whose failure is logged and counted but never propagated."""
        try:
            await call()
        except Exception as e:
            log.warning("Best-effort step failed, continuing", step=step, error=str(e))
            metrics_collector.record_best_effort_failure(step)
            return False
        return True
