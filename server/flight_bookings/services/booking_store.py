"""Booking persistence with lookups by id, confirmation code, customer, flight, and status."""

import secrets
from typing import Callable, Optional
from uuid import UUID, uuid4

from sqlalchemy import Select, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import StoreUnavailableError
from ..core.observability import get_logger
from ..models.booking import Booking, BookingStatus, utcnow
from ..schemas.booking import CreateBookingRequest

logger = get_logger(__name__)

# Omits I, O, 0 and 1, which are easily confused when read aloud or typed
CONFIRMATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CONFIRMATION_CODE_LENGTH = 6


def generate_confirmation_code(length: int = CONFIRMATION_CODE_LENGTH) -> str:
    """Generate a random booking confirmation code."""
    return ''.join(secrets.choice(CONFIRMATION_CODE_ALPHABET) for _ in range(length))


def is_confirmation_code_collision(error: IntegrityError) -> bool:
    """Whether an integrity error came from the unique index on the confirmation code."""
    message = str(error.orig).lower()
    return ("unique" in message or "duplicate" in message) and "confirmation_code" in message


class StatusConflictError(Exception):
    """Raised when a conditional status write finds the booking in another status."""

    def __init__(self, booking_id: str, expected_status: str, current_status: str):
        super().__init__(
            f"Booking {booking_id} is {current_status}, expected {expected_status}"
        )
        self.booking_id = booking_id
        self.expected_status = expected_status
        self.current_status = current_status


class BookingStore:
    """
    Durable store for bookings.

    The secondary access paths are indexes on the bookings table, so every
    write keeps them consistent with the row in the same statement.
    """

    def __init__(
        self,
        db: AsyncSession,
        code_attempts: int = settings.confirmation_code_attempts,
        code_generator: Callable[[], str] = generate_confirmation_code,
    ):
        self.db = db
        self.code_attempts = code_attempts
        self.code_generator = code_generator

    async def create(self, request: CreateBookingRequest) -> Booking:
        """
        Write a new CONFIRMED booking with a fresh id and confirmation code.

        A code already taken is redrawn, whether it is seen up front or only
        rejected by the unique index at commit.

        Raises:
            StoreUnavailableError: If the write cannot complete
        """
        for attempt in range(1, self.code_attempts + 1):
            code = self.code_generator()
            if await self.get_by_confirmation_code(code) is not None:
                logger.warning("Confirmation code collision, drawing again", attempt=attempt)
                continue

            now = utcnow()
            booking = Booking(
                id=uuid4(),
                confirmation_code=code,
                customer_id=request.customer_id,
                flight_id=request.flight_id,
                passengers=[passenger.model_dump(mode="json") for passenger in request.passengers],
                base_fare=request.pricing.base_fare,
                taxes=request.pricing.taxes,
                total=request.pricing.total,
                payment_transaction_id=request.payment.transaction_id,
                payment_status=request.payment.status.value,
                status=BookingStatus.CONFIRMED.value,
                created_at=now,
                updated_at=now,
            )
            self.db.add(booking)

            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                if not is_confirmation_code_collision(e):
                    logger.error(
                        "Booking rejected by a table constraint",
                        customer_id=str(request.customer_id),
                        error=str(e.orig),
                    )
                    raise StoreUnavailableError("create") from e
                logger.warning("Confirmation code taken at commit, drawing again", attempt=attempt)
                continue
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error("Failed to write booking", customer_id=str(request.customer_id), error=str(e))
                raise StoreUnavailableError("create") from e

            await self.db.refresh(booking)
            logger.info(
                "Booking written",
                booking_id=str(booking.id),
                confirmation_code=code,
                customer_id=str(request.customer_id),
                flight_id=str(request.flight_id),
            )
            return booking

        raise StoreUnavailableError(
            "create",
            detail=f"Could not allocate a unique confirmation code after {self.code_attempts} attempts",
        )

    async def get_by_id(self, booking_id: UUID) -> Optional[Booking]:
        stmt = select(Booking).where(Booking.id == booking_id)
        return (await self._scalars("get_by_id", stmt)).one_or_none()

    async def get_by_confirmation_code(self, code: str) -> Optional[Booking]:
        """Look a booking up through the unique confirmation code index."""
        stmt = select(Booking).where(Booking.confirmation_code == code)
        return (await self._scalars("get_by_confirmation_code", stmt)).one_or_none()

    async def get_by_customer_id(self, customer_id: UUID) -> list[Booking]:
        """All bookings of a customer, newest first."""
        stmt = (
            select(Booking)
            .where(Booking.customer_id == customer_id)
            .order_by(Booking.created_at.desc(), Booking.id)
        )
        return list(await self._scalars("get_by_customer_id", stmt))

    async def get_by_flight_id(self, flight_id: UUID, status: Optional[BookingStatus] = None) -> list[Booking]:
        """Bookings on a flight, optionally narrowed to one status."""
        stmt = select(Booking).where(Booking.flight_id == flight_id)
        if status is not None:
            stmt = stmt.where(Booking.status == BookingStatus(status).value)
        return list(await self._scalars("get_by_flight_id", stmt))

    async def get_by_status(self, status: BookingStatus) -> list[Booking]:
        """Bookings in a given status, newest first."""
        stmt = (
            select(Booking)
            .where(Booking.status == BookingStatus(status).value)
            .order_by(Booking.created_at.desc(), Booking.id)
        )
        return list(await self._scalars("get_by_status", stmt))

    async def update_status(
        self,
        booking_id: UUID,
        new_status: BookingStatus,
        expected_status: BookingStatus,
    ) -> Optional[Booking]:
        """
        Move a booking from expected_status to new_status in one conditional write.

        Returns:
            The updated booking, or None if it no longer exists

        Raises:
            StatusConflictError: If the booking is no longer in expected_status
            StoreUnavailableError: If the write cannot complete
        """
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == BookingStatus(expected_status).value)
            .values(status=BookingStatus(new_status).value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to update booking status", booking_id=str(booking_id), error=str(e))
            raise StoreUnavailableError("update_status") from e

        booking = await self.get_by_id(booking_id)
        if result.rowcount == 0 and booking is not None:
            logger.warning(
                "Conditional status update lost to a concurrent change",
                booking_id=str(booking_id),
                expected_status=BookingStatus(expected_status).value,
                current_status=booking.status,
            )
            raise StatusConflictError(str(booking_id), BookingStatus(expected_status).value, booking.status)

        if booking is not None:
            logger.info("Booking status updated", booking_id=str(booking_id), status=booking.status)
        return booking

    async def delete(self, booking_id: UUID) -> bool:
        """Hard-delete a booking; only used to roll back a failed create."""
        stmt = delete(Booking).where(Booking.id == booking_id)
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to delete booking", booking_id=str(booking_id), error=str(e))
            raise StoreUnavailableError("delete") from e

        deleted = result.rowcount > 0
        logger.info("Booking deleted", booking_id=str(booking_id), deleted=deleted)
        return deleted

    async def _scalars(self, operation: str, stmt: Select):
        # Always reload rows so a status written by another session is never masked
        try:
            result = await self.db.execute(stmt.execution_options(populate_existing=True))
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Booking store read failed", operation=operation, error=str(e))
            raise StoreUnavailableError(operation) from e
        return result.scalars()
