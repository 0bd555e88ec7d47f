"""Booking model definition."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, DateTime, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class BookingStatus(str, Enum):
    """Booking lifecycle status."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CANCELLED = "CANCELLED"


class CabinClass(str, Enum):
    """Passenger service tier, each with its own seat inventory."""
    ECONOMY = "economy"
    BUSINESS = "business"
    FIRST = "first"


class PaymentStatus(str, Enum):
    """Payment status as reported by the payment provider."""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Booking(Base):
    """Booking entity linking a customer, a flight, and its passengers."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Human-enterable code, immutable after creation
    confirmation_code: Mapped[str] = mapped_column(String(6), nullable=False, unique=True)

    # References owned by other services
    customer_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    flight_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)

    # Ordered list of {"first_name", "last_name", "seat_number", "cabin_class"}
    passengers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)

    # Pricing
    base_fare: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    taxes: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Payment
    payment_transaction_id: Mapped[str] = mapped_column(String(128), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(String(20), nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.CONFIRMED
    )

    # Timestamps, set explicitly by the store
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Constraints and secondary access paths
    __table_args__ = (
        CheckConstraint("base_fare > 0", name="ck_booking_base_fare_positive"),
        CheckConstraint("taxes >= 0", name="ck_booking_taxes_non_negative"),
        CheckConstraint("total > 0", name="ck_booking_total_positive"),
        CheckConstraint("length(confirmation_code) = 6", name="ck_booking_confirmation_code_length"),
        Index("ix_bookings_customer_created", "customer_id", "created_at"),
        Index("ix_bookings_flight_status", "flight_id", "status"),
        Index("ix_bookings_status_created", "status", "created_at"),
    )

    def cabin_classes(self) -> list[str]:
        """Cabin class of every passenger, in passenger order."""
        return [passenger["cabin_class"] for passenger in self.passengers]

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, confirmation_code='{self.confirmation_code}', "
            f"flight_id={self.flight_id}, passengers={len(self.passengers)}, status={self.status})>"
        )
