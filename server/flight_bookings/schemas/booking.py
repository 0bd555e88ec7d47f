"""Booking-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.booking import BookingStatus, CabinClass, PaymentStatus


class Passenger(BaseModel):
    """A single traveller on a booking."""

    first_name: str = Field(..., min_length=1, max_length=100, description="Passenger first name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Passenger last name")
    seat_number: Optional[str] = Field(None, max_length=8, description="Assigned seat, if any")
    cabin_class: CabinClass = Field(..., description="Cabin class of the seat")


class Pricing(BaseModel):
    """Price breakdown; the total is not cross-checked against fare and taxes."""

    base_fare: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Base fare")
    taxes: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Taxes and fees")
    total: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount charged")


class Payment(BaseModel):
    """Payment reference for a booking."""

    transaction_id: str = Field(..., min_length=1, max_length=128, description="Payment transaction ID")
    status: PaymentStatus = Field(..., description="Payment status")


class CreateBookingRequest(BaseModel):
    """Request schema for creating a booking."""

    customer_id: UUID = Field(..., description="Customer making the booking")
    flight_id: UUID = Field(..., description="Flight to book")
    passengers: List[Passenger] = Field(..., min_length=1, max_length=10, description="Passengers, 1 to 10")
    pricing: Pricing
    payment: Payment


class Booking(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Unique booking ID")
    confirmation_code: str = Field(..., min_length=6, max_length=6, description="Confirmation code")
    customer_id: UUID = Field(..., description="Customer ID")
    flight_id: UUID = Field(..., description="Flight ID")
    passengers: List[Passenger]
    pricing: Pricing
    payment: Payment
    status: BookingStatus = Field(..., description="Booking status")
    created_at: datetime = Field(..., description="Creation time (ISO 8601)")
    updated_at: datetime = Field(..., description="Last status change (ISO 8601)")


class BookingList(BaseModel):
    """A list of bookings."""

    items: List[Booking]
    count: int = Field(..., ge=0)
