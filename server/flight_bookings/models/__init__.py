"""Models module exporting all database models."""

from .booking import Booking, BookingStatus, CabinClass, PaymentStatus

__all__ = [
    "Booking",
    "BookingStatus",
    "CabinClass",
    "PaymentStatus",
]
