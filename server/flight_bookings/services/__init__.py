"""Service layer package."""

from .booking_service import BookingService, loyalty_points_for
from .booking_store import BookingStore, StatusConflictError, generate_confirmation_code

__all__ = [
    "BookingService",
    "BookingStore",
    "StatusConflictError",
    "generate_confirmation_code",
    "loyalty_points_for",
]
