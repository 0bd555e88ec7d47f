"""Booking status transitions for check-in and cancellation."""

from ..core.exceptions import AlreadyCancelledError, InvalidTransitionError
from ..models.booking import BookingStatus


def next_status_for_cancel(booking_id: str, current: str) -> BookingStatus:
    """
    Return the status a cancel moves the booking to.

    Raises:
        AlreadyCancelledError: If the booking is already cancelled
        InvalidTransitionError: If the booking has been checked in
    """
    if current == BookingStatus.CANCELLED:
        raise AlreadyCancelledError(booking_id)
    if current == BookingStatus.CHECKED_IN:
        raise InvalidTransitionError(
            booking_id,
            current_status=BookingStatus.CHECKED_IN.value,
            operation="cancel",
            detail="Cannot cancel a checked-in booking",
        )
    return BookingStatus.CANCELLED


def next_status_for_check_in(booking_id: str, current: str) -> BookingStatus:
    """
    Return the status a check-in moves the booking to.

    Raises:
        InvalidTransitionError: Unless the booking is confirmed
    """
    if current != BookingStatus.CONFIRMED:
        raise InvalidTransitionError(
            booking_id,
            current_status=BookingStatus(current).value,
            operation="check in",
        )
    return BookingStatus.CHECKED_IN


TRANSITIONS = {
    "cancel": next_status_for_cancel,
    "check_in": next_status_for_check_in,
}
