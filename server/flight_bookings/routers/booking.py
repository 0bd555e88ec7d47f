"""Booking router for booking lifecycle and lookup operations."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..core.dependencies import get_booking_service
from ..core.exceptions import ProblemDetailsException
from ..models.booking import Booking as BookingModel, BookingStatus
from ..schemas.booking import Booking, BookingList, CreateBookingRequest, Passenger, Payment, Pricing
from ..schemas.common import Problem
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["bookings"])

# Define dependencies to avoid B008 linting errors
BOOKING_SERVICE_DEPENDENCY = Depends(get_booking_service)

PROBLEM_RESPONSES = {
    404: {"model": Problem, "description": "Booking, customer or flight not found"},
    409: {"model": Problem, "description": "Conflicts with inventory or booking status"},
    502: {"model": Problem, "description": "A downstream service failed"},
    503: {"model": Problem, "description": "The booking store is unavailable"},
}


def _convert_booking_to_schema(booking_model: BookingModel) -> Booking:
    """Convert booking model to schema."""
    return Booking(
        id=booking_model.id,
        confirmation_code=booking_model.confirmation_code,
        customer_id=booking_model.customer_id,
        flight_id=booking_model.flight_id,
        passengers=[Passenger.model_validate(passenger) for passenger in booking_model.passengers],
        pricing=Pricing(
            base_fare=booking_model.base_fare,
            taxes=booking_model.taxes,
            total=booking_model.total,
        ),
        payment=Payment(
            transaction_id=booking_model.payment_transaction_id,
            status=booking_model.payment_status,
        ),
        status=booking_model.status,
        created_at=booking_model.created_at,
        updated_at=booking_model.updated_at,
    )


def _booking_response(booking_model: BookingModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=_convert_booking_to_schema(booking_model).model_dump(mode="json"),
    )


def _booking_list_response(booking_models: list[BookingModel]) -> JSONResponse:
    items = [_convert_booking_to_schema(booking) for booking in booking_models]
    return JSONResponse(
        status_code=200,
        content=BookingList(items=items, count=len(items)).model_dump(mode="json"),
    )


@router.post("/bookings", response_model=Booking, status_code=201, responses=PROBLEM_RESPONSES)
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = BOOKING_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Create a booking.

    Validates the customer, the flight and seat availability, writes the
    booking and reserves its seats. Loyalty points are awarded when the
    customer is enrolled.
    """
    try:
        booking = await service.create_booking(request)
        return _booking_response(booking, status_code=201)

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "customer_id": str(request.customer_id),
                "flight_id": str(request.flight_id),
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/bookings", response_model=BookingList)
async def list_bookings_by_status(
    status: BookingStatus,
    service: BookingService = BOOKING_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """List bookings in a given status, newest first."""
    return _booking_list_response(await service.list_bookings_by_status(status))


@router.get("/bookings/confirmation/{code}", response_model=Booking, responses=PROBLEM_RESPONSES)
async def get_booking_by_confirmation_code(
    code: str,
    service: BookingService = BOOKING_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Look a booking up by its confirmation code."""
    return _booking_response(await service.get_booking_by_confirmation_code(code))


@router.get("/bookings/{booking_id}", response_model=Booking, responses=PROBLEM_RESPONSES)
async def get_booking(
    booking_id: UUID,
    service: BookingService = BOOKING_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Get booking details."""
    return _booking_response(await service.get_booking(booking_id))


@router.post("/bookings/{booking_id}/cancel", response_model=Booking, responses=PROBLEM_RESPONSES)
async def cancel_booking(
    booking_id: UUID,
    service: BookingService = BOOKING_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Cancel a booking.

    Seats are released and loyalty points deducted on a best-effort basis;
    the cancellation stands even if either fails.
    """
    try:
        booking = await service.cancel_booking(booking_id)
        logger.info(
            "Booking cancelled",
            extra={"booking_id": str(booking_id), "confirmation_code": booking.confirmation_code}
        )
        return _booking_response(booking)

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking cancellation",
            extra={"booking_id": str(booking_id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/bookings/{booking_id}/check-in", response_model=Booking, responses=PROBLEM_RESPONSES)
async def check_in(
    booking_id: UUID,
    service: BookingService = BOOKING_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Check a confirmed booking in."""
    try:
        return _booking_response(await service.check_in(booking_id))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking check-in",
            extra={"booking_id": str(booking_id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/customers/{customer_id}/bookings", response_model=BookingList)
async def list_customer_bookings(
    customer_id: UUID,
    service: BookingService = BOOKING_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """List a customer's bookings, newest first."""
    return _booking_list_response(await service.list_customer_bookings(customer_id))


@router.get("/flights/{flight_id}/bookings", response_model=BookingList)
async def list_flight_bookings(
    flight_id: UUID,
    status: Optional[BookingStatus] = None,
    service: BookingService = BOOKING_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """List the bookings on a flight, optionally only those in one status."""
    return _booking_list_response(await service.list_flight_bookings(flight_id, status=status))
