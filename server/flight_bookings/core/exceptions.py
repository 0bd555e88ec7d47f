"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

from typing import Any, Dict, Optional
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
import uuid
from datetime import datetime, timezone


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        # Create the problem details object
        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        # Add extensions
        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    @property
    def code(self) -> Optional[str]:
        """Application-specific error code, if one was attached."""
        return self.problem_details.get("code")


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://example.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://example.com/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class UpstreamServiceError(ProblemDetailsException):
    """Exception when a downstream service is unreachable or answers with an error."""

    def __init__(
        self,
        service: str,
        detail: Optional[str] = None,
        upstream_status: Optional[int] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The {service} service could not complete the request"

        extensions: Dict[str, Any] = {
            "code": "UPSTREAM_FAILURE",
            "retryable": True,
            "service": service,
        }
        if upstream_status is not None:
            extensions["upstream_status"] = upstream_status

        super().__init__(
            status_code=502,
            title="Upstream Service Error",
            detail=detail,
            type_uri="https://example.com/problems/upstream-service-error",
            instance=instance,
            extensions=extensions,
        )


class StoreUnavailableError(ProblemDetailsException):
    """Exception when the booking store cannot complete a read or write."""

    def __init__(
        self,
        operation: str,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The booking store could not complete '{operation}'"

        super().__init__(
            status_code=503,
            title="Booking Store Unavailable",
            detail=detail,
            type_uri="https://example.com/problems/store-unavailable",
            instance=instance,
            extensions={
                "code": "STORE_UNAVAILABLE",
                "retryable": True,
                "operation": operation,
            },
        )


# Business logic exceptions

class BookingNotFoundError(NotFoundError):
    """Exception when a booking cannot be found by id or confirmation code."""

    def __init__(self, booking_ref: str):
        super().__init__(resource_type="booking", resource_id=booking_ref)
        self.problem_details.update({"code": "BOOKING_NOT_FOUND", "retryable": False})


class CustomerNotFoundError(NotFoundError):
    """Exception when the customer referenced by a booking does not exist."""

    def __init__(self, customer_id: str):
        super().__init__(resource_type="customer", resource_id=customer_id)
        self.problem_details.update({"code": "CUSTOMER_NOT_FOUND", "retryable": False})


class FlightNotFoundError(NotFoundError):
    """Exception when the flight referenced by a booking does not exist."""

    def __init__(self, flight_id: str):
        super().__init__(resource_type="flight", resource_id=flight_id)
        self.problem_details.update({"code": "FLIGHT_NOT_FOUND", "retryable": False})


class InsufficientInventoryError(ConflictError):
    """Exception when a flight lacks seats in one or more cabin classes."""

    def __init__(self, flight_id: str, requested: Dict[str, int], available: Dict[str, int]):
        short = sorted(cabin for cabin, count in requested.items() if count > available.get(cabin, 0))
        super().__init__(
            detail=f"Flight {flight_id} has insufficient seats in: {', '.join(short)}",
            conflicting_resource={
                "flight_id": flight_id,
                "requested_seats": requested,
                "available_seats": available,
            }
        )
        self.problem_details.update({
            "code": "INSUFFICIENT_INVENTORY",
            "retryable": False
        })


class InvalidTransitionError(ConflictError):
    """Exception when a booking's status does not allow the requested transition."""

    def __init__(self, booking_id: str, current_status: str, operation: str, detail: Optional[str] = None):
        super().__init__(
            detail=detail or f"Cannot {operation} booking {booking_id} with status {current_status}",
            conflicting_resource={
                "booking_id": booking_id,
                "current_status": current_status,
                "operation": operation,
            }
        )
        self.current_status = current_status
        self.problem_details.update({
            "code": "INVALID_TRANSITION",
            "retryable": False
        })


class AlreadyCancelledError(ConflictError):
    """Exception when cancelling a booking that is already cancelled."""

    def __init__(self, booking_id: str):
        super().__init__(
            detail=f"Booking {booking_id} is already cancelled",
            conflicting_resource={"booking_id": booking_id, "current_status": "CANCELLED"}
        )
        self.problem_details.update({
            "code": "ALREADY_CANCELLED",
            "retryable": False
        })


class InventoryReservationFailedError(ProblemDetailsException):
    """Exception when seats could not be reserved after the booking was written."""

    def __init__(self, flight_id: str, booking_id: str, rolled_back: bool = True):
        super().__init__(
            status_code=502,
            title="Inventory Reservation Failed",
            detail=f"Failed to reserve seats on flight {flight_id}; booking was not created",
            type_uri="https://example.com/problems/inventory-reservation-failed",
            extensions={
                "code": "INVENTORY_RESERVATION_FAILED",
                "retryable": True,
                "flight_id": flight_id,
                "booking_id": booking_id,
                "rolled_back": rolled_back,
            },
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    content = dict(exc.problem_details)
    content.setdefault("instance", str(request.url.path))
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    problem_details = {
        "type": "https://example.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": error_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
        media_type="application/problem+json",
    )
