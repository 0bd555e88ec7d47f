"""Capability interfaces for the services a booking depends on, and their wire models."""

from collections import Counter
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Protocol
from uuid import UUID

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.exceptions import UpstreamServiceError
from ..core.observability import get_logger

CABIN_CLASSES = ("economy", "business", "first")


class WireModel(BaseModel):
    """Base for payloads exchanged with the flights and customers services (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SeatCounts(WireModel):
    """Seats per cabin class, always non-negative."""

    economy: int = Field(0, ge=0)
    business: int = Field(0, ge=0)
    first: int = Field(0, ge=0)

    @classmethod
    def tally(cls, cabin_classes: Iterable[str]) -> "SeatCounts":
        """Count how many seats of each cabin class a passenger list needs."""
        counts = Counter(str(getattr(cabin, "value", cabin)) for cabin in cabin_classes)
        return cls(**{cabin: counts.get(cabin, 0) for cabin in CABIN_CLASSES})

    def as_dict(self) -> Dict[str, int]:
        return {cabin: getattr(self, cabin) for cabin in CABIN_CLASSES}

    def total(self) -> int:
        return self.economy + self.business + self.first

    def fits_within(self, available: "SeatAvailability") -> bool:
        """True when every cabin class has at least as many seats available as requested."""
        return all(getattr(self, cabin) <= getattr(available, cabin) for cabin in CABIN_CLASSES)


class SeatAvailability(SeatCounts):
    """Seats currently available on a flight."""


class Flight(WireModel):
    """Flight record as served by the flights service."""

    flight_id: UUID
    flight_number: Optional[str] = None
    available_seats: SeatAvailability
    status: Optional[str] = None


class LoyaltyProgram(WireModel):
    """Loyalty programme enrolment."""

    membership_number: str
    tier: Optional[str] = None
    points: int = 0


class Customer(WireModel):
    """Customer record as served by the customers service."""

    customer_id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    loyalty_program: Optional[LoyaltyProgram] = None


class LoyaltyOperation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"


class LoyaltyAdjustment(WireModel):
    """A change to a customer's loyalty balance."""

    points: int = Field(..., ge=0)
    operation: LoyaltyOperation
    reason: str


class InventoryClient(Protocol):
    """Seat inventory owned by the flights service."""

    async def reserve_seats(self, flight_id: UUID, seats: SeatCounts) -> Optional[SeatAvailability]:
        """Take seats out of the flight's availability; None if the change was applied but not echoed back."""
        ...

    async def release_seats(self, flight_id: UUID, seats: SeatCounts) -> Optional[SeatAvailability]:
        """Give previously reserved seats back to the flight."""
        ...


class LoyaltyClient(Protocol):
    """Loyalty balances owned by the customers service."""

    async def adjust_points(self, customer_id: UUID, adjustment: LoyaltyAdjustment) -> int:
        """Apply the adjustment and return the new balance."""
        ...


class CustomerDirectory(Protocol):

    async def get_customer(self, customer_id: UUID) -> Optional[Customer]:
        ...


class FlightDirectory(Protocol):

    async def get_flight(self, flight_id: UUID) -> Optional[Flight]:
        ...


class FlightsGateway(FlightDirectory, InventoryClient, Protocol):
    """Everything a booking needs from the flights service."""


class CustomersGateway(CustomerDirectory, LoyaltyClient, Protocol):
    """Everything a booking needs from the customers service."""


class ApiClient:
    """
    Thin JSON-over-HTTP client for a downstream service.

    Responses are expected in a ``{"data": ...}`` envelope. Transport errors
    and unexpected statuses surface as ``UpstreamServiceError``; retrying is
    left to the transport (``retries`` applies to connection failures only).
    """

    service_name = "downstream"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        retries: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.logger = get_logger(type(self).__module__).with_context(service=self.service_name)
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport or httpx.AsyncHTTPTransport(retries=retries),
            headers={"Content-Type": "application/json"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
        require_body: bool = True,
    ) -> Optional[Dict[str, Any]]:
        """
        Send a request and return the envelope's ``data``.

        Returns None on an allowed 404, and on a successful response whose body
        cannot be read when ``require_body`` is False.
        """
        try:
            response = await self.client.request(method, path, json=json)
        except httpx.HTTPError as e:
            self.logger.error("Downstream request failed", method=method, path=path, error=str(e))
            raise UpstreamServiceError(self.service_name, detail=f"{method} {path} failed: {e}") from e

        if response.status_code == 404 and allow_not_found:
            return None

        if response.is_error:
            self.logger.error(
                "Downstream request returned an error status",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise UpstreamServiceError(
                self.service_name,
                detail=f"{method} {path} returned {response.status_code}",
                upstream_status=response.status_code,
            )

        try:
            return response.json()["data"]
        except (ValueError, KeyError, TypeError) as e:
            if not require_body:
                self.logger.warning(
                    "Downstream request succeeded with an unreadable body",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                )
                return None
            raise UpstreamServiceError(
                self.service_name, detail=f"{method} {path} returned an unreadable body"
            ) from e

    async def aclose(self) -> None:
        await self.client.aclose()
