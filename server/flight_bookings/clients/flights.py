"""HTTP client for the flights service: flight lookup and seat inventory."""

from typing import Dict, Optional
from uuid import UUID

from pydantic import ValidationError

from .base import CABIN_CLASSES, ApiClient, Flight, SeatAvailability, SeatCounts


class FlightsApiClient(ApiClient):
    """Flights service client implementing ``FlightDirectory`` and ``InventoryClient``."""

    service_name = "flights"

    async def get_flight(self, flight_id: UUID) -> Optional[Flight]:
        """Fetch a flight, or None if the flights service does not know it."""
        self.logger.info("Fetching flight", flight_id=str(flight_id))
        data = await self._request("GET", f"/flights/{flight_id}", allow_not_found=True)
        if data is None:
            return None
        return Flight.model_validate(data)

    async def reserve_seats(self, flight_id: UUID, seats: SeatCounts) -> Optional[SeatAvailability]:
        """Deduct seats; the flights service applies the signed deltas atomically."""
        self.logger.info("Reserving seats", flight_id=str(flight_id), seats=seats.as_dict())
        return await self._update_seats(flight_id, {cabin: -count for cabin, count in seats.as_dict().items()})

    async def release_seats(self, flight_id: UUID, seats: SeatCounts) -> Optional[SeatAvailability]:
        """Add seats back to the flight's availability."""
        self.logger.info("Releasing seats", flight_id=str(flight_id), seats=seats.as_dict())
        return await self._update_seats(flight_id, seats.as_dict())

    async def _update_seats(self, flight_id: UUID, deltas: Dict[str, int]) -> Optional[SeatAvailability]:
        """
        Apply seat deltas and return the availability echoed back.

        Only a transport failure or an error status means the update was not
        applied. A successful reply that cannot be read yields None, because
        the seats have already moved.
        """
        # Only classes that actually change are sent
        payload = {cabin: deltas[cabin] for cabin in CABIN_CLASSES if deltas[cabin]}
        data = await self._request("PUT", f"/flights/{flight_id}/seats", json=payload, require_body=False)
        try:
            return Flight.model_validate(data).available_seats
        except ValidationError as e:
            self.logger.warning(
                "Seat update applied but the reply could not be read",
                flight_id=str(flight_id),
                error=str(e),
            )
            return None
