"""Unit tests for the flights and customers HTTP clients."""

import json
from uuid import uuid4

import httpx
import pytest

from flight_bookings.clients.base import LoyaltyAdjustment, LoyaltyOperation, SeatCounts
from flight_bookings.clients.customers import CustomersApiClient
from flight_bookings.clients.flights import FlightsApiClient
from flight_bookings.core.exceptions import UpstreamServiceError
from flight_bookings.models.booking import BookingStatus
from flight_bookings.services.booking_service import BookingService


def flight_payload(flight_id, economy=50, business=10, first=5):
    return {
        "data": {
            "flightId": str(flight_id),
            "flightNumber": "CL123",
            "availableSeats": {"economy": economy, "business": business, "first": first},
            "status": "SCHEDULED",
        }
    }


def customer_payload(customer_id, points=None):
    data = {
        "customerId": str(customer_id),
        "firstName": "John",
        "lastName": "Doe",
        "email": "john@example.com",
    }
    if points is not None:
        data["loyaltyProgram"] = {"membershipNumber": "LP123456", "tier": "gold", "points": points}
    return {"data": data}


class Recorder:
    """MockTransport handler that records requests and replays a canned response."""

    def __init__(self, status_code=200, payload=None, error=None):
        self.status_code = status_code
        self.payload = payload
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.payload)


@pytest.mark.asyncio
async def test_get_flight():
    flight_id = uuid4()
    handler = Recorder(payload=flight_payload(flight_id, economy=12))
    client = FlightsApiClient("http://flights", transport=httpx.MockTransport(handler))

    flight = await client.get_flight(flight_id)

    assert flight.flight_id == flight_id
    assert flight.available_seats.economy == 12
    assert handler.requests[0].method == "GET"
    assert handler.requests[0].url.path == f"/flights/{flight_id}"
    await client.aclose()


@pytest.mark.asyncio
async def test_get_flight_not_found():
    client = FlightsApiClient("http://flights", transport=httpx.MockTransport(Recorder(status_code=404)))

    assert await client.get_flight(uuid4()) is None
    await client.aclose()


@pytest.mark.asyncio
async def test_reserve_seats_sends_negative_deltas():
    """Test only the classes being reserved are sent, as deductions."""
    flight_id = uuid4()
    handler = Recorder(payload=flight_payload(flight_id, economy=48, business=9))
    client = FlightsApiClient("http://flights", transport=httpx.MockTransport(handler))

    remaining = await client.reserve_seats(flight_id, SeatCounts(economy=2, business=1))

    request = handler.requests[0]
    assert request.method == "PUT"
    assert request.url.path == f"/flights/{flight_id}/seats"
    assert json.loads(request.content) == {"economy": -2, "business": -1}
    assert remaining.economy == 48
    await client.aclose()


@pytest.mark.asyncio
async def test_release_seats_sends_positive_deltas():
    flight_id = uuid4()
    handler = Recorder(payload=flight_payload(flight_id))
    client = FlightsApiClient("http://flights", transport=httpx.MockTransport(handler))

    await client.release_seats(flight_id, SeatCounts(first=3))

    assert json.loads(handler.requests[0].content) == {"first": 3}
    await client.aclose()


@pytest.mark.asyncio
async def test_error_status_raises_upstream_error():
    """Test a 5xx from the flights service surfaces as a 502 problem."""
    client = FlightsApiClient("http://flights", transport=httpx.MockTransport(Recorder(status_code=500)))

    with pytest.raises(UpstreamServiceError) as exc_info:
        await client.reserve_seats(uuid4(), SeatCounts(economy=1))

    assert exc_info.value.status_code == 502
    assert exc_info.value.problem_details["service"] == "flights"
    assert exc_info.value.problem_details["upstream_status"] == 500
    await client.aclose()


@pytest.mark.asyncio
async def test_transport_error_raises_upstream_error():
    handler = Recorder(error=httpx.ConnectError("connection refused"))
    client = FlightsApiClient("http://flights", transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamServiceError):
        await client.get_flight(uuid4())
    await client.aclose()


@pytest.mark.asyncio
async def test_unreadable_body_raises_upstream_error():
    """Test a response without the data envelope is rejected."""
    client = FlightsApiClient(
        "http://flights", transport=httpx.MockTransport(Recorder(payload={"unexpected": True}))
    )

    with pytest.raises(UpstreamServiceError):
        await client.get_flight(uuid4())
    await client.aclose()


@pytest.mark.asyncio
async def test_get_customer_with_loyalty():
    customer_id = uuid4()
    handler = Recorder(payload=customer_payload(customer_id, points=1200))
    client = CustomersApiClient("http://customers", transport=httpx.MockTransport(handler))

    customer = await client.get_customer(customer_id)

    assert customer.customer_id == customer_id
    assert customer.loyalty_program.points == 1200
    assert handler.requests[0].url.path == f"/customers/{customer_id}"
    await client.aclose()


@pytest.mark.asyncio
async def test_get_customer_without_loyalty():
    customer_id = uuid4()
    client = CustomersApiClient(
        "http://customers", transport=httpx.MockTransport(Recorder(payload=customer_payload(customer_id)))
    )

    customer = await client.get_customer(customer_id)

    assert customer.loyalty_program is None
    await client.aclose()


@pytest.mark.asyncio
async def test_get_customer_not_found():
    client = CustomersApiClient("http://customers", transport=httpx.MockTransport(Recorder(status_code=404)))

    assert await client.get_customer(uuid4()) is None
    await client.aclose()


@pytest.mark.asyncio
async def test_adjust_points():
    """Test the adjustment body and the returned balance."""
    customer_id = uuid4()
    handler = Recorder(payload=customer_payload(customer_id, points=1234))
    client = CustomersApiClient("http://customers", transport=httpx.MockTransport(handler))

    balance = await client.adjust_points(
        customer_id,
        LoyaltyAdjustment(points=34, operation=LoyaltyOperation.ADD, reason="Booking ABC234"),
    )

    request = handler.requests[0]
    assert request.method == "PUT"
    assert request.url.path == f"/customers/{customer_id}/loyalty-points"
    assert json.loads(request.content) == {"points": 34, "operation": "add", "reason": "Booking ABC234"}
    assert balance == 1234
    await client.aclose()


@pytest.mark.asyncio
async def test_adjust_points_failure():
    client = CustomersApiClient("http://customers", transport=httpx.MockTransport(Recorder(status_code=503)))

    with pytest.raises(UpstreamServiceError) as exc_info:
        await client.adjust_points(
            uuid4(), LoyaltyAdjustment(points=10, operation=LoyaltyOperation.SUBTRACT, reason="x")
        )

    assert exc_info.value.problem_details["service"] == "customers"
    await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, payload",
    [
        (200, {"data": {"flightNumber": "CL1"}}),
        (200, {"status": "ok"}),
        (204, None),
    ],
)
async def test_seat_update_with_unreadable_reply_is_not_a_failure(status_code, payload):
    """Test a successful seat update whose reply cannot be parsed returns None instead of raising."""
    handler = Recorder(status_code=status_code, payload=payload)
    client = FlightsApiClient("http://flights", transport=httpx.MockTransport(handler))

    assert await client.reserve_seats(uuid4(), SeatCounts(economy=1)) is None
    assert await client.release_seats(uuid4(), SeatCounts(economy=1)) is None
    await client.aclose()


@pytest.mark.asyncio
async def test_booking_kept_when_reservation_reply_is_unreadable(
    test_session, customers_client, make_booking_request
):
    """Test seats taken by the flights service are never orphaned by an odd reply."""
    flight_id = uuid4()
    seat_updates = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=flight_payload(flight_id))
        seat_updates.append(json.loads(request.content))
        return httpx.Response(200, json={"data": {"flightNumber": "CL1"}})

    flights = FlightsApiClient("http://flights", transport=httpx.MockTransport(handler))
    customer_id = customers_client.add_customer()
    service = BookingService(test_session, flights=flights, customers=customers_client)

    booking = await service.create_booking(make_booking_request(customer_id, flight_id))

    assert seat_updates == [{"economy": -1}]
    assert booking.status == BookingStatus.CONFIRMED
    assert (await service.store.get_by_id(booking.id)) is not None
    await flights.aclose()
