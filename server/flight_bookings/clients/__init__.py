"""Clients for the flights and customers services."""

from .base import (
    Customer,
    CustomerDirectory,
    CustomersGateway,
    Flight,
    FlightDirectory,
    FlightsGateway,
    InventoryClient,
    LoyaltyAdjustment,
    LoyaltyClient,
    LoyaltyOperation,
    LoyaltyProgram,
    SeatAvailability,
    SeatCounts,
)
from .customers import CustomersApiClient
from .flights import FlightsApiClient

__all__ = [
    "Customer",
    "CustomerDirectory",
    "CustomersGateway",
    "CustomersApiClient",
    "Flight",
    "FlightDirectory",
    "FlightsGateway",
    "FlightsApiClient",
    "InventoryClient",
    "LoyaltyAdjustment",
    "LoyaltyClient",
    "LoyaltyOperation",
    "LoyaltyProgram",
    "SeatAvailability",
    "SeatCounts",
]
