"""HTTP client for the customers service: customer lookup and loyalty points."""

from typing import Optional
from uuid import UUID

from .base import ApiClient, Customer, LoyaltyAdjustment


class CustomersApiClient(ApiClient):
    """Customers service client implementing ``CustomerDirectory`` and ``LoyaltyClient``."""

    service_name = "customers"

    async def get_customer(self, customer_id: UUID) -> Optional[Customer]:
        """Fetch a customer, or None if the customers service does not know them."""
        self.logger.info("Fetching customer", customer_id=str(customer_id))
        data = await self._request("GET", f"/customers/{customer_id}", allow_not_found=True)
        if data is None:
            return None
        return Customer.model_validate(data)

    async def adjust_points(self, customer_id: UUID, adjustment: LoyaltyAdjustment) -> int:
        """Apply a loyalty adjustment and return the customer's new balance."""
        self.logger.info(
            "Adjusting loyalty points",
            customer_id=str(customer_id),
            points=adjustment.points,
            operation=adjustment.operation.value,
        )
        data = await self._request(
            "PUT",
            f"/customers/{customer_id}/loyalty-points",
            json=adjustment.model_dump(mode="json"),
        )
        customer = Customer.model_validate(data)
        return customer.loyalty_program.points if customer.loyalty_program else 0
