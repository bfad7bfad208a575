"""Stripe customer lookups used by subscription operations."""

import logging
from typing import Optional

import stripe

from ..async_singleton import AsyncSingleton
from ..monitoring.metrics import track
from .client import StripeClientUtil

logger = logging.getLogger(__name__)


def is_resource_missing(error: stripe.InvalidRequestError) -> bool:
    """True when Stripe reports that the requested object does not exist."""
    return getattr(error, "code", None) == "resource_missing"


class StripeCustomersUtil:
    """Read access to Stripe customers."""

    def __init__(self, client_util: StripeClientUtil):
        self._service = AsyncSingleton(self._build_service)
        self._client_util = client_util

    async def _build_service(self):
        client = await self._client_util.get()
        return client.v1.customers

    async def get(self, customer_id: Optional[str]) -> Optional[stripe.Customer]:
        """Get a customer.

        Args:
            customer_id: Stripe customer ID

        Returns:
            Stripe customer object, or None if it does not exist or was deleted
        """
        if not customer_id:
            return None

        service = await self._service.get()
        try:
            async with track("customers.retrieve"):
                customer = await service.retrieve_async(customer_id)
        except stripe.InvalidRequestError as e:
            if is_resource_missing(e):
                logger.debug("Stripe customer %s not found", customer_id, extra={"customer_id": customer_id})
                return None
            raise

        if getattr(customer, "deleted", False):
            return None
        return customer

    async def close(self) -> None:
        await self._service.dispose()
