"""Stripe subscription management.

Every operation delegates to the Stripe SDK's async subscription service.
Read paths turn "no such subscription" into None; any other Stripe error
propagates to the caller unchanged.
"""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional, Union

import stripe

from ..async_singleton import AsyncSingleton
from ..monitoring.metrics import track
from .client import StripeClientUtil
from .customers import StripeCustomersUtil, is_resource_missing

USER_ID_METADATA_KEY = "userId"
ACTIVE_STATUS = "active"

Timestamp = Union[datetime, int]


def to_unix_seconds(when: Timestamp, tz: Optional[tzinfo] = None) -> int:
    """Convert a datetime (naive values are read in tz, default UTC) to unix seconds."""
    if isinstance(when, bool):
        raise TypeError("timestamp must be a datetime or unix seconds, not bool")
    if isinstance(when, int):
        return when
    if when.tzinfo is None:
        when = when.replace(tzinfo=tz or timezone.utc)
    return int(when.timestamp())


def format_in_tz(when: datetime, tz: Optional[tzinfo] = None) -> str:
    if when.tzinfo is None:
        when = when.replace(tzinfo=tz or timezone.utc)
    return when.astimezone(tz or timezone.utc).strftime("%Y-%m-%d %I:%M:%S %p %Z")


def build_user_id_query(user_id: str) -> str:
    """Search query matching the application user id stored in metadata."""
    escaped = user_id.replace("\\", "\\\\").replace('"', '\\"')
    return f'metadata["{USER_ID_METADATA_KEY}"]:"{escaped}"'


class StripeSubscriptionsUtil:
    """Create, read, update and cancel Stripe subscriptions."""

    def __init__(
        self,
        client_util: StripeClientUtil,
        customers_util: StripeCustomersUtil,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._customers_util = customers_util
        self._client_util = client_util
        self._service = AsyncSingleton(self._build_service)

    async def _build_service(self):
        client = await self._client_util.get()
        return client.v1.subscriptions

    async def create(
        self,
        customer_id: str,
        price_id: str,
        user_id: str,
        payment_method_id: Optional[str] = None,
        trial_end: Optional[Timestamp] = None,
    ) -> Optional[stripe.Subscription]:
        """Create a subscription for a customer.

        The application user id is stored in metadata so the subscription
        can later be found with get_by_user_id(). Automatic tax is disabled.

        Args:
            customer_id: Stripe customer ID
            price_id: Stripe price ID for the single subscription item
            user_id: Application user identifier
            payment_method_id: Optional default payment method
            trial_end: Optional trial end (datetime or unix seconds)

        Returns:
            The created subscription
        """
        self._logger.info(
            "Creating subscription for customer %s (user %s) ...", customer_id, user_id,
            extra={"operation": "create", "customer_id": customer_id, "user_id": user_id},
        )

        params: Dict[str, Any] = {
            "customer": customer_id,
            "items": [{"price": price_id}],
            "metadata": {USER_ID_METADATA_KEY: user_id},
            "automatic_tax": {"enabled": False},
        }
        if payment_method_id:
            params["default_payment_method"] = payment_method_id
        if trial_end is not None:
            params["trial_end"] = to_unix_seconds(trial_end)

        service = await self._service.get()
        async with track("create"):
            subscription = await service.create_async(params)

        self._logger.debug(
            "Created subscription %s for customer %s", getattr(subscription, "id", None), customer_id,
            extra={"operation": "create", "customer_id": customer_id},
        )
        return subscription

    async def get_by_id(self, subscription_id: Optional[str]) -> Optional[stripe.Subscription]:
        """Retrieve a subscription, or None if it does not exist."""
        if not subscription_id:
            return None

        service = await self._service.get()
        try:
            async with track("retrieve"):
                return await service.retrieve_async(subscription_id)
        except stripe.InvalidRequestError as e:
            if is_resource_missing(e):
                return None
            raise

    async def get_by_customer_id(self, customer_id: Optional[str]) -> Optional[stripe.Subscription]:
        """First subscription of a customer, or None."""
        if not customer_id:
            return None

        service = await self._service.get()
        async with track("list"):
            result = await service.list_async({"customer": customer_id, "limit": 1})

        data = result.data if result is not None else None
        if not data:
            return None
        return data[0]

    async def get_by_user_id(self, user_id: str) -> Optional[stripe.Subscription]:
        """Find a subscription by application user id (not the Stripe subscription id)."""
        service = await self._service.get()
        async with track("search"):
            result = await service.search_async({"query": build_user_id_query(user_id)})

        data = result.data if result is not None else None
        if not data:
            return None
        return data[0]

    async def get_all(self, active_only: bool = True) -> List[stripe.Subscription]:
        """All subscriptions, paging through the whole collection.

        Use with caution: this reads every subscription on the account.
        """
        self._logger.debug("Getting all Stripe subscriptions...")

        service = await self._service.get()
        result: List[stripe.Subscription] = []
        async with track("list_all"):
            page = await service.list_async({"limit": 100})
            async for subscription in page.auto_paging_iter():
                result.append(subscription)

        if active_only:
            result = [s for s in result if s.status == ACTIVE_STATUS]

        self._logger.debug("Finished retrieving all Stripe subscriptions (%d)", len(result))

        if not result:
            self._logger.warning("Stripe subscription response is empty")

        return result

    async def update(self, subscription_id: str, params: Dict[str, Any]) -> Optional[stripe.Subscription]:
        """Update a subscription; proration is off unless params say otherwise."""
        params = dict(params)
        params.setdefault("proration_behavior", "none")

        service = await self._service.get()
        async with track("update"):
            return await service.update_async(subscription_id, params)

    async def update_price(self, subscription_id: str, price_id: str) -> Optional[stripe.Subscription]:
        """Swap the price on the subscription's first item, without proration."""
        subscription = await self.get_by_id(subscription_id)
        if subscription is None:
            return None

        items = subscription["items"].data if "items" in subscription else []
        if not items:
            self._logger.warning(
                "Subscription %s has no items, cannot change price", subscription_id,
                extra={"operation": "update_price", "subscription_id": subscription_id},
            )
            return None

        return await self.update(
            subscription_id,
            {
                "items": [{"id": items[0].id, "price": price_id}],
                "proration_behavior": "none",
            },
        )

    async def update_billing_anchor(
        self,
        subscription: stripe.Subscription,
        when: datetime,
        tz: Optional[tzinfo] = None,
    ) -> Optional[stripe.Subscription]:
        """Move the billing anchor by setting trial_end to the given time.

        Returns None without updating when the owning customer no longer exists.
        """
        customer = await self._customers_util.get(subscription.customer)
        if customer is None:
            self._logger.debug(
                "Stripe customer is null for subscription (%s), skipping", subscription.id,
                extra={"operation": "update_billing_anchor", "subscription_id": subscription.id},
            )
            return None

        self._logger.debug(
            "Updating billing anchor for customer (%s) to (%s) ...",
            getattr(customer, "email", None) or customer.id, format_in_tz(when, tz),
            extra={"operation": "update_billing_anchor", "subscription_id": subscription.id},
        )

        return await self.update(
            subscription.id,
            {
                "trial_end": to_unix_seconds(when, tz),
                "proration_behavior": "none",
            },
        )

    async def update_billing_anchor_for_all(self, when: datetime, tz: Optional[tzinfo] = None) -> None:
        """Apply update_billing_anchor() to every active subscription, one at a time."""
        subscriptions = await self.get_all()

        self._logger.debug("Updating billing anchor for all subscriptions to dateTime (%s) ...", format_in_tz(when, tz))

        for subscription in subscriptions:
            await self.update_billing_anchor(subscription, when, tz)

    async def cancel_by_id(self, subscription_id: str) -> Optional[stripe.Subscription]:
        """Cancel a subscription immediately."""
        self._logger.info(
            "Canceling subscription %s", subscription_id,
            extra={"operation": "cancel", "subscription_id": subscription_id},
        )
        service = await self._service.get()
        async with track("cancel"):
            return await service.cancel_async(subscription_id)

    async def cancel_by_user_id(self, user_id: str) -> Optional[stripe.Subscription]:
        """Cancel the user's subscription; no-op returning None if there is none."""
        subscription = await self.get_by_user_id(user_id)
        if subscription is None:
            self._logger.debug(
                "No subscription for user %s, nothing to cancel", user_id,
                extra={"operation": "cancel", "user_id": user_id},
            )
            return None
        return await self.cancel_by_id(subscription.id)

    async def cancel_at_period_end(self, subscription_id: str) -> Optional[stripe.Subscription]:
        return await self.update(subscription_id, {"cancel_at_period_end": True})

    async def reactivate(self, subscription_id: str) -> Optional[stripe.Subscription]:
        """Undo a pending cancel-at-period-end."""
        return await self.update(subscription_id, {"cancel_at_period_end": False})

    async def cancel_all(self) -> None:
        """Cancel every subscription on the account, sequentially.

        The first failing cancel propagates and leaves the rest untouched.
        """
        self._logger.warning("Canceling all subscriptions...")

        subscriptions = await self.get_all(active_only=False)

        service = await self._service.get()
        for subscription in subscriptions:
            async with track("cancel"):
                await service.cancel_async(subscription.id)

        self._logger.warning("Canceled all subscriptions (%d)", len(subscriptions))

    async def is_active(self, subscription_id: str) -> bool:
        subscription = await self.get_by_id(subscription_id)
        return subscription is not None and subscription.status == ACTIVE_STATUS

    async def close(self) -> None:
        """Drop the cached subscription service."""
        await self._service.dispose()

    async def __aenter__(self) -> "StripeSubscriptionsUtil":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
