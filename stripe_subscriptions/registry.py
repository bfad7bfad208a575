"""Process-wide and per-owner construction of the subscription utilities."""

from typing import Optional

from .billing.client import StripeClientUtil
from .billing.customers import StripeCustomersUtil
from .billing.subscriptions import StripeSubscriptionsUtil

# Global instances
_client_util: Optional[StripeClientUtil] = None
_customers_util: Optional[StripeCustomersUtil] = None
_subscriptions_util: Optional[StripeSubscriptionsUtil] = None


def get_client_util() -> StripeClientUtil:
    """Get global Stripe client provider."""
    global _client_util
    if _client_util is None:
        _client_util = StripeClientUtil()
    return _client_util


def get_customers_util() -> StripeCustomersUtil:
    """Get global customers util."""
    global _customers_util
    if _customers_util is None:
        _customers_util = StripeCustomersUtil(get_client_util())
    return _customers_util


def get_subscriptions_util() -> StripeSubscriptionsUtil:
    """Get global subscriptions util, sharing the global Stripe client."""
    global _subscriptions_util
    if _subscriptions_util is None:
        _subscriptions_util = StripeSubscriptionsUtil(get_client_util(), get_customers_util())
    return _subscriptions_util


def set_subscriptions_util(util: Optional[StripeSubscriptionsUtil]) -> None:
    global _subscriptions_util
    _subscriptions_util = util


def create_subscriptions_util(client_util: Optional[StripeClientUtil] = None) -> StripeSubscriptionsUtil:
    """Build an independent subscriptions util owned by the caller.

    Without a client_util the global client is shared; the caller should
    close() the returned util, which leaves the shared client open.
    """
    client_util = client_util or get_client_util()
    return StripeSubscriptionsUtil(client_util, StripeCustomersUtil(client_util))


async def close_all() -> None:
    """Close and forget the global instances."""
    global _client_util, _customers_util, _subscriptions_util
    if _subscriptions_util is not None:
        await _subscriptions_util.close()
    if _customers_util is not None:
        await _customers_util.close()
    if _client_util is not None:
        await _client_util.close()
    _client_util = None
    _customers_util = None
    _subscriptions_util = None
