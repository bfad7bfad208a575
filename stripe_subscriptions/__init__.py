"""Typed asyncio wrapper around Stripe's Subscription API."""

from .async_singleton import AsyncSingleton
from .billing import StripeClientUtil, StripeCustomersUtil, StripeSubscriptionsUtil
from .config import Config
from .registry import (
    close_all,
    create_subscriptions_util,
    get_subscriptions_util,
    set_subscriptions_util,
)

__version__ = "0.1.0"

__all__ = [
    "AsyncSingleton",
    "Config",
    "StripeClientUtil",
    "StripeCustomersUtil",
    "StripeSubscriptionsUtil",
    "close_all",
    "create_subscriptions_util",
    "get_subscriptions_util",
    "set_subscriptions_util",
]
