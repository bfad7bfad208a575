"""Stripe billing utilities."""

from .client import StripeClientUtil
from .customers import StripeCustomersUtil
from .subscriptions import StripeSubscriptionsUtil

__all__ = ["StripeClientUtil", "StripeCustomersUtil", "StripeSubscriptionsUtil"]
