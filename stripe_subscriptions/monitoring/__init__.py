"""Monitoring for outbound Stripe calls."""

from .metrics import track

__all__ = ["track"]
