"""Prometheus metrics for outbound Stripe calls."""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter, Histogram

from .. import config as config_module

stripe_requests_total = Counter(
    "stripe_subscription_requests_total",
    "Total number of Stripe subscription API calls",
    ["operation", "outcome"],
)
stripe_request_latency_seconds = Histogram(
    "stripe_subscription_request_latency_seconds",
    "Stripe subscription API call latency in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30],
)


@asynccontextmanager
async def track(operation: str) -> AsyncIterator[None]:
    """Count and time one Stripe call.

    Outcome is "ok", "error" or "cancelled"; exceptions always re-raise.
    """
    if not config_module.config.METRICS_ENABLED:
        yield
        return

    started = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except asyncio.CancelledError:
        outcome = "cancelled"
        raise
    except Exception:
        outcome = "error"
        raise
    finally:
        stripe_requests_total.labels(operation=operation, outcome=outcome).inc()
        stripe_request_latency_seconds.labels(operation=operation).observe(time.perf_counter() - started)
