"""Stripe client provisioning."""

import logging
from typing import Optional

import stripe

from .. import config as config_module
from ..async_singleton import AsyncSingleton

logger = logging.getLogger(__name__)


class StripeClientUtil:
    """Builds and shares one authenticated stripe.StripeClient.

    The client is created on first use from Config and reused until close().
    """

    def __init__(self, api_key: Optional[str] = None, http_client: Optional[stripe.HTTPClient] = None):
        self._api_key = api_key
        self._http_client = http_client
        self._owns_http_client = False
        self._client: AsyncSingleton[stripe.StripeClient] = AsyncSingleton(self._build, self._release)

    async def get(self) -> stripe.StripeClient:
        """Return the shared client, building it on first call.

        Raises:
            ValueError: If no Stripe secret key is configured
        """
        return await self._client.get()

    async def _build(self) -> stripe.StripeClient:
        cfg = config_module.config
        api_key = self._api_key or cfg.STRIPE_SECRET_KEY
        if not api_key:
            raise ValueError("STRIPE_SECRET_KEY not configured")

        if self._http_client is None:
            self._http_client = stripe.HTTPXClient(timeout=cfg.STRIPE_TIMEOUT_SECONDS)
            self._owns_http_client = True

        logger.debug("Creating Stripe client (live=%s)", api_key.startswith(config_module.LIVE_KEY_PREFIXES))
        return stripe.StripeClient(
            api_key,
            stripe_version=cfg.STRIPE_API_VERSION,
            max_network_retries=cfg.STRIPE_MAX_NETWORK_RETRIES,
            http_client=self._http_client,
        )

    async def _release(self, _client: stripe.StripeClient) -> None:
        # An injected transport belongs to the caller
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.close_async()
            self._http_client = None
            self._owns_http_client = False

    async def close(self) -> None:
        """Drop the client and close the HTTP transport if this util created it."""
        await self._client.dispose()

    async def __aenter__(self) -> "StripeClientUtil":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
