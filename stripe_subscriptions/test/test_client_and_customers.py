"""Tests for Stripe client provisioning and customer lookups."""

import pytest
import stripe

from stripe_subscriptions import config as config_module
from stripe_subscriptions.billing.client import StripeClientUtil
from stripe_subscriptions.billing.customers import StripeCustomersUtil

from fakes import make_customer


class DummyHTTPClient:
    def __init__(self):
        self.closed = False

    async def close_async(self):
        self.closed = True


@pytest.fixture(autouse=True)
def restore_config(monkeypatch):
    yield
    monkeypatch.undo()
    config_module.reload_config()


@pytest.fixture
def stripe_env(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_MAX_NETWORK_RETRIES", "3")
    monkeypatch.setenv("STRIPE_API_VERSION", "2024-06-20")
    config_module.reload_config()


async def test_client_requires_secret_key(monkeypatch):
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    config_module.reload_config()

    util = StripeClientUtil()
    with pytest.raises(ValueError, match="STRIPE_SECRET_KEY not configured"):
        await util.get()


async def test_client_built_once_from_config(stripe_env, monkeypatch):
    created = []

    class RecordingClient:
        def __init__(self, api_key, **kwargs):
            created.append((api_key, kwargs))

    monkeypatch.setattr(stripe, "StripeClient", RecordingClient)
    http_client = DummyHTTPClient()

    async with StripeClientUtil(http_client=http_client) as util:
        first = await util.get()
        second = await util.get()

    assert first is second
    assert len(created) == 1
    api_key, kwargs = created[0]
    assert api_key == "sk_test_123"
    assert kwargs["max_network_retries"] == 3
    assert kwargs["stripe_version"] == "2024-06-20"
    assert kwargs["http_client"] is http_client
    assert not http_client.closed


async def test_close_only_closes_transport_it_built(stripe_env, monkeypatch):
    built = DummyHTTPClient()
    monkeypatch.setattr(stripe, "StripeClient", lambda api_key, **_kw: object())
    monkeypatch.setattr(stripe, "HTTPXClient", lambda timeout: built)

    util = StripeClientUtil()
    await util.get()
    await util.close()

    assert built.closed


async def test_close_leaves_injected_transport_open(stripe_env, monkeypatch):
    injected = DummyHTTPClient()
    monkeypatch.setattr(stripe, "StripeClient", lambda api_key, **_kw: object())

    util = StripeClientUtil(http_client=injected)
    await util.get()
    await util.close()

    assert not injected.closed


async def test_missing_key_does_not_leak_into_later_config():
    assert config_module.config.STRIPE_SECRET_KEY == config_module.Config().STRIPE_SECRET_KEY


async def test_explicit_api_key_wins(stripe_env, monkeypatch):
    created = []
    monkeypatch.setattr(stripe, "StripeClient", lambda api_key, **_kw: created.append(api_key) or object())

    util = StripeClientUtil(api_key="rk_test_override", http_client=DummyHTTPClient())
    await util.get()

    assert created == ["rk_test_override"]


async def test_customer_lookup(client_util, customer_service):
    customers = StripeCustomersUtil(client_util)
    customer_service.customers["cus_deleted"] = make_customer("cus_deleted", deleted=True)

    assert (await customers.get("cus_1")).email == "user@example.com"
    assert await customers.get("cus_missing") is None
    assert await customers.get("cus_deleted") is None
    assert await customers.get(None) is None


async def test_customer_lookup_propagates_rate_limit(client_util, customer_service):
    async def limited(_customer_id):
        raise stripe.RateLimitError("Too many requests")

    customer_service.retrieve_async = limited
    customers = StripeCustomersUtil(client_util)

    with pytest.raises(stripe.RateLimitError):
        await customers.get("cus_1")
