"""Fixtures wiring StripeSubscriptionsUtil to fake Stripe services."""

import pytest

from stripe_subscriptions.billing.customers import StripeCustomersUtil
from stripe_subscriptions.billing.subscriptions import StripeSubscriptionsUtil

from fakes import FakeClientUtil, FakeCustomerService, FakeSubscriptionService, make_customer


@pytest.fixture
def subscription_service():
    return FakeSubscriptionService()


@pytest.fixture
def customer_service():
    service = FakeCustomerService()
    service.customers["cus_1"] = make_customer("cus_1", email="user@example.com")
    return service


@pytest.fixture
def client_util(subscription_service, customer_service):
    return FakeClientUtil(subscription_service, customer_service)


@pytest.fixture
def util(client_util):
    return StripeSubscriptionsUtil(client_util, StripeCustomersUtil(client_util))
