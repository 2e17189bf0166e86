from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.addresses.models import Address
from modules.core.identity import CallerIdentity, Role
from modules.notifications import sinks
from modules.products.models import Product

User = get_user_model()


class RecordingNotificationSink:
    """Keeps every notification in memory for assertions."""

    def __init__(self):
        self.messages = []

    def notify(self, message, severity, recipient_id=""):
        self.messages.append((message, str(severity), recipient_id))

    def severities(self):
        return [severity for _, severity, _ in self.messages]


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def notifications(monkeypatch):
    """Route every ``get_notification_sink()`` call to one recorder."""
    recorder = RecordingNotificationSink()
    monkeypatch.setitem(sinks._SINKS, "log", lambda: recorder)
    return recorder


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users and identities
# ---------------------------------------------------------------------------


@pytest.fixture()
def shopper():
    return User.objects.create_user(username="shopper", password="shopper-pass-123")


@pytest.fixture()
def other_shopper():
    return User.objects.create_user(username="other", password="other-pass-123")


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="staff", password="staff-pass-123", is_staff=True
    )


@pytest.fixture()
def shopper_identity(shopper):
    return CallerIdentity(id=str(shopper.pk))


@pytest.fixture()
def other_identity(other_shopper):
    return CallerIdentity(id=str(other_shopper.pk))


@pytest.fixture()
def admin_identity(staff_user):
    return CallerIdentity(id=str(staff_user.pk), role=Role.ADMIN)


@pytest.fixture()
def shopper_client(shopper):
    client = APIClient()
    client.force_authenticate(user=shopper)
    return client


@pytest.fixture()
def other_client(other_shopper):
    client = APIClient()
    client.force_authenticate(user=other_shopper)
    return client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Catalog and addresses
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    def _make(name="Cotton Kurta", price="10.00", stock=3, **extra):
        return Product.objects.create(
            name=name,
            price=Decimal(price),
            stock_quantity=stock,
            **extra,
        )

    return _make


@pytest.fixture()
def product(make_product):
    return make_product()


@pytest.fixture()
def make_address():
    def _make(user_id, is_default=False, **extra):
        data = {
            "full_name": "Asha Rao",
            "phone": "9876543210",
            "pincode": "560001",
            "address_line": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
        }
        data.update(extra)
        return Address.objects.create(user_id=str(user_id), is_default=is_default, **data)

    return _make


@pytest.fixture()
def shopper_address(make_address, shopper):
    return make_address(shopper.pk, is_default=True)
