import pytest

from modules.cart.reconciler import CartReconciler
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.ledger import StockLedger

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


@pytest.fixture()
def order(order_service, cart, product, shopper_identity, shopper_address):
    cart.add(product, 2)
    return order_service.place_order(shopper_identity, cart, shopper_address.id)


@pytest.fixture()
def order_service():
    return OrderService(order_repository=OrderDjangoRepository(), ledger=StockLedger())


@pytest.fixture()
def cart():
    return CartReconciler(ledger=StockLedger())


def _detail(order):
    return f"{ORDERS_URL}{order.id}/"


class TestReads:
    def test_anonymous_rejected(self, api_client):
        assert api_client.get(ORDERS_URL).status_code == 401

    def test_owner_lists_own_orders(self, shopper_client, other_client, order):
        mine = shopper_client.get(ORDERS_URL).json()
        theirs = other_client.get(ORDERS_URL).json()

        assert [o["id"] for o in mine["results"]] == [str(order.id)]
        assert mine["results"][0]["item_count"] == 2
        assert theirs["count"] == 0

    def test_admin_lists_everything(self, staff_client, order):
        assert staff_client.get(ORDERS_URL).json()["count"] == 1

    def test_filter_by_status(self, staff_client, order):
        assert staff_client.get(ORDERS_URL, {"status": "pending"}).json()["count"] == 1
        assert staff_client.get(ORDERS_URL, {"status": "shipped"}).json()["count"] == 0

    def test_retrieve_own(self, shopper_client, order):
        response = shopper_client.get(_detail(order))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == "20.00"
        assert [h["new_status"] for h in body["status_history"]] == ["pending"]

    def test_retrieve_foreign_is_not_found(self, other_client, order):
        assert other_client.get(_detail(order)).status_code == 404


class TestCancel:
    def test_owner_cancels_pending(self, shopper_client, order, product):
        response = shopper_client.post(f"{_detail(order)}cancel/", {}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["stock_restored"] is True
        product.refresh_from_db()
        assert product.stock_quantity == 3

    def test_repeat_cancel_is_harmless(self, shopper_client, order, product):
        shopper_client.post(f"{_detail(order)}cancel/", {}, format="json")
        response = shopper_client.post(f"{_detail(order)}cancel/", {}, format="json")

        assert response.status_code == 200
        product.refresh_from_db()
        assert product.stock_quantity == 3

    def test_foreign_cancel_is_not_found(self, other_client, order):
        assert other_client.post(f"{_detail(order)}cancel/", {}, format="json").status_code == 404

    def test_owner_cannot_cancel_packed(self, shopper_client, staff_client, order):
        staff_client.patch(_detail(order), {"status": "packed"}, format="json")

        response = shopper_client.post(f"{_detail(order)}cancel/", {}, format="json")

        assert response.status_code == 400


class TestAdminTransitions:
    def test_advance(self, staff_client, order):
        response = staff_client.patch(_detail(order), {"status": "packed"}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == "packed"

    def test_invalid_advance(self, staff_client, order):
        response = staff_client.patch(_detail(order), {"status": "delivered"}, format="json")
        assert response.status_code == 400

    def test_unknown_status(self, staff_client, order):
        response = staff_client.patch(_detail(order), {"status": "lost"}, format="json")
        assert response.status_code == 400

    def test_customer_cannot_advance(self, shopper_client, order):
        response = shopper_client.patch(_detail(order), {"status": "packed"}, format="json")
        assert response.status_code == 403

    def test_override(self, staff_client, order):
        response = staff_client.post(
            f"{_detail(order)}override/", {"status": "delivered", "notes": "handed over"}, format="json"
        )

        assert response.status_code == 200
        history = response.json()["status_history"]
        assert history[-1]["is_override"] is True
        assert history[-1]["new_status"] == "delivered"

    def test_override_terminal_rejected(self, staff_client, order):
        staff_client.post(f"{_detail(order)}cancel/", {}, format="json")

        response = staff_client.post(f"{_detail(order)}override/", {"status": "pending"}, format="json")

        assert response.status_code == 400

    def test_missing_order(self, staff_client):
        response = staff_client.patch(
            f"{ORDERS_URL}00000000-0000-0000-0000-000000000000/", {"status": "packed"}, format="json"
        )
        assert response.status_code == 404


class TestDelete:
    def test_customer_forbidden(self, shopper_client, order):
        assert shopper_client.delete(_detail(order)).status_code == 403
        assert Order.objects.filter(pk=order.pk).exists()

    def test_admin_deletes(self, staff_client, order):
        assert staff_client.delete(_detail(order)).status_code == 204
        assert not Order.objects.filter(pk=order.pk).exists()
