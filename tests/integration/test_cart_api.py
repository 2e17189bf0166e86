import pytest
from django.core.cache import cache

pytestmark = pytest.mark.integration

CART_URL = "/api/v1/cart/"
ITEMS_URL = "/api/v1/cart/items/"


def _add(client, product, quantity=1):
    return client.post(ITEMS_URL, {"product_id": str(product.id), "quantity": quantity}, format="json")


def test_requires_authentication(api_client):
    assert api_client.get(CART_URL).status_code == 401


def test_empty_cart(shopper_client):
    response = shopper_client.get(CART_URL)

    assert response.status_code == 200
    assert response.json() == {"items": [], "item_count": 0, "total": "0.00"}


def test_add_and_merge(shopper_client, product):
    assert _add(shopper_client, product, 1).status_code == 201
    response = _add(shopper_client, product, 2)

    assert response.status_code == 201
    body = response.json()
    assert body["item_count"] == 3
    assert body["total"] == "30.00"
    assert body["items"][0]["product_id"] == str(product.id)
    assert body["items"][0]["quantity"] == 3


def test_merge_above_stock_conflicts_and_keeps_cart(shopper_client, product):
    _add(shopper_client, product, 2)

    response = _add(shopper_client, product, 2)

    assert response.status_code == 409
    assert response.json()["detail"] == "Only 3 left in stock."
    assert shopper_client.get(CART_URL).json()["item_count"] == 2


def test_out_of_stock(shopper_client, make_product):
    sold_out = make_product(name="Sold Out", stock=0)

    response = _add(shopper_client, sold_out)

    assert response.status_code == 409


def test_unknown_product(shopper_client):
    response = shopper_client.post(
        ITEMS_URL, {"product_id": "00000000-0000-0000-0000-000000000000"}, format="json"
    )
    assert response.status_code == 404


def test_zero_quantity_rejected(shopper_client, product):
    assert _add(shopper_client, product, 0).status_code == 400


def test_update_quantity_clamps(shopper_client, product):
    _add(shopper_client, product, 2)

    response = shopper_client.patch(f"{ITEMS_URL}{product.id}/", {"quantity": 0}, format="json")

    assert response.status_code == 200
    assert response.json()["quantity"] == 1


def test_update_missing_line(shopper_client, product):
    response = shopper_client.patch(f"{ITEMS_URL}{product.id}/", {"quantity": 2}, format="json")
    assert response.status_code == 404


def test_remove_line(shopper_client, product):
    _add(shopper_client, product)

    assert shopper_client.delete(f"{ITEMS_URL}{product.id}/").status_code == 204
    assert shopper_client.get(CART_URL).json()["items"] == []


def test_clear(shopper_client, shopper, product):
    _add(shopper_client, product)

    assert shopper_client.post(f"{CART_URL}clear/").status_code == 204
    assert cache.get(f"cart:{shopper.pk}") is None


def test_carts_are_per_user(shopper_client, other_client, product):
    _add(shopper_client, product)

    assert other_client.get(CART_URL).json()["items"] == []
