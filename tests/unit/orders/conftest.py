import pytest

from modules.cart.reconciler import CartReconciler
from modules.orders.lifecycle import OrderLifecycleService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.ledger import StockLedger


@pytest.fixture()
def ledger():
    return StockLedger()


@pytest.fixture()
def order_service(ledger):
    return OrderService(order_repository=OrderDjangoRepository(), ledger=ledger)


@pytest.fixture()
def lifecycle(ledger):
    return OrderLifecycleService(order_repository=OrderDjangoRepository(), ledger=ledger)


@pytest.fixture()
def cart(ledger):
    return CartReconciler(ledger=ledger)


@pytest.fixture()
def placed_order(order_service, cart, product, shopper_identity, shopper_address):
    """Two units of a 10.00 product that had 3 in stock."""
    cart.add(product, 2)
    return order_service.place_order(shopper_identity, cart, shopper_address.id)
