"""Unit tests for admin catalog operations."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.exceptions import PermissionDenied, Unauthenticated
from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.exceptions import ProductNotFound
from modules.products.ledger import StockLedger
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return ProductService(repository=ProductDjangoRepository())


class TestCreateProduct:
    def test_admin_creates_product(self, service, admin_identity):
        dto = CreateProductDTO(name="Silk Saree", price=Decimal("3999.00"), stock_quantity=4)

        product = service.create_product(dto, actor=admin_identity)

        assert Product.objects.filter(id=product.id).exists()
        assert product.is_low_stock is True

    def test_regular_user_is_denied(self, service, shopper_identity):
        dto = CreateProductDTO(name="Silk Saree", price=Decimal("3999.00"))

        with pytest.raises(PermissionDenied):
            service.create_product(dto, actor=shopper_identity)
        assert Product.objects.count() == 0

    def test_missing_actor_is_unauthenticated(self, service):
        dto = CreateProductDTO(name="Silk Saree", price=Decimal("3999.00"))

        with pytest.raises(Unauthenticated):
            service.create_product(dto, actor=None)


class TestUpdateAndDelete:
    def test_update_changes_stock(self, service, admin_identity, product):
        updated = service.update_product(
            str(product.id), UpdateProductDTO(stock_quantity=10), actor=admin_identity
        )
        assert updated.stock_quantity == 10

    def test_update_missing_raises(self, service, admin_identity):
        with pytest.raises(ProductNotFound):
            service.update_product(
                str(uuid4()), UpdateProductDTO(stock_quantity=1), actor=admin_identity
            )

    def test_rename_keeps_concurrent_decrement(
        self, admin_identity, product, monkeypatch
    ):
        repository = ProductDjangoRepository()
        service = ProductService(repository=repository)
        load = repository.get_by_id

        def load_then_checkout(id):
            loaded = load(id)
            StockLedger().decrement(loaded.id, 2)
            return loaded

        monkeypatch.setattr(repository, "get_by_id", load_then_checkout)

        updated = service.update_product(
            str(product.id), UpdateProductDTO(name="Renamed"), actor=admin_identity
        )

        product.refresh_from_db()
        assert product.name == "Renamed"
        assert product.stock_quantity == 1
        assert updated.stock_quantity == 1

    def test_price_change_keeps_concurrent_restore(
        self, admin_identity, product, monkeypatch
    ):
        repository = ProductDjangoRepository()
        service = ProductService(repository=repository)
        load = repository.get_by_id

        def load_then_cancel(id):
            loaded = load(id)
            StockLedger().restore(loaded.id, 4)
            return loaded

        monkeypatch.setattr(repository, "get_by_id", load_then_cancel)

        service.update_product(
            str(product.id), UpdateProductDTO(price=Decimal("12.50")), actor=admin_identity
        )

        product.refresh_from_db()
        assert product.price == Decimal("12.50")
        assert product.stock_quantity == 7

    def test_delete_removes_product(self, service, admin_identity, product):
        service.delete_product(str(product.id), actor=admin_identity)
        assert not Product.objects.filter(id=product.id).exists()


class TestDtos:
    def test_price_must_be_positive(self):
        with pytest.raises(ValueError):
            CreateProductDTO(name="Tote", price=Decimal("0"))

    def test_negative_stock_rejected(self):
        with pytest.raises(ValueError):
            CreateProductDTO(name="Tote", price=Decimal("1.00"), stock_quantity=-1)


class TestQueries:
    def test_list_products_with_lookups(self, service, make_product):
        make_product(name="Cotton Kurta", stock=0)
        make_product(name="Linen Kurta", stock=4)

        in_stock = service.list_products({"name__icontains": "kurta", "stock_quantity__gt": 0})

        assert [p.name for p in in_stock] == ["Linen Kurta"]

    def test_get_missing_product(self, service):
        with pytest.raises(ProductNotFound):
            service.get_product(str(uuid4()))
