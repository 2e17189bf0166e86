"""Cart API views.

The cart belongs to the authenticated caller and is loaded from / saved
to ``CartStorage`` around each request.  Stock conflicts answer 409 and
leave the stored cart unchanged.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.cart.exceptions import CartError
from modules.cart.serializers import (
    AddItemSerializer,
    CartItemSerializer,
    CartSerializer,
    UpdateQuantitySerializer,
)
from modules.cart.storage import CartStorage
from modules.core.identity import identity_from_user
from modules.notifications.sinks import get_notification_sink
from modules.products.exceptions import ProductNotFound
from modules.products.ledger import StockLedger
from modules.products.repositories.django_repository import ProductDjangoRepository

_NOT_IN_CART = {"detail": "Item not in cart."}


class CartViewSet(ViewSet):
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._products = ProductDjangoRepository()
        self._storage = CartStorage(
            ledger=StockLedger(), notifier=get_notification_sink()
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        cart = self._storage.load(identity_from_user(request.user))
        return Response(CartSerializer(cart).data)

    @action(detail=False, methods=["post"], url_path="items")
    def add_item(self, request: Request) -> Response:
        """POST /api/v1/cart/items/"""
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        identity = identity_from_user(request.user)

        product = self._products.get_by_id(serializer.validated_data["product_id"])
        if product is None:
            return Response({"detail": "Product not found."}, status=status.HTTP_404_NOT_FOUND)

        cart = self._storage.load(identity)
        try:
            cart.add(product, serializer.validated_data["quantity"])
        except ProductNotFound:
            return Response({"detail": "Product not found."}, status=status.HTTP_404_NOT_FOUND)
        except CartError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        self._storage.save(identity, cart)
        return Response(CartSerializer(cart).data, status=status.HTTP_201_CREATED)

    @action(
        detail=False,
        methods=["patch", "delete"],
        url_path=r"items/(?P<product_id>[^/.]+)",
    )
    def item(self, request: Request, product_id: str | None = None) -> Response:
        """PATCH / DELETE /api/v1/cart/items/{product_id}/"""
        identity = identity_from_user(request.user)
        cart = self._storage.load(identity)

        if request.method == "DELETE":
            cart.remove(product_id)
            self._storage.save(identity, cart)
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = UpdateQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = cart.update_quantity(product_id, serializer.validated_data["quantity"])
        if line is None:
            return Response(_NOT_IN_CART, status=status.HTTP_404_NOT_FOUND)
        self._storage.save(identity, cart)
        return Response(CartItemSerializer(line).data)

    @action(detail=False, methods=["post"])
    def clear(self, request: Request) -> Response:
        """POST /api/v1/cart/clear/"""
        identity = identity_from_user(request.user)
        cart = self._storage.load(identity)
        cart.clear()
        self._storage.save(identity, cart)
        return Response(status=status.HTTP_204_NO_CONTENT)
