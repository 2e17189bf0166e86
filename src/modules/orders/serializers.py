"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.addresses.serializers import AddressSerializer
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CheckoutSerializer(serializers.Serializer):
    """Checkout request: the cart comes from the session, not the body."""

    address_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CancelSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    image_url = serializers.CharField(source="product.image_url", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "image_url",
            "quantity",
            "price",
            "subtotal",
            "restored_at",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "actor_id",
            "is_override",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items, address and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    address = AddressSerializer(read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "status",
            "total",
            "stock_restored",
            "address",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "status",
            "total",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj: Order) -> int:
        return sum(item.quantity for item in obj.items.all())
