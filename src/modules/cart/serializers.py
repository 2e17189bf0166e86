"""Cart DRF serializers."""

from __future__ import annotations

from rest_framework import serializers


class CartItemSerializer(serializers.Serializer):
    product_id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    image_url = serializers.CharField(read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)


class CartSerializer(serializers.Serializer):
    items = CartItemSerializer(many=True, read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    def to_representation(self, cart):
        return super().to_representation(
            {"items": cart.items(), "item_count": cart.item_count, "total": cart.total()}
        )


class AddItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateQuantitySerializer(serializers.Serializer):
    # values below 1 are clamped by the cart, not rejected
    quantity = serializers.IntegerField()
