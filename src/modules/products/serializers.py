"""Product DRF serializers (read side).

Writes are validated by ``CreateProductDTO`` / ``UpdateProductDTO``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    is_in_stock = serializers.BooleanField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "category",
            "image_url",
            "price",
            "stock_quantity",
            "rating",
            "is_in_stock",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StockSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    stock_quantity = serializers.IntegerField()
