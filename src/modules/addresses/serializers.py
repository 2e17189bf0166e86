from __future__ import annotations

from rest_framework import serializers

from modules.addresses.models import Address


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "full_name",
            "phone",
            "pincode",
            "address_line",
            "city",
            "state",
            "is_default",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
