"""Shipping address model.

An address belongs to one caller identity (``user_id`` is the opaque id
issued by the auth provider).  At most one address per user is the
default: the service clears the previous default inside the same
transaction, and the partial unique constraint rejects anything that
slips past it.
"""

from __future__ import annotations

from django.core.validators import RegexValidator
from django.db import models

from modules.core.models import BaseModel

phone_validator = RegexValidator(r"^[0-9]{10}$", "Phone must be 10 digits.")
pincode_validator = RegexValidator(r"^[0-9]{6}$", "Pincode must be 6 digits.")


class Address(BaseModel):
    user_id = models.CharField(max_length=255, db_index=True)
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=10, validators=[phone_validator])
    pincode = models.CharField(max_length=6, validators=[pincode_validator])
    address_line = models.CharField(max_length=500)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    is_default = models.BooleanField(default=False)

    class Meta:
        db_table = "addresses"
        ordering = ["-is_default", "-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id"],
                condition=models.Q(is_default=True),
                name="addresses_one_default_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.full_name}, {self.city} - {self.pincode}"
