"""Product DTOs for the Service Layer.

Pydantic v2 contracts between the DRF views and ``ProductService``.
DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateProductDTO(BaseModel):
    """Validates admin product creation.

    - ``price`` must be greater than zero.
    - ``stock_quantity`` must be non-negative.
    - ``rating`` is on a 0 to 5 scale.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal
    description: str = ""
    category: str = ""
    image_url: str = ""
    stock_quantity: int = 0
    rating: Decimal = Field(default=Decimal("0.0"), ge=0, le=5)

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v


class UpdateProductDTO(BaseModel):
    """Partial update; ``None`` means "leave unchanged"."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    price: Optional[Decimal] = None
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    stock_quantity: Optional[int] = None
    rating: Optional[Decimal] = Field(default=None, ge=0, le=5)

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock_quantity")
    @classmethod
    def stock_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v
