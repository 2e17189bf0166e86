"""Address DTOs for the Service Layer.

Pydantic v2, immutable.  Validation mirrors the storefront's address
form: 10-digit phone, 6-digit pincode, non-blank text fields.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

_PHONE = re.compile(r"^[0-9]{10}$")
_PINCODE = re.compile(r"^[0-9]{6}$")


def _check_phone(v: str) -> str:
    if not _PHONE.match(v):
        raise ValueError("Phone must be 10 digits.")
    return v


def _check_pincode(v: str) -> str:
    if not _PINCODE.match(v):
        raise ValueError("Pincode must be 6 digits.")
    return v


class AddressDTO(BaseModel):
    """Input for address creation."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    full_name: str
    phone: str
    pincode: str
    address_line: str
    city: str
    state: str
    is_default: bool = False

    @field_validator("full_name", "address_line", "city", "state")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Field is required.")
        return v

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: str) -> str:
        return _check_phone(v)

    @field_validator("pincode")
    @classmethod
    def pincode_format(cls, v: str) -> str:
        return _check_pincode(v)


class UpdateAddressDTO(BaseModel):
    """Partial update; only supplied fields change."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    full_name: Optional[str] = None
    phone: Optional[str] = None
    pincode: Optional[str] = None
    address_line: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    is_default: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_phone(v)

    @field_validator("pincode")
    @classmethod
    def pincode_format(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_pincode(v)
