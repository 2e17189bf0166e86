"""Unit tests for address CRUD and checkout address resolution."""

from __future__ import annotations

import pytest

from modules.addresses.dtos import AddressDTO, UpdateAddressDTO
from modules.addresses.exceptions import AddressNotFound
from modules.addresses.models import Address
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.services import AddressService

pytestmark = pytest.mark.unit


def _dto(**overrides):
    data = {
        "full_name": "Asha Rao",
        "phone": "9876543210",
        "pincode": "560001",
        "address_line": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
    }
    data.update(overrides)
    return AddressDTO(**data)


@pytest.fixture()
def service():
    return AddressService(repository=AddressDjangoRepository())


class TestDefaultUniqueness:
    def test_creating_new_default_clears_previous(self, service):
        first = service.create_address("u-1", _dto(is_default=True))
        second = service.create_address("u-1", _dto(is_default=True, city="Mysuru"))

        first.refresh_from_db()
        assert first.is_default is False
        assert second.is_default is True
        assert Address.objects.filter(user_id="u-1", is_default=True).count() == 1

    def test_set_default_moves_flag(self, service):
        first = service.create_address("u-1", _dto(is_default=True))
        second = service.create_address("u-1", _dto())

        service.set_default("u-1", str(second.id))

        first.refresh_from_db()
        second.refresh_from_db()
        assert (first.is_default, second.is_default) == (False, True)

    def test_defaults_are_per_user(self, service):
        service.create_address("u-1", _dto(is_default=True))
        service.create_address("u-2", _dto(is_default=True))
        assert Address.objects.filter(is_default=True).count() == 2

    def test_update_to_default_clears_previous(self, service):
        first = service.create_address("u-1", _dto(is_default=True))
        second = service.create_address("u-1", _dto())

        service.update_address("u-1", str(second.id), UpdateAddressDTO(is_default=True))

        first.refresh_from_db()
        assert first.is_default is False


class TestResolve:
    def test_explicit_owned_address(self, service):
        service.create_address("u-1", _dto(is_default=True))
        chosen = service.create_address("u-1", _dto(city="Mysuru"))

        assert service.resolve("u-1", str(chosen.id)) == chosen

    def test_falls_back_to_default(self, service):
        default = service.create_address("u-1", _dto(is_default=True))
        service.create_address("u-1", _dto(city="Mysuru"))

        assert service.resolve("u-1") == default

    def test_without_default_uses_newest(self, service):
        service.create_address("u-1", _dto(city="Old"))
        newest = service.create_address("u-1", _dto(city="New"))

        assert service.resolve("u-1") == newest

    def test_no_addresses_resolves_none(self, service):
        assert service.resolve("u-1") is None

    def test_foreign_address_resolves_none(self, service):
        service.create_address("u-1", _dto(is_default=True))
        foreign = service.create_address("u-2", _dto())

        assert service.resolve("u-1", str(foreign.id)) is None


class TestOwnership:
    def test_foreign_address_is_not_found(self, service):
        foreign = service.create_address("u-2", _dto())
        with pytest.raises(AddressNotFound):
            service.get_address("u-1", str(foreign.id))

    def test_delete_own_address(self, service):
        address = service.create_address("u-1", _dto())
        service.delete_address("u-1", str(address.id))
        assert not Address.objects.filter(id=address.id).exists()


class TestAddressDto:
    @pytest.mark.parametrize("phone", ["12345", "98765432100", "98765abcde"])
    def test_invalid_phone(self, phone):
        with pytest.raises(ValueError):
            _dto(phone=phone)

    def test_invalid_pincode(self):
        with pytest.raises(ValueError):
            _dto(pincode="5600")
