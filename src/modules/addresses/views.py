"""Address API views.

Every endpoint is scoped to the caller: ``user_id`` is always taken from
the authenticated identity, never from the request body.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.addresses.dtos import AddressDTO, UpdateAddressDTO
from modules.addresses.exceptions import AddressNotFound
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.serializers import AddressSerializer
from modules.addresses.services import AddressService
from modules.core.identity import identity_from_user

_NOT_FOUND = {"detail": "Address not found."}
_FIELDS = (
    "full_name",
    "phone",
    "pincode",
    "address_line",
    "city",
    "state",
    "is_default",
)


class AddressViewSet(ViewSet):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AddressService(repository=AddressDjangoRepository())

    def _user_id(self, request: Request) -> str:
        return identity_from_user(request.user).id

    @staticmethod
    def _payload(request: Request) -> dict:
        return {k: v for k, v in request.data.items() if k in _FIELDS}

    def list(self, request: Request) -> Response:
        """GET /api/v1/addresses/"""
        addresses = self._service.list_addresses(self._user_id(request))
        return Response(AddressSerializer(addresses, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/addresses/{pk}/"""
        try:
            address = self._service.get_address(self._user_id(request), pk)
        except AddressNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(AddressSerializer(address).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/addresses/"""
        try:
            dto = AddressDTO(**self._payload(request))
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        address = self._service.create_address(self._user_id(request), dto)
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/addresses/{pk}/"""
        try:
            dto = UpdateAddressDTO(**self._payload(request))
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            address = self._service.update_address(self._user_id(request), pk, dto)
        except AddressNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(AddressSerializer(address).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/addresses/{pk}/"""
        try:
            self._service.delete_address(self._user_id(request), pk)
        except AddressNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="default")
    def make_default(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/addresses/{pk}/default/"""
        try:
            address = self._service.set_default(self._user_id(request), pk)
        except AddressNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(AddressSerializer(address).data)
