"""Product API views.

Catalog browsing and live stock reads are public.  Create / update /
delete are admin-only: ``IsAdminRole`` guards the HTTP boundary and
``ProductService`` re-checks with ``requires(Role.ADMIN)``.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.identity import identity_from_user
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsAdminRole
from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.exceptions import ProductInUse, ProductNotFound
from modules.products.filters import ProductFilter
from modules.products.ledger import StockLedger
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer, StockSerializer
from modules.products.services import ProductService

_NOT_FOUND = {"detail": "Product not found."}
_WRITE_FIELDS = (
    "name",
    "price",
    "description",
    "category",
    "image_url",
    "stock_quantity",
    "rating",
)


class ProductViewSet(ListModelMixin, GenericViewSet):
    """Catalog endpoints.  All ORM access goes through the service layer."""

    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    pagination_class = StandardResultsSetPagination
    filterset_class = ProductFilter
    search_fields = ["name", "description", "category"]
    ordering_fields = ["name", "price", "rating", "stock_quantity", "created_at"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())
        self._ledger = StockLedger()

    def get_permissions(self):
        if self.action in {"list", "retrieve", "stock"}:
            return [AllowAny()]
        return [IsAdminRole()]

    def get_queryset(self):
        return Product.objects.all()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk)
        except ProductNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    @action(detail=True, methods=["get"])
    def stock(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/stock/"""
        try:
            quantity = self._ledger.get_stock(pk)
        except ProductNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(
            StockSerializer({"product_id": pk, "stock_quantity": quantity}).data
        )

    # ------------------------------------------------------------------
    # Admin writes
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        payload = {k: v for k, v in request.data.items() if k in _WRITE_FIELDS}
        try:
            dto = CreateProductDTO(**payload)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        product = self._service.create_product(
            dto, actor=identity_from_user(request.user)
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        payload = {k: v for k, v in request.data.items() if k in _WRITE_FIELDS}
        try:
            dto = UpdateProductDTO(**payload)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = self._service.update_product(
                pk, dto, actor=identity_from_user(request.user)
            )
        except ProductNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/products/{pk}/"""
        return self.partial_update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        try:
            self._service.delete_product(pk, actor=identity_from_user(request.user))
        except ProductNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except ProductInUse as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(status=status.HTTP_204_NO_CONTENT)
