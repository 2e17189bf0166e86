"""Order API views.

``CheckoutView`` drives the Order Placement Orchestrator from the
caller's session cart.  ``OrderViewSet`` exposes reads and the order
state machine.  Domain exceptions are caught and translated into
appropriate HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.services import AddressService
from modules.cart.storage import CartStorage
from modules.core.identity import identity_from_user
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsAdminRole
from modules.notifications.sinks import Severity, get_notification_sink
from modules.orders.dtos import StatusChangeDTO
from modules.orders.exceptions import (
    EmptyCart,
    InsufficientStock,
    InvalidOrderStatus,
    NoAddress,
    OrderItemsPersistFailure,
    OrderNotFound,
    PermissionDenied,
    ProductNotFound,
    Unauthenticated,
)
from modules.orders.filters import OrderFilter
from modules.orders.lifecycle import OrderLifecycleService
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelSerializer,
    CheckoutSerializer,
    OrderListSerializer,
    OrderSerializer,
    StatusChangeSerializer,
)
from modules.orders.services import OrderService
from modules.products.ledger import StockLedger

_NOT_FOUND = {"detail": "Order not found."}
IDEMPOTENCY_KEY_MAX_LENGTH = 128


class CheckoutView(APIView):
    """POST /api/v1/checkout/

    Places an order from the caller's cart.  ``address_id`` is optional;
    without it the caller's default address is used.  Supports
    idempotency via the ``Idempotency-Key`` header.
    """

    permission_classes = [IsAuthenticated]
    throttle_scope = "checkout"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        ledger = StockLedger()
        self._notifier = get_notification_sink()
        self._service = OrderService(order_repository=OrderDjangoRepository(), ledger=ledger)
        self._addresses = AddressService(repository=AddressDjangoRepository())
        self._storage = CartStorage(ledger=ledger, notifier=self._notifier)

    def post(self, request: Request) -> Response:
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        idempotency_key = request.headers.get("Idempotency-Key")
        if idempotency_key and len(idempotency_key) > IDEMPOTENCY_KEY_MAX_LENGTH:
            return Response(
                {"detail": "Idempotency-Key is too long."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        identity = identity_from_user(request.user)
        if identity is None:
            return Response(
                {"detail": "Sign in to place an order."},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        address_id = serializer.validated_data.get("address_id")
        address = self._addresses.resolve(
            identity.id, str(address_id) if address_id else None
        )
        cart = self._storage.load(identity)

        try:
            order = self._service.place_order(
                identity,
                cart,
                address.id if address else None,
                idempotency_key=idempotency_key,
            )
        except Unauthenticated as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_401_UNAUTHORIZED)
        except (NoAddress, EmptyCart) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            self._notifier.notify(str(exc), Severity.ERROR, identity.id)
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except ProductNotFound as exc:
            self._notifier.notify(str(exc), Severity.ERROR, identity.id)
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except OrderItemsPersistFailure:
            self._notifier.notify("Failed to place order", Severity.ERROR, identity.id)
            return Response(
                {"detail": "Failed to place order. Your cart was kept; please try again."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        self._storage.save(identity, cart)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order reads and state transitions.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        repository = OrderDjangoRepository()
        ledger = StockLedger()
        self._service = OrderService(order_repository=repository, ledger=ledger)
        self._lifecycle = OrderLifecycleService(order_repository=repository, ledger=ledger)

    def get_permissions(self):
        if self.action in {"partial_update", "override", "destroy"}:
            return [IsAdminRole()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "order_listing" if self.action in {"list", "retrieve"} else None
        return super().get_throttles()

    def get_queryset(self):
        identity = identity_from_user(getattr(self.request, "user", None))
        if identity is None:
            return Order.objects.none()
        return self._service.visible_orders(identity)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Owners see their own orders, admins see all.  Filtering is handled
        by ``OrderFilter``, ordering by ``OrderingFilter``.  Paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, identity_from_user(request.user))
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/  (admin: advance status)"""
        dto = self._status_change(request)
        if isinstance(dto, Response):
            return dto
        return self._transition(
            lambda actor: self._lifecycle.advance(
                pk, dto.status, actor=actor, notes=dto.notes
            ),
            request,
        )

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an order and credits its stock back once.
        """
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._transition(
            lambda actor: self._lifecycle.cancel(
                pk, actor=actor, notes=serializer.validated_data["notes"]
            ),
            request,
        )

    @action(detail=True, methods=["post"])
    def override(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/override/  (admin escape hatch)"""
        dto = self._status_change(request)
        if isinstance(dto, Response):
            return dto
        return self._transition(
            lambda actor: self._lifecycle.override_status(
                pk, dto.status, actor=actor, notes=dto.notes
            ),
            request,
        )

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/  (admin hard delete)"""
        try:
            self._service.delete_order(pk, actor=identity_from_user(request.user))
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except PermissionDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _status_change(request: Request) -> StatusChangeDTO | Response:
        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            return StatusChangeDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    @staticmethod
    def _transition(operation, request: Request) -> Response:
        actor = identity_from_user(request.user)
        try:
            order = operation(actor)
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except PermissionDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except Unauthenticated as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_401_UNAUTHORIZED)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)
