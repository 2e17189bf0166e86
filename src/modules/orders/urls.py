"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import CheckoutView, OrderViewSet

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    *router.urls,
]
