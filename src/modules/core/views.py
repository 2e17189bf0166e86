import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.identity import identity_from_user

logger = structlog.get_logger()


def _probe_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _probe_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


_PROBES: Dict[str, Callable[[], None]] = {
    "database": _probe_database,
    "cache": _probe_cache,
}


def health_check(request: HttpRequest) -> JsonResponse:
    """Report database and cache (cart storage) reachability."""
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    for name, probe in _PROBES.items():
        start = time.monotonic()
        try:
            probe()
        except Exception:
            services[name] = {"status": "down"}
            overall_healthy = False
            logger.exception("health_check_failure", service=name)
            continue
        services[name] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        }

    label = "healthy" if overall_healthy else "unhealthy"
    logger.info("health_check_completed", status=label)

    return JsonResponse(
        {
            "status": label,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if overall_healthy else 503,
    )


class MeView(APIView):
    """Echo the caller identity the service layer will see."""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        identity = identity_from_user(request.user)
        return Response({"id": identity.id, "role": identity.role})
