import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()


class CorrelationIdMiddleware:
    """Tag every request and its log lines with a correlation ID.

    The ID comes from the ``X-Request-ID`` header or is a fresh UUID4.
    It is bound into structlog's context variables for the lifetime of
    the request and echoed back in the response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        logger.info("request_started", method=request.method, path=request.path)

        response = self.get_response(request)

        logger.info(
            "request_finished",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )

        response["X-Request-ID"] = cid
        return response
