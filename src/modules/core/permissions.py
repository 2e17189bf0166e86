"""Role-based capability checks.

``requires`` is the single service-level gate for admin-only operations.
``IsAdminRole`` is its DRF counterpart at the HTTP boundary, so both sides
agree on what "admin" means (see ``modules.core.identity``).
"""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

import structlog
from rest_framework.permissions import BasePermission

from modules.core.exceptions import PermissionDenied, Unauthenticated
from modules.core.identity import Role, identity_from_user

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def requires(role: Role) -> Callable[[F], F]:
    """Decorate a service method that must be called with ``actor=`` of *role*.

    Raises:
        Unauthenticated: no ``actor`` was supplied.
        PermissionDenied: the actor's role does not match.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            actor = kwargs.get("actor")
            if actor is None:
                raise Unauthenticated(f"{func.__name__} requires an authenticated caller.")
            if actor.role != role:
                logger.warning(
                    "permission.denied",
                    operation=func.__name__,
                    actor_id=actor.id,
                    required_role=str(role),
                )
                raise PermissionDenied(f"{func.__name__} requires role '{role}'.")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


class IsAdminRole(BasePermission):
    """Grants access only to callers whose identity resolves to ``admin``."""

    message = "Admin role required."

    def has_permission(self, request, view) -> bool:
        identity = identity_from_user(request.user)
        return identity is not None and identity.is_admin
