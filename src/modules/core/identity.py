"""Caller identity as seen by the service layer.

Authentication is delegated to the hosted auth provider (or SimpleJWT for
local users).  Services never touch ``request.user`` directly: views turn
it into a ``CallerIdentity`` with an opaque ``id`` and a ``Role``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from django.db import models

# Provider subjects live in their own id space so a ``sub`` can never
# collide with a local user primary key.
EXTERNAL_ID_PREFIX = "ext:"


class Role(models.TextChoices):
    USER = "user", "User"
    ADMIN = "admin", "Admin"


@dataclass(frozen=True)
class CallerIdentity:
    id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def identity_from_user(user: Any) -> Optional[CallerIdentity]:
    """Build a ``CallerIdentity`` from whatever DRF put on ``request.user``.

    - Anonymous users map to ``None``.
    - Tokens issued by the external provider carry ``sub`` and ``role``;
      the id becomes ``ext:<sub>``.
    - Local Django users are admins when ``is_staff`` is set.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return None

    subject = getattr(user, "sub", None)
    if subject:
        role = Role.ADMIN if getattr(user, "role", "") == Role.ADMIN else Role.USER
        return CallerIdentity(id=f"{EXTERNAL_ID_PREFIX}{subject}", role=role)

    role = Role.ADMIN if getattr(user, "is_staff", False) else Role.USER
    return CallerIdentity(id=str(user.pk), role=role)
