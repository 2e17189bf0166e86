"""Cross-module domain exceptions.

Raised by the Service Layer; the API layer translates them into
401 / 403 responses.
"""

from __future__ import annotations


class Unauthenticated(Exception):
    """The operation requires a caller identity and none was given."""


class PermissionDenied(Exception):
    """The caller's role does not grant the requested capability."""
