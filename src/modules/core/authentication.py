"""JWT authentication for tokens issued by the hosted auth provider.

The storefront does not own user accounts: the managed backend signs
access tokens and we only verify them.  Two verification modes are
supported, picked from configuration:

* **Shared secret** (``AUTH_PROVIDER_JWT_SECRET``, HS256), the default
  for hosted Postgres-backed auth services.
* **JWKS** (``AUTH_PROVIDER_JWKS_URL``, RS256), keys fetched and cached
  in-memory for 300 s by ``PyJWKClient``.

Security decisions
------------------
* **Fail Closed**: any decode / validation error returns 401.
* ``algorithms`` is fixed by configuration, never read from the token.
* Audience and issuer are validated whenever they are configured.
* Tokens whose issuer does not match are left to the next backend
  (SimpleJWT for local users).
"""

from __future__ import annotations

import jwt as pyjwt
import structlog
from decouple import config
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Provider settings (read once at module level)
# ---------------------------------------------------------------------------
AUTH_PROVIDER_JWT_SECRET = config("AUTH_PROVIDER_JWT_SECRET", default="")
AUTH_PROVIDER_JWKS_URL = config("AUTH_PROVIDER_JWKS_URL", default="")
AUTH_PROVIDER_AUDIENCE = config("AUTH_PROVIDER_AUDIENCE", default="authenticated")
AUTH_PROVIDER_ISSUER = config("AUTH_PROVIDER_ISSUER", default="")

_jwks_client: PyJWKClient | None = None
if AUTH_PROVIDER_JWKS_URL:
    _jwks_client = PyJWKClient(
        AUTH_PROVIDER_JWKS_URL,
        cache_jwk_set=True,
        lifespan=300,
    )

_PROVIDER_ENABLED = bool(AUTH_PROVIDER_ISSUER and (AUTH_PROVIDER_JWT_SECRET or _jwks_client))


class ExternalTokenUser:
    """Request user backed only by verified token claims.

    ``role`` is read from ``app_metadata.role`` (server-controlled) and
    falls back to ``user_metadata.role`` the way the storefront's admin
    screens expect.
    """

    is_authenticated = True
    is_active = True
    is_staff = False

    def __init__(self, payload: dict):
        self.payload = payload
        self.sub: str = payload.get("sub", "")
        self.email: str = payload.get("email", "")
        app_meta = payload.get("app_metadata") or {}
        user_meta = payload.get("user_metadata") or {}
        self.role: str = app_meta.get("role") or user_meta.get("role") or "user"

    @property
    def pk(self) -> str:
        return self.sub

    def __str__(self) -> str:  # pragma: no cover
        return self.email or self.sub


class ExternalProviderAuthentication(BaseAuthentication):
    """DRF authentication class for provider-issued Bearer tokens."""

    keyword = "Bearer"

    def authenticate(self, request):
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)
        if not _PROVIDER_ENABLED or not self._issued_by_provider(token):
            return None

        payload = self._decode_token(token)
        user = ExternalTokenUser(payload)
        logger.info("jwt_authenticated", sub=user.sub, role=user.role)
        return (user, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _issued_by_provider(token: str) -> bool:
        try:
            unverified = pyjwt.decode(token, options={"verify_signature": False})
        except PyJWTError:
            return False
        return unverified.get("iss") == AUTH_PROVIDER_ISSUER

    @staticmethod
    def _decode_token(token: str) -> dict:
        try:
            if _jwks_client is not None:
                key = _jwks_client.get_signing_key_from_jwt(token).key
                algorithm = "RS256"
            else:
                key = AUTH_PROVIDER_JWT_SECRET
                algorithm = "HS256"
            return pyjwt.decode(
                token,
                key,
                algorithms=[algorithm],
                audience=AUTH_PROVIDER_AUDIENCE or None,
                issuer=AUTH_PROVIDER_ISSUER,
            )
        except PyJWTError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
