"""Provider token verification (shared-secret mode)."""

import time

import jwt
import pytest
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.test import APIRequestFactory

from modules.core import authentication
from modules.core.authentication import ExternalProviderAuthentication

pytestmark = pytest.mark.unit

ISSUER = "https://auth.example.test/auth/v1"
SECRET = "provider-test-secret-with-enough-length"


@pytest.fixture()
def provider(monkeypatch):
    monkeypatch.setattr(authentication, "_PROVIDER_ENABLED", True)
    monkeypatch.setattr(authentication, "AUTH_PROVIDER_ISSUER", ISSUER)
    monkeypatch.setattr(authentication, "AUTH_PROVIDER_JWT_SECRET", SECRET)
    monkeypatch.setattr(authentication, "AUTH_PROVIDER_AUDIENCE", "authenticated")
    monkeypatch.setattr(authentication, "_jwks_client", None)


def _token(secret=SECRET, issuer=ISSUER, **claims):
    payload = {
        "sub": "user-42",
        "aud": "authenticated",
        "iss": issuer,
        "exp": int(time.time()) + 300,
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def _request(token):
    return APIRequestFactory().get("/", HTTP_AUTHORIZATION=f"Bearer {token}")


def test_no_header_is_skipped():
    assert ExternalProviderAuthentication().authenticate(APIRequestFactory().get("/")) is None


def test_valid_token(provider):
    user, _ = ExternalProviderAuthentication().authenticate(
        _request(_token(app_metadata={"role": "admin"}))
    )
    assert user.sub == "user-42"
    assert user.role == "admin"


def test_bad_signature_fails_closed(provider):
    with pytest.raises(AuthenticationFailed):
        ExternalProviderAuthentication().authenticate(_request(_token(secret="x" * 40)))


def test_expired_token_fails_closed(provider):
    with pytest.raises(AuthenticationFailed):
        ExternalProviderAuthentication().authenticate(
            _request(_token(exp=int(time.time()) - 10))
        )


def test_foreign_issuer_left_to_next_backend(provider):
    token = _token(issuer="https://someone-else.test")
    assert ExternalProviderAuthentication().authenticate(_request(token)) is None


def test_disabled_provider_skips(monkeypatch):
    monkeypatch.setattr(authentication, "_PROVIDER_ENABLED", False)
    assert ExternalProviderAuthentication().authenticate(_request(_token())) is None


def test_malformed_header(provider):
    request = APIRequestFactory().get("/", HTTP_AUTHORIZATION="Token abc def")
    with pytest.raises(AuthenticationFailed):
        ExternalProviderAuthentication().authenticate(request)
