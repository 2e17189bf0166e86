"""Authentication across both token backends."""

import time

import jwt
import pytest

from modules.core import authentication

pytestmark = pytest.mark.integration

ISSUER = "https://auth.example.test/auth/v1"
SECRET = "provider-test-secret-with-enough-length"


@pytest.fixture()
def provider(monkeypatch):
    monkeypatch.setattr(authentication, "_PROVIDER_ENABLED", True)
    monkeypatch.setattr(authentication, "AUTH_PROVIDER_ISSUER", ISSUER)
    monkeypatch.setattr(authentication, "AUTH_PROVIDER_JWT_SECRET", SECRET)
    monkeypatch.setattr(authentication, "AUTH_PROVIDER_AUDIENCE", "authenticated")
    monkeypatch.setattr(authentication, "_jwks_client", None)


def _provider_token(**claims):
    payload = {
        "sub": "provider-user-1",
        "aud": "authenticated",
        "iss": ISSUER,
        "exp": int(time.time()) + 300,
        **claims,
    }
    return jwt.encode(payload, SECRET, algorithm="HS256")


def test_me_requires_token(api_client):
    assert api_client.get("/api/v1/me").status_code == 401


def test_local_jwt_flow(api_client, shopper):
    tokens = api_client.post(
        "/api/v1/auth/token/",
        {"username": "shopper", "password": "shopper-pass-123"},
        format="json",
    ).json()

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    response = api_client.get("/api/v1/me")

    assert response.status_code == 200
    assert response.json() == {"id": str(shopper.pk), "role": "user"}


def test_wrong_password(api_client, shopper):
    response = api_client.post(
        "/api/v1/auth/token/",
        {"username": "shopper", "password": "nope"},
        format="json",
    )
    assert response.status_code == 401


def test_provider_token(api_client, provider):
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {_provider_token()}")

    response = api_client.get("/api/v1/me")

    assert response.status_code == 200
    assert response.json() == {"id": "ext:provider-user-1", "role": "user"}


def test_provider_subject_matching_local_pk_sees_no_local_data(
    api_client, provider, shopper, shopper_address
):
    token = _provider_token(sub=str(shopper.pk))
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    assert api_client.get("/api/v1/me").json()["id"] == f"ext:{shopper.pk}"
    assert api_client.get("/api/v1/addresses/").json() == []


def test_provider_admin_may_advance_orders(api_client, provider):
    token = _provider_token(app_metadata={"role": "admin"})
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    response = api_client.patch(
        "/api/v1/orders/00000000-0000-0000-0000-000000000000/", {"status": "packed"}, format="json"
    )

    assert response.status_code == 404


def test_garbage_token(api_client):
    api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")
    assert api_client.get("/api/v1/me").status_code == 401
