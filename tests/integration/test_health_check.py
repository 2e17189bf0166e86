from unittest.mock import patch

import pytest

pytestmark = pytest.mark.integration


def test_healthy(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert set(body["services"]) == {"database", "cache"}
    assert all(s["status"] == "up" for s in body["services"].values())


def test_cache_down(api_client):
    def unreachable():
        raise ConnectionError("redis unreachable")

    with patch.dict("modules.core.views._PROBES", {"cache": unreachable}):
        response = api_client.get("/health")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "unhealthy"
    assert body["services"]["cache"] == {"status": "down"}
    assert body["services"]["database"]["status"] == "up"
