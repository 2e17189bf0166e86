import pytest

pytestmark = pytest.mark.integration

ADDRESSES_URL = "/api/v1/addresses/"

VALID = {
    "full_name": "Asha Rao",
    "phone": "9876543210",
    "pincode": "560001",
    "address_line": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
}


def test_requires_authentication(api_client):
    assert api_client.get(ADDRESSES_URL).status_code == 401


def test_create_and_list(shopper_client):
    response = shopper_client.post(ADDRESSES_URL, {**VALID, "is_default": True}, format="json")

    assert response.status_code == 201
    listed = shopper_client.get(ADDRESSES_URL).json()
    assert [a["id"] for a in listed] == [response.json()["id"]]
    assert listed[0]["is_default"] is True


def test_invalid_phone(shopper_client):
    response = shopper_client.post(ADDRESSES_URL, {**VALID, "phone": "12345"}, format="json")
    assert response.status_code == 400


def test_new_default_replaces_old(shopper_client):
    first = shopper_client.post(ADDRESSES_URL, {**VALID, "is_default": True}, format="json").json()
    second = shopper_client.post(
        ADDRESSES_URL, {**VALID, "city": "Mysuru", "is_default": True}, format="json"
    ).json()

    defaults = [a["id"] for a in shopper_client.get(ADDRESSES_URL).json() if a["is_default"]]
    assert defaults == [second["id"]]
    assert first["id"] != second["id"]


def test_make_default(shopper_client, shopper, make_address, shopper_address):
    office = make_address(shopper.pk)

    response = shopper_client.post(f"{ADDRESSES_URL}{office.id}/default/")

    assert response.status_code == 200
    assert response.json()["is_default"] is True
    shopper_address.refresh_from_db()
    assert shopper_address.is_default is False


def test_other_users_address_is_invisible(other_client, shopper_address):
    assert other_client.get(f"{ADDRESSES_URL}{shopper_address.id}/").status_code == 404
    assert other_client.delete(f"{ADDRESSES_URL}{shopper_address.id}/").status_code == 404
    assert other_client.get(ADDRESSES_URL).json() == []


def test_update_and_delete(shopper_client, shopper_address):
    patched = shopper_client.patch(
        f"{ADDRESSES_URL}{shopper_address.id}/", {"city": "Hubli"}, format="json"
    )
    assert patched.status_code == 200
    assert patched.json()["city"] == "Hubli"

    assert shopper_client.delete(f"{ADDRESSES_URL}{shopper_address.id}/").status_code == 204
    assert shopper_client.get(ADDRESSES_URL).json() == []
