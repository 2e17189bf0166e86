import pytest
from django.contrib.auth.models import AnonymousUser
from rest_framework.test import APIRequestFactory

from modules.core.authentication import ExternalTokenUser
from modules.core.exceptions import PermissionDenied, Unauthenticated
from modules.core.identity import CallerIdentity, Role, identity_from_user
from modules.core.permissions import IsAdminRole, requires

pytestmark = pytest.mark.unit


class TestIdentityFromUser:
    def test_anonymous_is_none(self):
        assert identity_from_user(AnonymousUser()) is None
        assert identity_from_user(None) is None

    def test_local_user(self, shopper):
        identity = identity_from_user(shopper)
        assert identity == CallerIdentity(id=str(shopper.pk), role=Role.USER)

    def test_staff_user_is_admin(self, staff_user):
        assert identity_from_user(staff_user).is_admin

    def test_provider_token_user(self):
        user = ExternalTokenUser({"sub": "abc-123", "app_metadata": {"role": "admin"}})
        assert identity_from_user(user) == CallerIdentity(id="ext:abc-123", role=Role.ADMIN)

    def test_provider_ids_never_match_local_ids(self, shopper):
        user = ExternalTokenUser({"sub": str(shopper.pk)})
        assert identity_from_user(user).id != identity_from_user(shopper).id

    def test_provider_role_falls_back_to_user_metadata(self):
        user = ExternalTokenUser({"sub": "abc-123", "user_metadata": {"role": "admin"}})
        assert identity_from_user(user).is_admin

    def test_provider_default_role(self):
        user = ExternalTokenUser({"sub": "abc-123"})
        assert identity_from_user(user).role == Role.USER


class _Catalog:
    @requires(Role.ADMIN)
    def publish(self, name, *, actor):
        return name


class TestRequires:
    def test_admin_passes(self):
        actor = CallerIdentity(id="a", role=Role.ADMIN)
        assert _Catalog().publish("kurta", actor=actor) == "kurta"

    def test_user_denied(self):
        with pytest.raises(PermissionDenied):
            _Catalog().publish("kurta", actor=CallerIdentity(id="u"))

    def test_missing_actor(self):
        with pytest.raises(Unauthenticated):
            _Catalog().publish("kurta", actor=None)


class TestIsAdminRole:
    @pytest.fixture()
    def request_for(self):
        factory = APIRequestFactory()

        def _build(user):
            request = factory.get("/")
            request.user = user
            return request

        return _build

    def test_staff_allowed(self, request_for, staff_user):
        assert IsAdminRole().has_permission(request_for(staff_user), None)

    def test_shopper_denied(self, request_for, shopper):
        assert not IsAdminRole().has_permission(request_for(shopper), None)

    def test_anonymous_denied(self, request_for):
        assert not IsAdminRole().has_permission(request_for(AnonymousUser()), None)
