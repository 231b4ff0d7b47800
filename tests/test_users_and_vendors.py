import pytest

from users.models import Vendor
from users.roles import RoleLevel

pytestmark = pytest.mark.django_db


class TestAdminUsers:
    def test_list_filters_by_role(self, admin_user, user_factory, auth_client):
        user_factory(role=RoleLevel.VENDOR)
        user_factory()

        res = auth_client(admin_user).get("/api/users/?role=vendor")

        assert res.status_code == 200
        assert res.data["meta"]["total"] == 1
        assert res.data["data"][0]["role"]["name"] == "vendor"

    def test_search(self, admin_user, user_factory, auth_client):
        user_factory(email="findme@example.com")
        res = auth_client(admin_user).get("/api/users/?search=findme")
        assert [u["email"] for u in res.data["data"]] == ["findme@example.com"]

    def test_deactivate_and_activate(self, admin_user, user_factory, auth_client):
        user = user_factory()
        client = auth_client(admin_user)

        assert client.patch(f"/api/users/{user.pk}/deactivate/").data["is_active"] is False
        user.refresh_from_db()
        assert user.is_active is False

        assert client.patch(f"/api/users/{user.pk}/activate/").data["is_active"] is True

    def test_admin_cannot_deactivate_self(self, admin_user, auth_client):
        res = auth_client(admin_user).patch(f"/api/users/{admin_user.pk}/deactivate/")
        assert res.status_code == 400

    def test_change_role(self, admin_user, user_factory, auth_client):
        user = user_factory()
        res = auth_client(admin_user).patch(f"/api/users/{user.pk}/role/", {"role": "admin"}, format="json")

        assert res.status_code == 200
        user.refresh_from_db()
        assert user.role_level is RoleLevel.ADMIN
        assert user.is_staff is True

    def test_unknown_role_is_400(self, admin_user, user_factory, auth_client):
        user = user_factory()
        res = auth_client(admin_user).patch(f"/api/users/{user.pk}/role/", {"role": "root"}, format="json")
        assert res.status_code == 400

    def test_customer_is_forbidden(self, user_factory, auth_client):
        res = auth_client(user_factory()).get("/api/users/")
        assert res.status_code == 403


class TestVendors:
    def test_customer_becomes_vendor(self, user_factory, auth_client):
        user = user_factory()

        res = auth_client(user).post("/api/vendors/", {"shop_name": "Corner Shop"}, format="json")

        assert res.status_code == 201
        assert Vendor.objects.get(user=user).shop_name == "Corner Shop"
        user.refresh_from_db()
        assert user.role_level is RoleLevel.VENDOR

    def test_second_vendor_profile_is_409(self, vendor_factory, auth_client):
        vendor = vendor_factory()
        res = auth_client(vendor.user).post("/api/vendors/", {"shop_name": "Another"}, format="json")
        assert res.status_code == 409

    def test_cannot_create_for_someone_else(self, user_factory, auth_client):
        me = user_factory()
        other = user_factory()
        res = auth_client(me).post("/api/vendors/", {"shop_name": "Their Shop", "user": str(other.pk)}, format="json")
        assert res.status_code == 403
        assert not Vendor.objects.exists()

    def test_admin_creates_for_any_user(self, admin_user, user_factory, auth_client):
        other = user_factory()
        res = auth_client(admin_user).post(
            "/api/vendors/", {"shop_name": "Their Shop", "user": str(other.pk)}, format="json"
        )
        assert res.status_code == 201
        assert Vendor.objects.get(user=other)

    def test_admin_stays_admin_after_opening_shop(self, admin_user, auth_client):
        auth_client(admin_user).post("/api/vendors/", {"shop_name": "Admin Shop"}, format="json")
        admin_user.refresh_from_db()
        assert admin_user.role_level is RoleLevel.ADMIN

    def test_owner_updates_with_put(self, vendor_factory, auth_client):
        vendor = vendor_factory()
        res = auth_client(vendor.user).put(f"/api/vendors/{vendor.pk}/", {"description": "Fresh fruit"}, format="json")
        assert res.status_code == 200
        assert res.data["description"] == "Fresh fruit"

    def test_other_vendor_cannot_update(self, vendor_factory, auth_client):
        vendor = vendor_factory()
        intruder = vendor_factory()
        res = auth_client(intruder.user).patch(f"/api/vendors/{vendor.pk}/", {"shop_name": "Mine now"}, format="json")
        assert res.status_code == 403

    def test_delete_returns_owner_to_customer(self, vendor_factory, auth_client):
        vendor = vendor_factory()
        user = vendor.user

        res = auth_client(user).delete(f"/api/vendors/{vendor.pk}/")

        assert res.status_code == 204
        user.refresh_from_db()
        assert user.role_level is RoleLevel.CUSTOMER

    def test_inactive_vendors_hidden_from_public(self, vendor_factory, api_client):
        vendor_factory(shop_name="Open")
        vendor_factory(shop_name="Closed", is_active=False)

        res = api_client.get("/api/vendors/")

        assert [v["shop_name"] for v in res.data["data"]] == ["Open"]
