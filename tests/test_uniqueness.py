from unittest import mock

import pytest
from django.db import IntegrityError
from rest_framework.exceptions import ValidationError

from core.exceptions import Conflict, is_unique_violation
from core.uniqueness import assert_slug_available, atomic_write
from product_app.models import Brand, Product
from users.roles import RoleLevel

pytestmark = pytest.mark.django_db


def test_assert_slug_available_excludes_own_row(brand):
    assert_slug_available(Brand, "acme", exclude_id=brand.pk)
    with pytest.raises(Conflict):
        assert_slug_available(Brand, "acme")


def test_atomic_write_turns_integrity_error_into_conflict(brand):
    with pytest.raises(Conflict) as excinfo:
        with atomic_write("Slug already exists."):
            Brand.objects.create(name="Acme Two", slug="acme")

    assert str(excinfo.value.detail) == "Slug already exists."
    assert Brand.objects.filter(slug="acme").count() == 1


def test_atomic_write_rolls_back_all_statements(brand):
    with pytest.raises(Conflict):
        with atomic_write():
            Brand.objects.create(name="Fresh", slug="fresh")
            Brand.objects.create(name="Dup", slug="acme")

    assert not Brand.objects.filter(slug="fresh").exists()


def test_atomic_write_reports_check_violations_as_400(product_factory):
    product = product_factory()

    with pytest.raises(ValidationError) as excinfo:
        with atomic_write("Slug already exists."):
            Product.objects.filter(pk=product.pk).update(discount=150)

    assert "Slug" not in str(excinfo.value.detail)
    product.refresh_from_db()
    assert product.discount == 0


def test_driver_sqlstate_decides_unique_violation():
    class DriverError(Exception):
        def __init__(self, sqlstate):
            super().__init__(sqlstate)
            self.sqlstate = sqlstate

    foreign_key = IntegrityError("insert or update violates foreign key constraint")
    foreign_key.__cause__ = DriverError("23503")
    duplicate = IntegrityError("duplicate key value violates unique constraint")
    duplicate.__cause__ = DriverError("23505")

    assert not is_unique_violation(foreign_key)
    assert is_unique_violation(duplicate)
    assert is_unique_violation(IntegrityError("UNIQUE constraint failed: product_app_brand.slug"))
    assert not is_unique_violation(IntegrityError("CHECK constraint failed: product_discount_range"))


class TestBrandApi:
    @pytest.fixture
    def admin_client(self, admin_user, auth_client):
        return auth_client(admin_user)

    def test_duplicate_slug_is_409(self, admin_client):
        first = admin_client.post("/api/brands/", {"name": "Acme", "slug": "acme"}, format="json")
        second = admin_client.post("/api/brands/", {"name": "Acme Again", "slug": "acme"}, format="json")

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.data == {"error": "Slug already exists.", "code": "conflict"}

    def test_duplicate_slug_caught_by_database(self, admin_client, brand):
        with mock.patch("product_app.serializers.assert_slug_available"):
            res = admin_client.post("/api/brands/", {"name": "Acme Again", "slug": "acme"}, format="json")

        assert res.status_code == 409
        assert Brand.objects.filter(slug="acme").count() == 1

    def test_update_keeps_own_slug(self, admin_client, brand):
        res = admin_client.put(f"/api/brands/{brand.pk}/", {"name": "Acme Corp", "slug": "acme"}, format="json")
        assert res.status_code == 200
        assert res.data["name"] == "Acme Corp"

    def test_short_name_is_400(self, admin_client):
        res = admin_client.post("/api/brands/", {"name": "A", "slug": "a"}, format="json")
        assert res.status_code == 400
        assert res.data["error"][0]["path"] == ["name"]

    def test_customer_cannot_create(self, user_factory, auth_client):
        res = auth_client(user_factory()).post("/api/brands/", {"name": "Acme", "slug": "acme"}, format="json")
        assert res.status_code == 403

    def test_anonymous_cannot_create(self, api_client):
        res = api_client.post("/api/brands/", {"name": "Acme", "slug": "acme"}, format="json")
        assert res.status_code == 401

    def test_list_is_public_and_paginated(self, api_client, brand):
        res = api_client.get("/api/brands/?limit=5")
        assert res.status_code == 200
        assert res.data["meta"] == {"total": 1, "page": 1, "limit": 5}
        assert res.data["data"][0]["slug"] == "acme"

    def test_vendor_role_is_not_enough(self, user_factory, auth_client):
        vendor_user = user_factory(role=RoleLevel.VENDOR)
        res = auth_client(vendor_user).delete("/api/brands/00000000-0000-0000-0000-000000000000/")
        assert res.status_code == 403
