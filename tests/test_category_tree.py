import uuid
from unittest import mock

import pytest
from rest_framework.exceptions import NotFound

from product_app.category_tree import assert_deletable, assert_valid_parent, build_tree
from product_app.exceptions import CircularReferenceError, HasChildrenError, SelfParentError
from product_app.models import Category
from users.roles import RoleLevel


def row(name, parent=None, id=None):
    return {"id": id or uuid.uuid4(), "name": name, "slug": name.lower(), "parent_id": parent}


def flatten(nodes):
    for node in nodes:
        yield node
        yield from flatten(node["children"])


class TestBuildTree:
    def test_children_nest_under_parent(self):
        root = row("Electronics")
        phones = row("Phones", parent=root["id"])
        laptops = row("Laptops", parent=root["id"])

        tree = build_tree([root, laptops, phones])

        assert len(tree) == 1
        assert tree[0]["slug"] == "electronics"
        assert [c["name"] for c in tree[0]["children"]] == ["Laptops", "Phones"]
        assert tree[0]["children"][0]["parent"] == root["id"]

    def test_missing_parent_becomes_root(self):
        orphan = row("Orphan", parent=uuid.uuid4())
        tree = build_tree([orphan])
        assert len(tree) == 1
        assert tree[0]["id"] == orphan["id"]
        assert tree[0]["children"] == []

    def test_every_row_appears_exactly_once(self):
        a = row("A")
        b = row("B", parent=a["id"])
        c = row("C", parent=b["id"])
        d = row("D")
        rows = [c, a, d, b]

        ids = [node["id"] for node in flatten(build_tree(rows))]

        assert sorted(map(str, ids)) == sorted(str(r["id"]) for r in rows)

    def test_corrupt_cycle_does_not_raise(self):
        a_id, b_id = uuid.uuid4(), uuid.uuid4()
        a = row("A", parent=b_id, id=a_id)
        b = row("B", parent=a_id, id=b_id)

        tree = build_tree([a, b])

        ids = [node["id"] for node in flatten(tree)]
        assert sorted(map(str, ids)) == sorted([str(a_id), str(b_id)])
        assert len(tree) == 1

    def test_empty_input(self):
        assert build_tree([]) == []


@pytest.mark.django_db
class TestParentValidation:
    def test_self_parent_rejected(self, category_factory):
        category = category_factory()
        with pytest.raises(SelfParentError):
            assert_valid_parent(category.pk, category.pk)

    def test_two_hop_cycle_rejected(self, category_factory):
        electronics = category_factory(name="Electronics", slug="electronics")
        phones = category_factory(name="Phones", slug="phones", parent=electronics)

        with pytest.raises(CircularReferenceError):
            assert_valid_parent(electronics.pk, phones.pk)

    def test_deep_cycle_rejected(self, category_factory):
        a = category_factory()
        b = category_factory(parent=a)
        c = category_factory(parent=b)
        d = category_factory(parent=c)

        with pytest.raises(CircularReferenceError):
            assert_valid_parent(a.pk, d.pk)

    def test_walk_past_max_depth_fails_closed(self, category_factory):
        a = category_factory()
        b = category_factory(parent=a)
        c = category_factory(parent=b)
        d = category_factory(parent=c)
        new = category_factory()

        with pytest.raises(CircularReferenceError):
            assert_valid_parent(new.pk, d.pk, max_depth=2)
        assert_valid_parent(new.pk, d.pk, max_depth=10)

    def test_missing_parent_is_not_found(self, category_factory):
        category = category_factory()
        with pytest.raises(NotFound):
            assert_valid_parent(category.pk, uuid.uuid4())

    def test_valid_move(self, category_factory):
        a = category_factory()
        b = category_factory()
        assert_valid_parent(b.pk, a.pk)
        assert_valid_parent(None, a.pk)
        assert_valid_parent(a.pk, None)

    def test_has_children_blocks_delete(self, category_factory):
        parent = category_factory()
        category_factory(parent=parent)
        with pytest.raises(HasChildrenError):
            assert_deletable(parent.pk)


@pytest.mark.django_db
class TestCategoryApi:
    @pytest.fixture
    def admin_client(self, admin_user, auth_client):
        return auth_client(admin_user)

    def test_electronics_phones_cycle_returns_400(self, admin_client, category_factory):
        electronics = category_factory(name="Electronics", slug="electronics")
        phones = category_factory(name="Phones", slug="phones", parent=electronics)

        res = admin_client.patch(
            f"/api/categories/{electronics.pk}/", {"parent": str(phones.pk)}, format="json"
        )

        assert res.status_code == 400
        assert res.data["code"] == "circular_reference"
        electronics.refresh_from_db()
        assert electronics.parent_id is None

    def test_self_parent_returns_400(self, admin_client, category_factory):
        category = category_factory()
        res = admin_client.put(f"/api/categories/{category.pk}/", {"parent": str(category.pk)}, format="json")
        assert res.status_code == 400
        assert res.data["code"] == "self_parent"

    def test_missing_parent_returns_404(self, admin_client, category_factory):
        category = category_factory()
        res = admin_client.patch(f"/api/categories/{category.pk}/", {"parent": str(uuid.uuid4())}, format="json")
        assert res.status_code == 404

    def test_create_under_parent(self, admin_client, category_factory):
        parent = category_factory()
        res = admin_client.post(
            "/api/categories/", {"name": "Phones", "slug": "phones", "parent": str(parent.pk)}, format="json"
        )
        assert res.status_code == 201
        assert Category.objects.get(slug="phones").parent_id == parent.pk

    def test_delete_with_children_returns_400(self, admin_client, category_factory):
        parent = category_factory()
        category_factory(parent=parent)

        res = admin_client.delete(f"/api/categories/{parent.pk}/")

        assert res.status_code == 400
        assert res.data["code"] == "has_children"
        assert Category.objects.filter(pk=parent.pk).exists()

    def test_child_added_after_check_still_reports_has_children(self, admin_client, category_factory):
        parent = category_factory()
        category_factory(parent=parent)

        with mock.patch("product_app.views.assert_deletable"):
            res = admin_client.delete(f"/api/categories/{parent.pk}/")

        assert res.status_code == 400
        assert res.data["code"] == "has_children"
        assert Category.objects.filter(pk=parent.pk).exists()

    def test_childless_delete_removes_row(self, admin_client, category_factory):
        category = category_factory()
        res = admin_client.delete(f"/api/categories/{category.pk}/")
        assert res.status_code == 204
        assert not Category.objects.filter(pk=category.pk).exists()

    def test_tree_is_public(self, api_client, category_factory):
        root = category_factory(name="Electronics", slug="electronics")
        category_factory(name="Phones", slug="phones", parent=root)

        res = api_client.get("/api/categories/tree/")

        assert res.status_code == 200
        assert len(res.data) == 1
        assert res.data[0]["children"][0]["slug"] == "phones"

    def test_vendor_cannot_write(self, user_factory, auth_client):
        client = auth_client(user_factory(role=RoleLevel.VENDOR))
        res = client.post("/api/categories/", {"name": "Books", "slug": "books"}, format="json")
        assert res.status_code == 403

    def test_bad_slug_is_validation_error(self, admin_client):
        res = admin_client.post("/api/categories/", {"name": "Books", "slug": "Bad Slug"}, format="json")
        assert res.status_code == 400
        assert res.data["success"] is False
        assert res.data["error"][0]["path"] == ["slug"]
