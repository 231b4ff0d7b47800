import pytest
from rest_framework.test import APIClient

from product_app.models import Brand, Category, Product
from users.models import Role, Vendor
from users.roles import RoleLevel, ensure_roles


@pytest.fixture
def roles(db):
    ensure_roles()
    return {level: Role.objects.get(level=level.value) for level in RoleLevel}


@pytest.fixture
def user_factory(roles, django_user_model):
    counter = {"i": 0}

    def make(role=RoleLevel.CUSTOMER, **kwargs):
        counter["i"] += 1
        i = counter["i"]
        return django_user_model.objects.create_user(
            email=kwargs.pop("email", f"user{i}@example.com"),
            password=kwargs.pop("password", "Secret!234"),
            first_name=kwargs.pop("first_name", "Test"),
            last_name=kwargs.pop("last_name", f"User{i}"),
            role=roles[RoleLevel(role)],
            **kwargs,
        )

    return make


@pytest.fixture
def admin_user(user_factory):
    return user_factory(role=RoleLevel.ADMIN, is_staff=True)


@pytest.fixture
def vendor_factory(user_factory):
    def make(user=None, **kwargs):
        if user is None:
            user = user_factory(role=RoleLevel.VENDOR)
        kwargs.setdefault("shop_name", f"{user.first_name}'s shop")
        return Vendor.objects.create(user=user, **kwargs)

    return make


@pytest.fixture
def category_factory(db):
    counter = {"i": 0}

    def make(parent=None, **kwargs):
        counter["i"] += 1
        i = counter["i"]
        return Category.objects.create(
            name=kwargs.pop("name", f"Category {i}"),
            slug=kwargs.pop("slug", f"category-{i}"),
            parent=parent,
            **kwargs,
        )

    return make


@pytest.fixture
def brand(db):
    return Brand.objects.create(name="Acme", slug="acme")


@pytest.fixture
def product_factory(vendor_factory, category_factory):
    counter = {"i": 0}

    def make(vendor=None, category=None, **kwargs):
        counter["i"] += 1
        i = counter["i"]
        return Product.objects.create(
            vendor=vendor or vendor_factory(),
            category=category or category_factory(),
            name=kwargs.pop("name", f"Product {i}"),
            slug=kwargs.pop("slug", f"product-{i}"),
            price=kwargs.pop("price", "100.00"),
            **kwargs,
        )

    return make


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    def make(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return make
