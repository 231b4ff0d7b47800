import pytest
from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework.exceptions import NotFound, ValidationError

from core.exceptions import api_exception_handler

CONTEXT = {"view": None}


def test_validation_errors_are_flattened():
    exc = ValidationError({"specifications": [{"key": ["This field is required."]}], "price": ["Too low."]})

    response = api_exception_handler(exc, CONTEXT)

    assert response.status_code == 400
    assert response.data == {
        "success": False,
        "error": [
            {"path": ["specifications", 0, "key"], "message": "This field is required."},
            {"path": ["price"], "message": "Too low."},
        ],
    }


def test_non_field_errors_have_empty_path():
    response = api_exception_handler(ValidationError("Provide at least one field."), CONTEXT)
    assert response.data["error"] == [{"path": [], "message": "Provide at least one field."}]


def test_api_errors_carry_code():
    response = api_exception_handler(NotFound("Product not found."), CONTEXT)
    assert response.status_code == 404
    assert response.data == {"error": "Product not found.", "code": "not_found"}


def test_integrity_error_is_conflict():
    response = api_exception_handler(IntegrityError("duplicate key"), CONTEXT)
    assert response.status_code == 409
    assert response.data["code"] == "conflict"


def test_non_unique_integrity_error_is_400():
    response = api_exception_handler(IntegrityError("CHECK constraint failed: product_price_positive"), CONTEXT)
    assert response.status_code == 400
    assert response.data["success"] is False
    assert "already exists" not in response.data["error"][0]["message"]


def test_protected_error_is_400():
    response = api_exception_handler(ProtectedError("referenced", set()), CONTEXT)
    assert response.status_code == 400


def test_unexpected_error_is_opaque_500():
    response = api_exception_handler(RuntimeError("secret internals"), CONTEXT)

    assert response.status_code == 500
    assert response.data == {"error": "Internal server error."}
    assert "secret internals" not in str(response.data)


@pytest.mark.django_db
def test_health_is_public(api_client):
    res = api_client.get("/api/health/")
    assert res.status_code == 200
    assert res.data["status"] == "OK"
