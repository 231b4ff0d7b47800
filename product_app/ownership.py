# product_app/ownership.py

import logging
from enum import Enum

from rest_framework.exceptions import NotFound, PermissionDenied

from users.models import Vendor
from .models import Product, ProductAnswer, ProductSpecification, ProductWarranty

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    VENDOR = 'vendor'
    PRODUCT = 'product'
    SPECIFICATION = 'specification'
    WARRANTY = 'warranty'
    ANSWER = 'answer'


def _vendor_of_vendor(resource_id):
    if not Vendor.objects.filter(pk=resource_id).exists():
        raise NotFound("Vendor not found.")
    return resource_id


def _vendor_of_product(resource_id):
    vendor_id = Product.objects.filter(pk=resource_id).values_list('vendor_id', flat=True).first()
    if vendor_id is None:
        raise NotFound("Product not found.")
    return vendor_id


def _vendor_of_specification(resource_id):
    product_id = (
        ProductSpecification.objects.filter(pk=resource_id)
        .values_list('product_id', flat=True)
        .first()
    )
    if product_id is None:
        raise NotFound("Specification not found.")
    return _vendor_of_product(product_id)


def _vendor_of_warranty(resource_id):
    product_id = (
        ProductWarranty.objects.filter(pk=resource_id)
        .values_list('product_id', flat=True)
        .first()
    )
    if product_id is None:
        raise NotFound("Warranty not found.")
    return _vendor_of_product(product_id)


def _vendor_of_answer(resource_id):
    vendor_id = ProductAnswer.objects.filter(pk=resource_id).values_list('vendor_id', flat=True).first()
    if vendor_id is None:
        raise NotFound("Answer not found.")
    return vendor_id


OWNER_RESOLVERS = {
    ResourceKind.VENDOR: _vendor_of_vendor,
    ResourceKind.PRODUCT: _vendor_of_product,
    ResourceKind.SPECIFICATION: _vendor_of_specification,
    ResourceKind.WARRANTY: _vendor_of_warranty,
    ResourceKind.ANSWER: _vendor_of_answer,
}


def owner_vendor_id(kind, resource_id):
    """
    Walk the ownership chain of a resource up to its vendor id.

    Raises NotFound when any link of the chain is missing.
    """
    return OWNER_RESOLVERS[ResourceKind(kind)](resource_id)


def can_mutate(principal, vendor_id):
    """Admins may change anything; otherwise the caller must own the vendor and it must be active."""
    if principal.is_admin:
        return True
    vendor = Vendor.objects.filter(pk=vendor_id).values('user_id', 'is_active').first()
    if vendor is None:
        return False
    return vendor['user_id'] == principal.user_id and vendor['is_active']


def assert_can_mutate(principal, kind, resource_id):
    vendor_id = owner_vendor_id(kind, resource_id)
    if not can_mutate(principal, vendor_id):
        logger.info(
            "User %s denied write on %s %s (vendor %s)",
            principal.user_id, ResourceKind(kind).value, resource_id, vendor_id,
        )
        raise PermissionDenied("You do not have permission to modify this resource.")
    return vendor_id
