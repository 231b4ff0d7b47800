from rest_framework import status
from rest_framework.exceptions import APIException


class CategoryTreeError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid category hierarchy.'
    default_code = 'invalid_hierarchy'


class SelfParentError(CategoryTreeError):
    default_detail = 'A category cannot be its own parent.'
    default_code = 'self_parent'


class CircularReferenceError(CategoryTreeError):
    default_detail = 'The chosen parent would create a circular category reference.'
    default_code = 'circular_reference'


class HasChildrenError(CategoryTreeError):
    default_detail = 'Category has child categories and cannot be deleted.'
    default_code = 'has_children'
