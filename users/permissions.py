# users/permissions.py

from rest_framework.permissions import BasePermission

from .roles import RoleLevel
from .services import get_principal


class HasRoleLevel(BasePermission):
    """
    Allows authenticated users whose role is at least ``required_level``.
    Subclasses pick the level.
    """
    required_level = RoleLevel.CUSTOMER

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return get_principal(request).at_least(self.required_level)


class IsAdminRole(HasRoleLevel):
    message = "Admin role required."
    required_level = RoleLevel.ADMIN


class IsVendor(HasRoleLevel):
    """Vendors, and admins acting on their behalf."""
    message = "Vendor role required."
    required_level = RoleLevel.VENDOR
