# product_app/permissions.py

from rest_framework.permissions import SAFE_METHODS, BasePermission

from users.roles import RoleLevel
from users.services import get_principal


class IsAdminRoleOrReadOnly(BasePermission):
    """Anyone may read; only the admin role may write."""
    message = "Admin role required."

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        if not request.user or not request.user.is_authenticated:
            return False
        return get_principal(request).at_least(RoleLevel.ADMIN)


class IsAuthorOrAdmin(BasePermission):
    """
    Write access to user-authored content (questions, reviews) for its author
    and for admins. Vendor-owned resources go through ``ownership`` instead.
    """
    message = "You can only change your own content."

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        if not request.user or not request.user.is_authenticated:
            return False
        if obj.user_id == request.user.pk:
            return True
        return get_principal(request).is_admin
