from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser, Role, Vendor
from .roles import RoleLevel


class AdminRoleRequiredMixin:
    """Django admin writes are limited to accounts holding the admin role."""

    def _is_admin_role(self, request):
        return request.user.is_authenticated and request.user.role_level == RoleLevel.ADMIN

    def has_module_permission(self, request):
        return self._is_admin_role(request)

    def has_add_permission(self, request, *args):
        return self._is_admin_role(request)

    def has_change_permission(self, request, obj=None):
        return self._is_admin_role(request)

    def has_delete_permission(self, request, obj=None):
        return self._is_admin_role(request)


@admin.register(CustomUser)
class CustomUserAdmin(AdminRoleRequiredMixin, UserAdmin):
    model = CustomUser
    list_display = ('email', 'first_name', 'last_name', 'role', 'is_active', 'is_staff')
    list_filter = ('role', 'is_active', 'is_staff', 'is_superuser')
    search_fields = ('email', 'first_name', 'last_name', 'phone')
    ordering = ('email',)
    readonly_fields = ('last_login', 'date_joined', 'updated_at')

    fieldsets = (
        (None, {'fields': ('email', 'password', 'role')}),
        ('Profile', {'fields': ('first_name', 'last_name', 'phone', 'address', 'profile_pic')}),
        ('Permissions', {'fields': ('is_staff', 'is_active', 'is_superuser')}),
        ('Important dates', {'fields': ('last_login', 'date_joined', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'password1', 'password2', 'role', 'is_active')}
        ),
    )


@admin.register(Role)
class RoleAdmin(AdminRoleRequiredMixin, admin.ModelAdmin):
    list_display = ('name', 'level')
    ordering = ('level',)


@admin.register(Vendor)
class VendorAdmin(AdminRoleRequiredMixin, admin.ModelAdmin):
    list_display = ('shop_name', 'user', 'is_active', 'created_at')
    list_filter = ('is_active',)
    list_editable = ('is_active',)
    search_fields = ('shop_name', 'user__email')
    raw_id_fields = ('user',)
