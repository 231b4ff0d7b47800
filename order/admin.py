from django.contrib import admin

from users.admin import AdminRoleRequiredMixin
from .models import Order, OrderItem, Payment


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    raw_id_fields = ['product']
    extra = 0
    readonly_fields = ['price']


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ['amount', 'transaction_id', 'created_at']


@admin.register(Order)
class OrderAdmin(AdminRoleRequiredMixin, admin.ModelAdmin):
    list_display = ('order_no', 'user', 'total_amount', 'status', 'payment_status', 'created_at')
    list_filter = ('status', 'payment_status', 'payment_method', 'created_at')
    search_fields = ('order_no', 'user__email')

    fieldsets = (
        (None, {
            'fields': ('order_no', 'user', 'total_amount', 'status')
        }),
        ('Shipping Details', {
            'fields': ('shipping_address',)
        }),
        ('Payment', {
            'fields': ('payment_status', 'payment_method')
        }),
    )

    inlines = [OrderItemInline, PaymentInline]
    readonly_fields = ('order_no', 'user', 'total_amount', 'created_at')
