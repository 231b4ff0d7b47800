from django.contrib import admin

from users.admin import AdminRoleRequiredMixin
from .models import (
    Brand,
    Category,
    Product,
    ProductAnswer,
    ProductQuestion,
    ProductSpecification,
    ProductWarranty,
    Review,
)


# ----------------------------------------
# 1. Brand & Category Admin
# ----------------------------------------
@admin.register(Brand)
class BrandAdmin(AdminRoleRequiredMixin, admin.ModelAdmin):
    list_display = ('name', 'slug', 'created_at')
    prepopulated_fields = {'slug': ('name',)}
    search_fields = ('name', 'slug')


@admin.register(Category)
class CategoryAdmin(AdminRoleRequiredMixin, admin.ModelAdmin):
    list_display = ('name', 'slug', 'parent')
    prepopulated_fields = {'slug': ('name',)}
    list_filter = ('parent',)
    search_fields = ('name', 'slug')


# ----------------------------------------
# 2. Product Admin
# ----------------------------------------
class ProductSpecificationInline(admin.TabularInline):
    model = ProductSpecification
    extra = 0


class ProductWarrantyInline(admin.StackedInline):
    model = ProductWarranty
    extra = 0
    max_num = 1


@admin.register(Product)
class ProductAdmin(AdminRoleRequiredMixin, admin.ModelAdmin):
    list_display = ('name', 'category', 'vendor_name', 'price', 'discount', 'is_active')
    list_filter = ('category', 'brand', 'is_active')
    search_fields = ('name', 'slug', 'vendor__shop_name')
    list_editable = ('price', 'discount', 'is_active')
    raw_id_fields = ('vendor',)
    prepopulated_fields = {'slug': ('name',)}
    inlines = [ProductSpecificationInline, ProductWarrantyInline]

    fieldsets = (
        (None, {'fields': ('name', 'slug', 'category', 'brand')}),
        ('Vendor Details', {'fields': ('vendor',)}),
        ('Pricing', {'fields': ('price', 'discount', 'is_active')}),
        ('Content', {'fields': ('short_description', 'description', 'images', 'tags')}),
    )

    actions = ['activate_products', 'deactivate_products']

    @admin.action(description="Activate selected products")
    def activate_products(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} products are now active.")

    @admin.action(description="Deactivate selected products")
    def deactivate_products(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} products are now hidden.")

    @admin.display(description='Vendor')
    def vendor_name(self, obj):
        return obj.vendor.shop_name


# ----------------------------------------
# 3. Q&A and Review Admin
# ----------------------------------------
class ProductAnswerInline(admin.TabularInline):
    model = ProductAnswer
    extra = 0
    raw_id_fields = ('vendor',)


@admin.register(ProductQuestion)
class ProductQuestionAdmin(AdminRoleRequiredMixin, admin.ModelAdmin):
    list_display = ('question', 'product', 'user', 'created_at')
    search_fields = ('question', 'product__name', 'user__email')
    raw_id_fields = ('product', 'user')
    inlines = [ProductAnswerInline]


@admin.register(Review)
class ReviewAdmin(AdminRoleRequiredMixin, admin.ModelAdmin):
    list_display = ('product', 'user', 'rating', 'created_at')
    list_filter = ('rating',)
    search_fields = ('product__name', 'user__email')
    raw_id_fields = ('product', 'user')
