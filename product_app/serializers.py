from decimal import Decimal

from django.db import models
from rest_framework import serializers

from core.uniqueness import assert_slug_available
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

SLUG_PATTERN = r'^[a-z0-9]+(?:-[a-z0-9]+)*$'
SLUG_ERROR = "Slug may only contain lowercase letters, numbers and single hyphens."


def slug_field(max_length, **kwargs):
    return serializers.RegexField(
        SLUG_PATTERN, max_length=max_length, error_messages={'invalid': SLUG_ERROR}, **kwargs
    )


class SlugUniqueMixin:
    """Checks slug availability against the model, skipping the row being updated."""

    def validate_slug(self, value):
        exclude_id = self.instance.pk if self.instance is not None else None
        assert_slug_available(self.Meta.model, value, exclude_id=exclude_id)
        return value


# ----------------------------------------------------
# 1. BRAND & CATEGORY
# ----------------------------------------------------
class BrandSerializer(SlugUniqueMixin, serializers.ModelSerializer):
    name = serializers.CharField(min_length=2, max_length=150)
    slug = slug_field(100)

    class Meta:
        model = Brand
        fields = ['id', 'name', 'slug', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class CategorySerializer(SlugUniqueMixin, serializers.ModelSerializer):
    name = serializers.CharField(min_length=2, max_length=100)
    slug = slug_field(100)
    # A plain id so a dangling parent can be reported as 404 by the view.
    parent = serializers.UUIDField(source='parent_id', required=False, allow_null=True)

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'parent', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


# ----------------------------------------------------
# 2. SPECIFICATION & WARRANTY
# ----------------------------------------------------
class SpecificationItemSerializer(serializers.Serializer):
    key = serializers.CharField(min_length=1, max_length=100)
    value = serializers.CharField(min_length=1, max_length=500)


class ProductSpecificationSerializer(serializers.ModelSerializer):
    product = serializers.UUIDField(source='product_id')
    key = serializers.CharField(min_length=1, max_length=100)
    value = serializers.CharField(min_length=1, max_length=500)

    class Meta:
        model = ProductSpecification
        fields = ['id', 'product', 'key', 'value', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_product(self, value):
        if self.instance is not None and value != self.instance.product_id:
            raise serializers.ValidationError("A specification cannot be moved to another product.")
        return value


class BulkSpecificationSerializer(serializers.Serializer):
    product = serializers.UUIDField()
    specifications = SpecificationItemSerializer(many=True, allow_empty=False)


class WarrantyItemSerializer(serializers.Serializer):
    warranty_period = serializers.CharField(min_length=1, max_length=50)
    warranty_type = serializers.CharField(max_length=100, required=False, allow_blank=True)
    details = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class ProductWarrantySerializer(serializers.ModelSerializer):
    product = serializers.UUIDField(source='product_id')
    warranty_period = serializers.CharField(min_length=1, max_length=50)
    warranty_type = serializers.CharField(max_length=100, required=False, allow_blank=True)
    details = serializers.CharField(max_length=1000, required=False, allow_blank=True)

    class Meta:
        model = ProductWarranty
        fields = ['id', 'product', 'warranty_period', 'warranty_type', 'details', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_product(self, value):
        if self.instance is not None and value != self.instance.product_id:
            raise serializers.ValidationError("A warranty cannot be moved to another product.")
        return value


# ----------------------------------------------------
# 3. REVIEW SERIALIZER
# ----------------------------------------------------
class ReviewSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.name', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=2000, required=False, allow_blank=True)

    class Meta:
        model = Review
        fields = [
            'id', 'user', 'user_name', 'product',
            'product_name', 'rating', 'comment', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'user', 'product', 'created_at', 'updated_at']
        validators = []


# ----------------------------------------------------
# 4. PRODUCT SERIALIZERS
# ----------------------------------------------------
class ProductSerializer(SlugUniqueMixin, serializers.ModelSerializer):
    vendor = serializers.UUIDField(source='vendor_id')
    vendor_name = serializers.CharField(source='vendor.shop_name', read_only=True)
    category = serializers.UUIDField(source='category_id')
    category_name = serializers.CharField(source='category.name', read_only=True)
    brand = serializers.UUIDField(source='brand_id', required=False, allow_null=True)
    brand_name = serializers.CharField(source='brand.name', read_only=True, default=None)

    name = serializers.CharField(min_length=2, max_length=100)
    slug = slug_field(150)
    short_description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    discount = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100'), required=False
    )
    sale_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    images = serializers.ListField(child=serializers.CharField(max_length=500), required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    specifications = SpecificationItemSerializer(many=True, required=False)
    warranty = WarrantyItemSerializer(required=False, allow_null=True)
    average_rating = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'vendor', 'vendor_name', 'category', 'category_name', 'brand', 'brand_name',
            'name', 'slug', 'short_description', 'description', 'price', 'discount',
            'sale_price', 'images', 'tags', 'is_active', 'specifications', 'warranty',
            'average_rating', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_category(self, value):
        if not Category.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Category not found.")
        return value

    def validate_brand(self, value):
        if value is not None and not Brand.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Brand not found.")
        return value

    def validate_vendor(self, value):
        if self.instance is not None and value != self.instance.vendor_id:
            raise serializers.ValidationError("A product cannot be moved to another vendor.")
        return value

    def validate(self, attrs):
        if self.instance is not None:
            nested = [name for name in ('specifications', 'warranty') if name in attrs]
            if nested:
                raise serializers.ValidationError(
                    {name: "Manage this through its own endpoint after the product exists." for name in nested}
                )
        return attrs

    def create(self, validated_data):
        specifications = validated_data.pop('specifications', [])
        warranty = validated_data.pop('warranty', None)

        product = Product.objects.create(**validated_data)
        if specifications:
            ProductSpecification.objects.bulk_create(
                [ProductSpecification(product=product, **item) for item in specifications]
            )
        if warranty:
            ProductWarranty.objects.create(product=product, **warranty)
        return product

    def get_average_rating(self, obj):
        if hasattr(obj, 'rating_avg'):
            avg = obj.rating_avg
        else:
            avg = obj.reviews.aggregate(models.Avg('rating'))['rating__avg']
        return round(avg, 1) if avg is not None else None


class ProductBulkUpdateSerializer(serializers.Serializer):
    UPDATABLE = ('is_active', 'discount', 'category', 'brand')

    vendor = serializers.UUIDField()
    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False, max_length=100)
    is_active = serializers.BooleanField(required=False)
    discount = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100'), required=False
    )
    category = serializers.UUIDField(required=False)
    brand = serializers.UUIDField(required=False, allow_null=True)

    def validate_category(self, value):
        if not Category.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Category not found.")
        return value

    def validate_brand(self, value):
        if value is not None and not Brand.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Brand not found.")
        return value

    def validate(self, attrs):
        if not any(name in attrs for name in self.UPDATABLE):
            raise serializers.ValidationError("Provide at least one field to update.")
        return attrs

    def update_fields(self):
        changes = {}
        for name in self.UPDATABLE:
            if name not in self.validated_data:
                continue
            column = f'{name}_id' if name in ('category', 'brand') else name
            changes[column] = self.validated_data[name]
        return changes


# ----------------------------------------------------
# 5. QUESTIONS & ANSWERS
# ----------------------------------------------------
class ProductAnswerSerializer(serializers.ModelSerializer):
    question = serializers.UUIDField(source='question_id')
    vendor = serializers.UUIDField(source='vendor_id', required=False)
    vendor_name = serializers.CharField(source='vendor.shop_name', read_only=True)
    answer = serializers.CharField(min_length=10, max_length=2000)

    class Meta:
        model = ProductAnswer
        fields = ['id', 'question', 'vendor', 'vendor_name', 'answer', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
        validators = []

    def validate_question(self, value):
        if self.instance is not None and value != self.instance.question_id:
            raise serializers.ValidationError("An answer cannot be moved to another question.")
        return value

    def validate_vendor(self, value):
        if self.instance is not None and value != self.instance.vendor_id:
            raise serializers.ValidationError("An answer cannot be moved to another vendor.")
        return value


class ProductQuestionSerializer(serializers.ModelSerializer):
    product = serializers.UUIDField(source='product_id')
    user_name = serializers.CharField(source='user.name', read_only=True)
    question = serializers.CharField(min_length=10, max_length=1000)
    answers = ProductAnswerSerializer(many=True, read_only=True)

    class Meta:
        model = ProductQuestion
        fields = ['id', 'product', 'user', 'user_name', 'question', 'answers', 'created_at', 'updated_at']
        read_only_fields = ['id', 'user', 'created_at', 'updated_at']
