# product_app/views.py

import logging

from django.db.models import Avg, ProtectedError, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from core.uniqueness import assert_available, atomic_write
from core.views import PartialPutMixin
from users.models import Vendor
from users.permissions import IsVendor
from users.services import get_principal
from .category_tree import assert_deletable, assert_valid_parent, category_tree
from .exceptions import HasChildrenError
from .filters import ProductFilter
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
from .ownership import ResourceKind, assert_can_mutate, can_mutate
from .permissions import IsAdminRoleOrReadOnly, IsAuthorOrAdmin
from .serializers import (
    BrandSerializer,
    BulkSpecificationSerializer,
    CategorySerializer,
    ProductAnswerSerializer,
    ProductBulkUpdateSerializer,
    ProductQuestionSerializer,
    ProductSerializer,
    ProductSpecificationSerializer,
    ProductWarrantySerializer,
    ReviewSerializer,
)

logger = logging.getLogger(__name__)

SLUG_TAKEN = "Slug already exists."


def visible_products(request):
    """Public callers see active products; owners also see their own inactive ones; admins see all."""
    queryset = Product.objects.select_related('vendor', 'category', 'brand')
    user = request.user
    if not user.is_authenticated:
        return queryset.filter(is_active=True)
    if get_principal(request).is_admin:
        return queryset
    return queryset.filter(Q(is_active=True) | Q(vendor__user=user))


def with_listing_data(queryset):
    """Preload what ProductSerializer reads so a page costs a fixed number of queries."""
    return (
        queryset.select_related('vendor', 'category', 'brand', 'warranty')
        .prefetch_related('specifications')
        .annotate(rating_avg=Avg('reviews__rating'))
    )


# ------------------
# 1. BRAND VIEWSET
# ------------------
class BrandViewSet(PartialPutMixin, viewsets.ModelViewSet):
    queryset = Brand.objects.all()
    serializer_class = BrandSerializer
    permission_classes = [IsAdminRoleOrReadOnly]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'slug']
    ordering_fields = ['name', 'created_at']

    def perform_create(self, serializer):
        with atomic_write(SLUG_TAKEN):
            serializer.save()

    def perform_update(self, serializer):
        with atomic_write(SLUG_TAKEN):
            serializer.save()


# ------------------
# 2. CATEGORY VIEWSET
# ------------------
class CategoryViewSet(PartialPutMixin, viewsets.ModelViewSet):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    permission_classes = [IsAdminRoleOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['parent']
    search_fields = ['name', 'slug']

    def perform_create(self, serializer):
        with atomic_write(SLUG_TAKEN):
            assert_valid_parent(None, serializer.validated_data.get('parent_id'))
            serializer.save()

    def perform_update(self, serializer):
        with atomic_write(SLUG_TAKEN):
            if 'parent_id' in serializer.validated_data:
                assert_valid_parent(serializer.instance.pk, serializer.validated_data['parent_id'])
            serializer.save()

    def perform_destroy(self, instance):
        with atomic_write():
            assert_deletable(instance.pk)
            try:
                instance.delete()
            except ProtectedError as exc:
                # A child was attached after the check above.
                raise HasChildrenError() from exc
        logger.info("Category %s deleted", instance.slug)

    @action(detail=False, methods=['get'])
    def tree(self, request):
        return Response(category_tree())


# ------------------
# 3. PRODUCT VIEWSET
# ------------------
class ProductViewSet(PartialPutMixin, viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticatedOrReadOnly]
    permission_classes_by_action = {
        'create': [IsVendor],
        'bulk_update': [IsVendor],
    }
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = ProductFilter
    search_fields = ['name', 'short_description', 'description', 'brand__name', 'category__name']
    ordering_fields = ['price', 'discount', 'name', 'created_at']

    def get_permissions(self):
        try:
            return [permission() for permission in self.permission_classes_by_action[self.action]]
        except KeyError:
            return [permission() for permission in self.permission_classes]

    def get_queryset(self):
        return with_listing_data(visible_products(self.request))

    def perform_create(self, serializer):
        vendor_id = serializer.validated_data['vendor_id']
        assert_can_mutate(get_principal(self.request), ResourceKind.VENDOR, vendor_id)
        with atomic_write(SLUG_TAKEN):
            product = serializer.save()
        logger.info("Product %s created for vendor %s", product.pk, vendor_id)

    def perform_update(self, serializer):
        assert_can_mutate(get_principal(self.request), ResourceKind.PRODUCT, serializer.instance.pk)
        with atomic_write(SLUG_TAKEN):
            serializer.save()

    def perform_destroy(self, instance):
        assert_can_mutate(get_principal(self.request), ResourceKind.PRODUCT, instance.pk)
        product_id = instance.pk
        with atomic_write():
            ProductSpecification.objects.filter(product_id=product_id).delete()
            ProductWarranty.objects.filter(product_id=product_id).delete()
            instance.delete()
        logger.info("Product %s deleted with its specifications and warranty", product_id)

    @action(detail=False, methods=['get'], url_path=r'by-slug/(?P<slug>[-\w]+)')
    def by_slug(self, request, slug=None):
        product = get_object_or_404(self.get_queryset(), slug=slug)
        return Response(self.get_serializer(product).data)

    @action(detail=True, methods=['get'])
    def related(self, request, pk=None):
        product = self.get_object()
        related = (
            with_listing_data(Product.objects.filter(category_id=product.category_id, is_active=True))
            .exclude(pk=product.pk)[:8]
        )
        return Response(self.get_serializer(related, many=True).data)

    @action(detail=True, methods=['patch'], url_path='toggle-active')
    def toggle_active(self, request, pk=None):
        product = self.get_object()
        assert_can_mutate(get_principal(request), ResourceKind.PRODUCT, product.pk)
        product.is_active = not product.is_active
        product.save(update_fields=['is_active', 'updated_at'])
        logger.info("Product %s is_active set to %s", product.pk, product.is_active)
        return Response(self.get_serializer(product).data)

    @action(detail=False, methods=['patch'], url_path='bulk-update')
    def bulk_update(self, request):
        serializer = ProductBulkUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vendor_id = serializer.validated_data['vendor']
        ids = set(serializer.validated_data['ids'])

        assert_can_mutate(get_principal(request), ResourceKind.VENDOR, vendor_id)

        with atomic_write():
            products = Product.objects.select_for_update().filter(pk__in=ids, vendor_id=vendor_id)
            found = set(products.values_list('pk', flat=True))
            if found != ids:
                raise NotFound("Some products were not found for this vendor.")
            updated = products.update(updated_at=timezone.now(), **serializer.update_fields())
        logger.info("Bulk updated %s products of vendor %s", updated, vendor_id)
        return Response({'updated': updated})

    @action(detail=True, methods=['get'])
    def qa(self, request, pk=None):
        product = self.get_object()
        questions = (
            product.questions.select_related('user')
            .prefetch_related('answers__vendor')
        )
        page = self.paginate_queryset(questions)
        if page is not None:
            return self.get_paginated_response(ProductQuestionSerializer(page, many=True).data)
        return Response(ProductQuestionSerializer(questions, many=True).data)

    @action(detail=True, methods=['get'])
    def warranty(self, request, pk=None):
        product = self.get_object()
        warranty = ProductWarranty.objects.filter(product=product).first()
        if warranty is None:
            raise NotFound("Warranty not found for this product.")
        return Response(ProductWarrantySerializer(warranty).data)


# ------------------
# 4. SPECIFICATION & WARRANTY VIEWSETS
# ------------------
class SpecificationViewSet(PartialPutMixin, viewsets.ModelViewSet):
    queryset = ProductSpecification.objects.select_related('product')
    serializer_class = ProductSpecificationSerializer
    permission_classes = [IsAuthenticatedOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['product']

    def perform_create(self, serializer):
        product_id = serializer.validated_data['product_id']
        assert_can_mutate(get_principal(self.request), ResourceKind.PRODUCT, product_id)
        with atomic_write():
            serializer.save()

    def perform_update(self, serializer):
        assert_can_mutate(get_principal(self.request), ResourceKind.SPECIFICATION, serializer.instance.pk)
        serializer.save()

    def perform_destroy(self, instance):
        assert_can_mutate(get_principal(self.request), ResourceKind.SPECIFICATION, instance.pk)
        instance.delete()

    @action(detail=False, methods=['post'])
    def bulk(self, request):
        serializer = BulkSpecificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product_id = serializer.validated_data['product']

        assert_can_mutate(get_principal(request), ResourceKind.PRODUCT, product_id)

        with atomic_write():
            created = ProductSpecification.objects.bulk_create([
                ProductSpecification(product_id=product_id, **item)
                for item in serializer.validated_data['specifications']
            ])
        logger.info("Added %s specifications to product %s", len(created), product_id)
        return Response(
            ProductSpecificationSerializer(created, many=True).data,
            status=status.HTTP_201_CREATED,
        )


class WarrantyViewSet(PartialPutMixin, viewsets.ModelViewSet):
    queryset = ProductWarranty.objects.select_related('product')
    serializer_class = ProductWarrantySerializer
    permission_classes = [IsAuthenticatedOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['product']

    def perform_create(self, serializer):
        product_id = serializer.validated_data['product_id']
        assert_can_mutate(get_principal(self.request), ResourceKind.PRODUCT, product_id)
        message = "Product already has a warranty."
        assert_available(ProductWarranty, message=message, product_id=product_id)
        with atomic_write(message):
            serializer.save()

    def perform_update(self, serializer):
        assert_can_mutate(get_principal(self.request), ResourceKind.WARRANTY, serializer.instance.pk)
        serializer.save()

    def perform_destroy(self, instance):
        assert_can_mutate(get_principal(self.request), ResourceKind.WARRANTY, instance.pk)
        instance.delete()


# ------------------
# 5. QUESTION & ANSWER VIEWSETS
# ------------------
class QuestionViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = ProductQuestion.objects.select_related('user').prefetch_related('answers__vendor')
    serializer_class = ProductQuestionSerializer
    permission_classes = [IsAuthenticatedOrReadOnly, IsAuthorOrAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['product']

    def perform_create(self, serializer):
        product_id = serializer.validated_data['product_id']
        if not visible_products(self.request).filter(pk=product_id).exists():
            raise NotFound("Product not found.")
        serializer.save(user=self.request.user)


class AnswerViewSet(PartialPutMixin, viewsets.ModelViewSet):
    queryset = ProductAnswer.objects.select_related('vendor', 'question')
    serializer_class = ProductAnswerSerializer
    permission_classes = [IsAuthenticatedOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['question', 'vendor']

    def _answering_vendor(self, principal, vendor_id):
        if vendor_id is not None:
            assert_can_mutate(principal, ResourceKind.VENDOR, vendor_id)
            return vendor_id
        if principal.is_admin:
            raise ValidationError({'vendor': "Admins must name the vendor they answer for."})
        vendor_id = Vendor.objects.filter(user_id=principal.user_id).values_list('pk', flat=True).first()
        if vendor_id is None or not can_mutate(principal, vendor_id):
            raise PermissionDenied("Only active vendors can answer questions.")
        return vendor_id

    def perform_create(self, serializer):
        principal = get_principal(self.request)
        question_id = serializer.validated_data['question_id']
        if not ProductQuestion.objects.filter(pk=question_id).exists():
            raise NotFound("Question not found.")

        vendor_id = self._answering_vendor(principal, serializer.validated_data.get('vendor_id'))
        message = "This vendor has already answered the question."
        assert_available(ProductAnswer, message=message, question_id=question_id, vendor_id=vendor_id)
        with atomic_write(message):
            serializer.save(vendor_id=vendor_id)

    def perform_update(self, serializer):
        assert_can_mutate(get_principal(self.request), ResourceKind.ANSWER, serializer.instance.pk)
        serializer.save()

    def perform_destroy(self, instance):
        assert_can_mutate(get_principal(self.request), ResourceKind.ANSWER, instance.pk)
        instance.delete()


# ------------------
# 6. REVIEW VIEWSET (nested under products)
# ------------------
class ReviewViewSet(PartialPutMixin, viewsets.ModelViewSet):
    serializer_class = ReviewSerializer
    permission_classes = [IsAuthenticatedOrReadOnly, IsAuthorOrAdmin]

    def get_queryset(self):
        product_id = self.kwargs.get('product_pk')
        return Review.objects.filter(product_id=product_id).select_related('user', 'product')

    def perform_create(self, serializer):
        product_id = self.kwargs.get('product_pk')
        if not visible_products(self.request).filter(pk=product_id).exists():
            raise NotFound("Product not found.")

        message = "You have already reviewed this product."
        assert_available(Review, message=message, product_id=product_id, user=self.request.user)
        with atomic_write(message):
            serializer.save(user=self.request.user, product_id=product_id)
