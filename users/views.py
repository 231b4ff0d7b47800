# users/views.py

import logging

import django_filters
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q
from django.middleware.csrf import get_token
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, status, views, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.views import TokenObtainPairView

from core.exceptions import Conflict
from core.uniqueness import atomic_write
from core.views import PartialPutMixin
from product_app.ownership import ResourceKind, assert_can_mutate, can_mutate
from product_app.serializers import ProductSerializer
from product_app.views import with_listing_data
from .models import Role, Vendor
from .permissions import IsAdminRole
from .roles import RoleLevel
from .serializers import (
    AdminUserSerializer,
    CustomUserSerializer,
    RoleAssignSerializer,
    VendorSerializer,
)
from .services import get_principal

User = get_user_model()
logger = logging.getLogger(__name__)


# ------------------
# 1. AUTH VIEWS
# ------------------
class LoginView(TokenObtainPairView):
    """
    Email/password login. Returns the token pair in the body and also sets the
    access token as an HTTP-only cookie for browser clients, together with the
    CSRF cookie that unsafe cookie-authenticated requests must echo back.
    """

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])

        tokens = serializer.validated_data
        user = serializer.user
        logger.info("User %s logged in", user.pk)

        response = Response(
            {
                'access': tokens['access'],
                'refresh': tokens['refresh'],
                'user': CustomUserSerializer(user).data,
                # Same value as the csrftoken cookie.
                'csrf_token': get_token(request),
            },
            status=status.HTTP_200_OK,
        )
        response.set_cookie(
            settings.AUTH_COOKIE_NAME,
            tokens['access'],
            max_age=int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
            httponly=True,
            secure=settings.AUTH_COOKIE_SECURE,
            samesite=settings.AUTH_COOKIE_SAMESITE,
        )
        return response


class LogoutView(views.APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        response = Response({'message': 'Logged out successfully.'}, status=status.HTTP_200_OK)
        response.delete_cookie(settings.AUTH_COOKIE_NAME, samesite=settings.AUTH_COOKIE_SAMESITE)
        return response


class WhoAmIView(views.APIView):
    """Echoes the authenticated user, with the role read fresh from the database."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        # Rejects tokens whose account has lost its role.
        get_principal(request)
        user = User.objects.select_related('role').get(pk=request.user.pk)
        return Response({
            'message': 'Authorized',
            'payload': {
                'user': CustomUserSerializer(user).data,
                'token': str(request.auth) if request.auth is not None else None,
            },
        })


# ------------------
# 2. ADMIN USER MANAGEMENT
# ------------------
class UserFilter(django_filters.FilterSet):
    role = django_filters.CharFilter(field_name='role__name', lookup_expr='iexact')
    is_active = django_filters.BooleanFilter()

    class Meta:
        model = User
        fields = ['role', 'is_active']


class AdminUserViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = User.objects.select_related('role').order_by('-date_joined')
    serializer_class = AdminUserSerializer
    permission_classes = [IsAdminRole]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_class = UserFilter
    search_fields = ['first_name', 'last_name', 'email', 'phone']

    def _set_active(self, user, active):
        user.is_active = active
        user.save(update_fields=['is_active', 'updated_at'])
        logger.info("User %s %s by admin %s", user.pk, 'activated' if active else 'deactivated', self.request.user.pk)
        return Response(self.get_serializer(user).data)

    @action(detail=True, methods=['patch'])
    def deactivate(self, request, pk=None):
        user = self.get_object()
        if user.pk == request.user.pk:
            raise ValidationError({'user': "You cannot deactivate your own account."})
        return self._set_active(user, False)

    @action(detail=True, methods=['patch'])
    def activate(self, request, pk=None):
        return self._set_active(self.get_object(), True)

    @action(detail=True, methods=['patch'], url_path='role')
    def change_role(self, request, pk=None):
        user = self.get_object()
        serializer = RoleAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        level = RoleLevel.from_name(serializer.validated_data['role'])
        if user.pk == request.user.pk and level != RoleLevel.ADMIN:
            raise ValidationError({'role': "You cannot remove your own admin role."})

        user.role = Role.for_level(level)
        user.is_staff = level == RoleLevel.ADMIN or user.is_superuser
        user.save(update_fields=['role', 'is_staff', 'updated_at'])
        logger.info("User %s role set to %s by admin %s", user.pk, level.role_name, request.user.pk)
        return Response(self.get_serializer(user).data)


# ------------------
# 3. VENDOR VIEWSET
# ------------------
class VendorViewSet(PartialPutMixin, viewsets.ModelViewSet):
    serializer_class = VendorSerializer
    permission_classes_by_action = {
        'list': [AllowAny],
        'retrieve': [AllowAny],
        'products': [AllowAny],
    }
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['shop_name', 'user__email']
    ordering_fields = ['shop_name', 'created_at']

    def get_permissions(self):
        try:
            return [permission() for permission in self.permission_classes_by_action[self.action]]
        except KeyError:
            return [permission() for permission in self.permission_classes]

    def get_queryset(self):
        queryset = Vendor.objects.select_related('user')
        user = self.request.user
        if not user.is_authenticated:
            return queryset.filter(is_active=True)
        if get_principal(self.request).is_admin:
            return queryset
        # Owners still see their own shop after it is switched off.
        return queryset.filter(Q(is_active=True) | Q(user=user))

    def perform_create(self, serializer):
        principal = get_principal(self.request)
        owner = serializer.validated_data.get('user') or self.request.user

        if not principal.is_admin and owner.pk != principal.user_id:
            raise PermissionDenied("You can only create a vendor profile for yourself.")
        if Vendor.objects.filter(user=owner).exists():
            raise Conflict("User already has a vendor profile.")

        with atomic_write("User already has a vendor profile."):
            vendor = serializer.save(user=owner)
            if owner.role_level is None or owner.role_level > RoleLevel.VENDOR:
                owner.role = Role.for_level(RoleLevel.VENDOR)
                owner.save(update_fields=['role', 'updated_at'])
        logger.info("Vendor %s created for user %s", vendor.pk, owner.pk)

    def perform_update(self, serializer):
        assert_can_mutate(get_principal(self.request), ResourceKind.VENDOR, serializer.instance.pk)
        serializer.save()

    def perform_destroy(self, instance):
        assert_can_mutate(get_principal(self.request), ResourceKind.VENDOR, instance.pk)
        owner = instance.user
        vendor_id = instance.pk
        with atomic_write():
            instance.delete()
            if owner.role_level == RoleLevel.VENDOR:
                owner.role = Role.for_level(RoleLevel.CUSTOMER)
                owner.save(update_fields=['role', 'updated_at'])
        logger.info("Vendor %s deleted; user %s returned to customer", vendor_id, owner.pk)

    @action(detail=True, methods=['get'])
    def products(self, request, pk=None):
        vendor = self.get_object()
        products = with_listing_data(vendor.products.all())

        show_inactive = request.user.is_authenticated and can_mutate(get_principal(request), vendor.pk)
        if not show_inactive:
            products = products.filter(is_active=True)

        page = self.paginate_queryset(products)
        if page is not None:
            serializer = ProductSerializer(page, many=True, context=self.get_serializer_context())
            return self.get_paginated_response(serializer.data)
        return Response(ProductSerializer(products, many=True, context=self.get_serializer_context()).data)
