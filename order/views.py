# order/views.py

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, viewsets
from rest_framework.permissions import IsAuthenticated

from users.services import get_principal
from .models import Order
from .serializers import OrderSerializer


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """A customer's own orders; admins see every order."""
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['status', 'payment_status', 'payment_method']
    ordering_fields = ['created_at', 'total_amount']

    def get_queryset(self):
        queryset = (
            Order.objects.select_related('user')
            .prefetch_related('items__product', 'payments')
        )
        if get_principal(self.request).is_admin:
            return queryset
        return queryset.filter(user=self.request.user)
