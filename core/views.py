from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


class PartialPutMixin:
    """PUT behaves like PATCH: every field of an update body is optional."""

    def update(self, request, *args, **kwargs):
        kwargs['partial'] = True
        return super().update(request, *args, **kwargs)


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    return Response({'status': 'OK', 'timestamp': timezone.now().isoformat()})
