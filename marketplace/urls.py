from django.contrib import admin
from django.urls import include, path

from core.views import health

urlpatterns = [
    path('admin/', admin.site.urls),

    # Catalog, vendors, users and orders
    path('api/', include('product_app.urls')),
    path('api/', include('users.urls')),
    path('api/', include('order.urls')),

    # Registration, profile and JWT endpoints
    path('api/auth/', include('djoser.urls')),
    path('api/auth/', include('djoser.urls.jwt')),

    path('api/health/', health, name='health'),
]
