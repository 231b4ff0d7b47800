from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import AdminUserViewSet, LoginView, LogoutView, VendorViewSet, WhoAmIView

router = SimpleRouter()
router.register(r'users', AdminUserViewSet, basename='admin-user')
router.register(r'vendors', VendorViewSet, basename='vendor')

urlpatterns = [
    path('auth/login/', LoginView.as_view(), name='auth-login'),
    path('auth/logout/', LogoutView.as_view(), name='auth-logout'),
    path('whoami/', WhoAmIView.as_view(), name='whoami'),
    path('', include(router.urls)),
]
