# product_app/urls.py
from django.urls import include, path
from rest_framework_nested import routers

from .views import (
    AnswerViewSet,
    BrandViewSet,
    CategoryViewSet,
    ProductViewSet,
    QuestionViewSet,
    ReviewViewSet,
    SpecificationViewSet,
    WarrantyViewSet,
)

# ------------------ 1. Main Router ------------------
router = routers.DefaultRouter()
router.register(r'brands', BrandViewSet, basename='brand')
router.register(r'categories', CategoryViewSet, basename='category')
router.register(r'products', ProductViewSet, basename='product')
router.register(r'specifications', SpecificationViewSet, basename='specification')
router.register(r'warranties', WarrantyViewSet, basename='warranty')
router.register(r'questions', QuestionViewSet, basename='question')
router.register(r'answers', AnswerViewSet, basename='answer')

# ------------------ 2. Nested Router for Product Reviews ------------------
products_router = routers.NestedSimpleRouter(router, r'products', lookup='product')
products_router.register(r'reviews', ReviewViewSet, basename='product-reviews')

urlpatterns = [
    path('', include(router.urls)),
    path('', include(products_router.urls)),
]
