import django_filters

from .models import Product


class ProductFilter(django_filters.FilterSet):
    vendor = django_filters.UUIDFilter(field_name='vendor_id')
    category = django_filters.UUIDFilter(field_name='category_id')
    brand = django_filters.UUIDFilter(field_name='brand_id')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    is_active = django_filters.BooleanFilter()
    tags = django_filters.CharFilter(method='filter_tags')

    class Meta:
        model = Product
        fields = ['vendor', 'category', 'brand', 'min_price', 'max_price', 'is_active', 'tags']

    def filter_tags(self, queryset, name, value):
        # Comma separated; a product must carry every tag. Matches the quoted
        # JSON string so "phone" does not match "headphones".
        for tag in (t.strip() for t in value.split(',')):
            if tag:
                queryset = queryset.filter(tags__icontains=f'"{tag}"')
        return queryset
