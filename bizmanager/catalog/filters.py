import django_filters
from django.db.models import Q
from rest_framework import serializers
from .models import Category, Product, Additional

SEARCH_MAX_LENGTH = 100
DEFAULT_PAGE_SIZE = 10


class ListParamsSerializer(serializers.Serializer):
    """
    Query string accepted by the catalog list endpoints:
        ?search=&categoryId=all&limit=10&page=1&getAll=false
    """
    search = serializers.CharField(max_length=SEARCH_MAX_LENGTH, required=False, allow_blank=True, default='')
    categoryId = serializers.CharField(required=False, allow_blank=True, default='all')
    limit = serializers.IntegerField(min_value=1, required=False, default=DEFAULT_PAGE_SIZE)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    getAll = serializers.BooleanField(required=False, default=False)

    def validate_categoryId(self, value):
        value = value.strip()
        return value or 'all'


def paginate(queryset, page, limit, get_all=False):
    """
    Slice a queryset for one page.

    Returns:
        tuple (rows, total) where total counts every matching row
    """
    total = queryset.count()
    if get_all:
        return list(queryset), total
    offset = (page - 1) * limit
    return list(queryset[offset:offset + limit]), total


class WordSearchFilterMixin:
    """Multi-word search: every word must appear in one of search_fields"""
    search_fields = ()

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        words = [w for w in value.strip().split() if w]
        for word in words:
            query = Q()
            for field in self.search_fields:
                query |= Q(**{f'{field}__icontains': word})
            queryset = queryset.filter(query)
        return queryset


class CategoryFilter(WordSearchFilterMixin, django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    search_fields = ('name',)

    class Meta:
        model = Category
        fields = ['search']


class ProductFilter(WordSearchFilterMixin, django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    active = django_filters.BooleanFilter(field_name='is_active')
    search_fields = ('name',)

    class Meta:
        model = Product
        fields = ['search', 'category', 'active']


class AdditionalFilter(WordSearchFilterMixin, django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    search_fields = ('description',)

    class Meta:
        model = Additional
        fields = ['search', 'category']
