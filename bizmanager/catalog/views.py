import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import RestrictedError
from django.shortcuts import get_object_or_404
from bizmanager.core.utils import error_response
from .models import Category, Product, Additional
from .filters import (
    ListParamsSerializer, CategoryFilter, ProductFilter, AdditionalFilter, paginate
)
from .serializers import CategorySerializer, ProductSerializer, AdditionalSerializer

logger = logging.getLogger(__name__)


def _list_params(request):
    """Validate the list query string. Returns (params, error_response)"""
    serializer = ListParamsSerializer(data=request.query_params)
    if not serializer.is_valid():
        return None, error_response('Invalid parameters', serializer.errors)
    return serializer.validated_data, None


def _owned_category_or_none(user, category_id):
    if category_id is None or not str(category_id).isdigit():
        return None
    return Category.objects.filter(pk=int(category_id), user=user).first()


def _category_not_found():
    return error_response('Category not found', status_code=status.HTTP_404_NOT_FOUND)


def _filtered_list(request, queryset, filterset_class, serializer_class, with_category=True):
    """Shared GET handler: validate params, filter, paginate and serialize"""
    params, error = _list_params(request)
    if error:
        return error

    filter_data = {'search': params['search']}
    if with_category and params['categoryId'] != 'all':
        category = _owned_category_or_none(request.user, params['categoryId'])
        if category is None:
            return _category_not_found()
        filter_data['category'] = category.id
    if 'active' in request.query_params:
        filter_data['active'] = request.query_params['active']

    filterset = filterset_class(filter_data, queryset=queryset)
    if not filterset.is_valid():
        return error_response('Invalid parameters', filterset.errors)

    rows, total = paginate(filterset.qs, params['page'], params['limit'], params['getAll'])
    serializer = serializer_class(rows, many=True)
    return Response({'data': serializer.data, 'total': total})


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List the user's categories or create a new category"""
    if request.method == 'GET':
        queryset = Category.objects.filter(user=request.user).order_by('name')
        return _filtered_list(request, queryset, CategoryFilter, CategorySerializer, with_category=False)
    else:
        serializer = CategorySerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid data', serializer.errors)

        name = serializer.validated_data['name']
        if Category.objects.filter(user=request.user, name=name).exists():
            return error_response('Category already exists')

        category = serializer.save(user=request.user)
        logger.info(f"Category {category.id} created by user {request.user.id}")
        return Response({'data': CategorySerializer(category).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    """Retrieve, rename or delete one of the user's categories"""
    category = get_object_or_404(Category, pk=pk, user=request.user)

    if request.method == 'GET':
        return Response({'data': CategorySerializer(category).data})
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return error_response('Invalid data', serializer.errors)

        name = serializer.validated_data.get('name')
        if name and Category.objects.filter(user=request.user, name=name).exclude(pk=category.pk).exists():
            return error_response('Category name already in use')

        serializer.save()
        return Response({'data': serializer.data})
    else:  # DELETE
        category_id = category.id
        try:
            category.delete()
        except RestrictedError:
            return error_response(
                'Category still has products or additionals',
                status_code=status.HTTP_409_CONFLICT
            )
        logger.info(f"Category {category_id} deleted by user {request.user.id}")
        return Response({'data': {'message': 'Category deleted successfully'}})


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List the user's products or create a new product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category').filter(user=request.user).order_by('name')
        return _filtered_list(request, queryset, ProductFilter, ProductSerializer)
    else:
        serializer = ProductSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid data', serializer.errors)

        if _owned_category_or_none(request.user, serializer.validated_data['category_id']) is None:
            return _category_not_found()

        product = serializer.save(user=request.user)
        logger.info(f"Product {product.id} created by user {request.user.id}")
        return Response({'data': ProductSerializer(product).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete one of the user's products"""
    product = get_object_or_404(Product.objects.select_related('category'), pk=pk, user=request.user)

    if request.method == 'GET':
        return Response({'data': ProductSerializer(product).data})
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return error_response('Invalid data', serializer.errors)

        category_id = serializer.validated_data.get('category_id')
        if category_id is not None and _owned_category_or_none(request.user, category_id) is None:
            return _category_not_found()

        product = serializer.save()
        return Response({'data': ProductSerializer(product).data})
    else:  # DELETE
        product_id = product.id
        product.delete()
        logger.info(f"Product {product_id} deleted by user {request.user.id}")
        return Response({'data': {'message': 'Product deleted successfully'}})


# Additional views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def additional_list_create(request):
    """List the user's additionals or create a new additional"""
    if request.method == 'GET':
        queryset = Additional.objects.select_related('category').filter(user=request.user).order_by('description')
        return _filtered_list(request, queryset, AdditionalFilter, AdditionalSerializer)
    else:
        serializer = AdditionalSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid data', serializer.errors)

        if _owned_category_or_none(request.user, serializer.validated_data['category_id']) is None:
            return _category_not_found()

        additional = serializer.save(user=request.user)
        logger.info(f"Additional {additional.id} created by user {request.user.id}")
        return Response({'data': AdditionalSerializer(additional).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def additional_detail(request, pk):
    """Retrieve, update or delete one of the user's additionals"""
    additional = get_object_or_404(Additional.objects.select_related('category'), pk=pk, user=request.user)

    if request.method == 'GET':
        return Response({'data': AdditionalSerializer(additional).data})
    elif request.method in ('PUT', 'PATCH'):
        serializer = AdditionalSerializer(additional, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return error_response('Invalid data', serializer.errors)

        category_id = serializer.validated_data.get('category_id')
        if category_id is not None and _owned_category_or_none(request.user, category_id) is None:
            return _category_not_found()

        additional = serializer.save()
        return Response({'data': AdditionalSerializer(additional).data})
    else:  # DELETE
        additional_id = additional.id
        additional.delete()
        logger.info(f"Additional {additional_id} deleted by user {request.user.id}")
        return Response({'data': {'message': 'Additional deleted successfully'}})
