from django.urls import path
from .views import (
    category_list_create, category_detail,
    product_list_create, product_detail,
    additional_list_create, additional_detail,
)

urlpatterns = [
    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),

    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),

    # Additional endpoints
    path('additionals/', additional_list_create, name='additional-list-create'),
    path('additionals/<int:pk>/', additional_detail, name='additional-detail'),
]
