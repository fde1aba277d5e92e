from django.contrib import admin
from .models import Category, Product, Additional


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'user', 'created_at']
    list_filter = ['created_at']
    search_fields = ['name', 'user__email']
    ordering = ['name']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'unit_cost', 'unit_price', 'is_active', 'user', 'created_at']
    list_filter = ['is_active', 'category', 'created_at']
    search_fields = ['name', 'description', 'user__email']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Additional)
class AdditionalAdmin(admin.ModelAdmin):
    list_display = ['description', 'category', 'additional_price', 'user', 'created_at']
    list_filter = ['category', 'created_at']
    search_fields = ['description', 'user__email']
    ordering = ['description']
    readonly_fields = ['created_at', 'updated_at']
