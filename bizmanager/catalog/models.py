from django.db import models
from decimal import Decimal


class Category(models.Model):
    """Product categories, owned by a single user"""
    user = models.ForeignKey('core.User', on_delete=models.CASCADE, related_name='categories')
    name = models.CharField(max_length=100, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['user', 'name'], name='unique_category_name_per_user'),
        ]


class Product(models.Model):
    """Product master"""
    user = models.ForeignKey('core.User', on_delete=models.CASCADE, related_name='products')
    category = models.ForeignKey(Category, on_delete=models.RESTRICT, related_name='products')
    name = models.CharField(max_length=100, db_index=True)
    description = models.CharField(max_length=255, blank=True, default='')
    unit_cost = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal('0'))
    unit_price = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal('0'))
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'products'
        ordering = ['name']


class Additional(models.Model):
    """Optional extras sold alongside the products of a category (e.g. toppings)"""
    user = models.ForeignKey('core.User', on_delete=models.CASCADE, related_name='additionals')
    category = models.ForeignKey(Category, on_delete=models.RESTRICT, related_name='additionals')
    description = models.CharField(max_length=100, db_index=True)
    additional_price = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal('0'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.description} ({self.category.name})"

    class Meta:
        db_table = 'additionals'
        ordering = ['description']
