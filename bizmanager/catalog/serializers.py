from decimal import Decimal
from rest_framework import serializers
from .models import Category, Product, Additional
from .validators import (
    ABSENT, DecimalValidationOptions, normalize_decimal, validate_decimal
)

AMOUNT_MAX_LENGTH = 18


class LocaleDecimalField(serializers.Field):
    """
    Monetary amount accepted as '1.234,56', '1234,56' or '1234.56'.

    Input is normalized and checked against DecimalValidationOptions before it
    becomes a Decimal. Output is the canonical string without trailing zeros.
    """
    default_error_messages = {
        'invalid': 'A valid amount is required.',
        'max_length': 'Ensure this field has no more than {max_length} characters.',
    }

    def __init__(self, options=None, max_length=AMOUNT_MAX_LENGTH, **kwargs):
        super().__init__(**kwargs)
        self.options = options or DecimalValidationOptions(required=self.required)
        self.max_length = max_length

    def to_internal_value(self, data):
        if isinstance(data, bool):
            self.fail('invalid')
        if isinstance(data, str):
            data = data.strip()
            if self.max_length is not None and len(data) > self.max_length:
                self.fail('max_length', max_length=self.max_length)
        if not validate_decimal(data, self.options):
            self.fail('invalid')
        normalized = normalize_decimal(data)
        if normalized is ABSENT:
            return None
        return Decimal(normalized.value)

    def to_representation(self, value):
        if value is None:
            return None
        value = Decimal(value)
        if value == 0:
            return '0'
        return format(value.normalize(), 'f')


class CategorySerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source='user_id', read_only=True)
    name = serializers.CharField(max_length=100, trim_whitespace=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Category
        fields = ['id', 'userId', 'name', 'createdAt', 'updatedAt']


class ProductSerializer(serializers.ModelSerializer):
    """
    Products read and write the same camelCase shape:
        {categoryId, name, description, unitCost, unitPrice, isActive}
    """
    userId = serializers.IntegerField(source='user_id', read_only=True)
    categoryId = serializers.IntegerField(source='category_id')
    categoryName = serializers.CharField(source='category.name', read_only=True)
    name = serializers.CharField(max_length=100, trim_whitespace=True)
    description = serializers.CharField(max_length=255, allow_blank=True, trim_whitespace=True, default='')
    unitCost = LocaleDecimalField(source='unit_cost')
    unitPrice = LocaleDecimalField(source='unit_price')
    isActive = serializers.BooleanField(source='is_active', default=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'userId', 'categoryId', 'categoryName', 'name', 'description',
            'unitCost', 'unitPrice', 'isActive', 'createdAt', 'updatedAt'
        ]


class AdditionalSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source='user_id', read_only=True)
    categoryId = serializers.IntegerField(source='category_id')
    categoryName = serializers.CharField(source='category.name', read_only=True)
    description = serializers.CharField(max_length=100, trim_whitespace=True)
    additionalPrice = LocaleDecimalField(source='additional_price')
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Additional
        fields = [
            'id', 'userId', 'categoryId', 'categoryName', 'description',
            'additionalPrice', 'createdAt', 'updatedAt'
        ]
