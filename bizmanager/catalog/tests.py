"""
Test suite for the Catalog module
Tests: decimal normalization and validation, amount fields, categories,
products, additionals, list filtering and pagination
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from rest_framework import serializers, status

from bizmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from bizmanager.catalog.models import Category, Product, Additional
from bizmanager.catalog.serializers import LocaleDecimalField
from bizmanager.catalog.validators import (
    ABSENT, Present, DecimalValidationOptions, normalize_decimal,
    validate_decimal_precision, validate_decimal, to_decimal,
)


class NormalizeDecimalTests(SimpleTestCase):
    """Test normalize_decimal"""

    def test_missing_and_blank_values_are_absent(self):
        for raw in (None, '', '   ', '\t\n'):
            with self.subTest(raw=raw):
                self.assertIs(normalize_decimal(raw), ABSENT)

    def test_absent_is_falsy(self):
        self.assertFalse(ABSENT)
        self.assertEqual(repr(ABSENT), 'ABSENT')

    def test_numbers(self):
        self.assertEqual(normalize_decimal(123.45), Present('123.45'))
        self.assertEqual(normalize_decimal(42), Present('42'))
        self.assertEqual(normalize_decimal(5.0), Present('5'))
        self.assertEqual(normalize_decimal(-0.0), Present('0'))
        self.assertEqual(normalize_decimal(1e-07), Present('0.0000001'))
        self.assertEqual(normalize_decimal(Decimal('10.50')), Present('10.50'))

    def test_non_finite_numbers_are_absent(self):
        for raw in (float('nan'), float('inf'), float('-inf'), Decimal('NaN')):
            with self.subTest(raw=raw):
                self.assertIs(normalize_decimal(raw), ABSENT)

    def test_booleans_are_not_numbers(self):
        self.assertIs(normalize_decimal(True), ABSENT)

    def test_brazilian_notation(self):
        self.assertEqual(normalize_decimal('1.234,56').value, '1234.56')
        self.assertEqual(normalize_decimal('1.234.567,8').value, '1234567.8')

    def test_comma_decimal_separator(self):
        self.assertEqual(normalize_decimal('1234,56').value, '1234.56')

    def test_dot_decimal_separator(self):
        self.assertEqual(normalize_decimal('1234.56').value, '1234.56')
        self.assertEqual(normalize_decimal('1234').value, '1234')

    def test_surrounding_and_internal_whitespace(self):
        self.assertEqual(normalize_decimal('  1 234,56 ').value, '1234.56')

    def test_multiple_commas_rejected_by_final_check(self):
        self.assertIs(normalize_decimal('1,234,56'), ABSENT)

    def test_garbage_is_absent(self):
        for raw in ('abc', 'R$ 10,00', '1e5', '.5', '5.', '--1', 'NaN', 'Infinity'):
            with self.subTest(raw=raw):
                self.assertIs(normalize_decimal(raw), ABSENT)

    def test_canonical_strings_are_unchanged(self):
        for raw in ('0', '-0', '007', '123.45', '-5', '-0.0001', '123456789012.1234'):
            with self.subTest(raw=raw):
                self.assertEqual(normalize_decimal(raw).value, raw)

    def test_present_str(self):
        self.assertEqual(str(Present('1.5')), '1.5')


class ValidateDecimalPrecisionTests(SimpleTestCase):
    """Test validate_decimal_precision"""

    def test_within_limits(self):
        self.assertTrue(validate_decimal_precision('12345678.1234', 12, 4))
        self.assertTrue(validate_decimal_precision('123456789012', 12, 4))

    def test_too_many_digits(self):
        self.assertFalse(validate_decimal_precision('1234567890123.1234', 12, 4))
        self.assertFalse(validate_decimal_precision('123456789012.1234', 12, 4))
        self.assertFalse(validate_decimal_precision('1234567890123', 12, 4))

    def test_too_many_fractional_digits(self):
        self.assertFalse(validate_decimal_precision('1.12345', 12, 4))

    def test_leading_zeros_are_not_counted(self):
        self.assertTrue(validate_decimal_precision('000000000000001', 1, 0))
        self.assertTrue(validate_decimal_precision('000', 1, 0))

    def test_fractional_zeros_are_counted(self):
        self.assertFalse(validate_decimal_precision('0.00001', 12, 4))

    def test_sign_is_not_a_digit(self):
        self.assertTrue(validate_decimal_precision('-1234', 4, 0))

    def test_defaults(self):
        self.assertTrue(validate_decimal_precision('99999999.9999'))
        self.assertFalse(validate_decimal_precision('999999999.9999'))


class ValidateDecimalTests(SimpleTestCase):
    """Test validate_decimal and to_decimal"""

    def test_required(self):
        self.assertTrue(validate_decimal('1.234,56', required=True))
        self.assertFalse(validate_decimal(None, required=True))
        self.assertTrue(validate_decimal(None, required=False))
        self.assertTrue(validate_decimal(None))

    def test_negative(self):
        self.assertFalse(validate_decimal('-5', allow_negative=False))
        self.assertTrue(validate_decimal('-5', allow_negative=True))
        self.assertTrue(validate_decimal('-0'))

    def test_precision_and_scale(self):
        self.assertTrue(validate_decimal('1234,5678'))
        self.assertFalse(validate_decimal('1234,56789'))
        self.assertFalse(validate_decimal('12,345', max_scale=2))
        self.assertTrue(validate_decimal('12,34', max_digits=4, max_scale=2))

    def test_unparseable_value_follows_required_flag(self):
        self.assertTrue(validate_decimal('1,234,56'))
        self.assertFalse(validate_decimal('1,234,56', required=True))

    def test_options_object(self):
        options = DecimalValidationOptions(required=True, allow_negative=True, max_digits=6, max_scale=2)
        self.assertTrue(validate_decimal('-1.234,56', options))
        self.assertFalse(validate_decimal('', options))
        self.assertFalse(validate_decimal('12.345,67', options))

    def test_overrides_extend_options(self):
        options = DecimalValidationOptions(required=True)
        self.assertTrue(validate_decimal('-1', options, allow_negative=True))
        self.assertFalse(validate_decimal('-1', options))

    def test_invalid_options(self):
        with self.assertRaises(ValueError):
            DecimalValidationOptions(max_digits=0)
        with self.assertRaises(ValueError):
            DecimalValidationOptions(max_scale=-1)

    def test_accepted_values_match_their_numeric_value(self):
        cases = {
            '1.234,56': Decimal('1234.56'),
            '1234,56': Decimal('1234.56'),
            '0,5': Decimal('0.5'),
            ' 10 ': Decimal('10'),
            12.5: Decimal('12.5'),
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertTrue(validate_decimal(raw, required=True))
                self.assertEqual(Decimal(normalize_decimal(raw).value), expected)

    def test_to_decimal(self):
        self.assertEqual(to_decimal('1.234,56'), Decimal('1234.56'))
        self.assertIsNone(to_decimal(''))
        with self.assertRaises(ValueError):
            to_decimal('-3')
        with self.assertRaises(ValueError):
            to_decimal(None, DecimalValidationOptions(required=True))


class LocaleDecimalFieldTests(SimpleTestCase):
    """Test the LocaleDecimalField serializer field"""

    def test_to_internal_value(self):
        field = LocaleDecimalField()
        self.assertEqual(field.run_validation('1.234,56'), Decimal('1234.56'))
        self.assertEqual(field.run_validation(' 10,5 '), Decimal('10.5'))
        self.assertEqual(field.run_validation(7), Decimal('7'))

    def test_rejects_invalid_amounts(self):
        field = LocaleDecimalField()
        for raw in ('', 'abc', '-1', '1,23456', True, '1' * 19):
            with self.subTest(raw=raw):
                with self.assertRaises(serializers.ValidationError):
                    field.run_validation(raw)

    def test_max_length(self):
        field = LocaleDecimalField()
        self.assertEqual(field.run_validation('000000000000000001'), Decimal('1'))
        with self.assertRaises(serializers.ValidationError) as ctx:
            field.run_validation('0000000000000000001')
        self.assertEqual(ctx.exception.get_codes(), ['max_length'])

        unlimited = LocaleDecimalField(max_length=None)
        self.assertEqual(unlimited.run_validation('0000000000000000001'), Decimal('1'))

    def test_optional_field_accepts_blank(self):
        field = LocaleDecimalField(required=False)
        self.assertIsNone(field.to_internal_value(''))

    def test_custom_options(self):
        field = LocaleDecimalField(options=DecimalValidationOptions(required=True, allow_negative=True))
        self.assertEqual(field.run_validation('-2,50'), Decimal('-2.50'))

    def test_to_representation(self):
        field = LocaleDecimalField()
        self.assertEqual(field.to_representation(Decimal('1234.5600')), '1234.56')
        self.assertEqual(field.to_representation(Decimal('1000.0000')), '1000')
        self.assertEqual(field.to_representation(Decimal('0.0000')), '0')
        self.assertIsNone(field.to_representation(None))


class CatalogModelTests(TestCase):
    """Test catalog model behavior"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.category = TestDataFactory.create_category(self.user, name='Pizzas')

    def test_str(self):
        product = TestDataFactory.create_product(self.user, self.category, name='Margherita')
        additional = TestDataFactory.create_additional(self.user, self.category, description='Extra cheese')
        self.assertEqual(str(self.category), 'Pizzas')
        self.assertEqual(str(product), 'Margherita')
        self.assertEqual(str(additional), 'Extra cheese (Pizzas)')

    def test_deleting_user_removes_catalog(self):
        TestDataFactory.create_product(self.user, self.category)
        TestDataFactory.create_additional(self.user, self.category)
        self.user.delete()
        self.assertEqual(Category.objects.count(), 0)
        self.assertEqual(Product.objects.count(), 0)
        self.assertEqual(Additional.objects.count(), 0)


class CategoryAPITests(TestCase):
    """Test Category API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_requires_authentication(self):
        client = AuthenticatedAPIClient()
        response = client.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_create_category(self):
        response = self.client.post('/api/v1/categories/', {'name': '  Drinks '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['name'], 'Drinks')
        self.assertEqual(response.data['data']['userId'], self.user.id)

    def test_create_duplicate_category(self):
        TestDataFactory.create_category(self.user, name='Drinks')
        response = self.client.post('/api/v1/categories/', {'name': 'Drinks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Category already exists')

    def test_same_name_for_different_users(self):
        other = TestDataFactory.create_user()
        TestDataFactory.create_category(other, name='Drinks')
        response = self.client.post('/api/v1/categories/', {'name': 'Drinks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_create_category_without_name(self):
        response = self.client.post('/api/v1/categories/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid data')
        self.assertIn('name', response.data['details'])

    def test_list_only_own_categories(self):
        TestDataFactory.create_category(self.user, name='Mine')
        TestDataFactory.create_category(TestDataFactory.create_user(), name='Theirs')
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['name'], 'Mine')

    def test_search_matches_every_word(self):
        TestDataFactory.create_category(self.user, name='Cold Drinks')
        TestDataFactory.create_category(self.user, name='Hot Drinks')
        TestDataFactory.create_category(self.user, name='Cold Desserts')
        response = self.client.get('/api/v1/categories/', {'search': 'drinks cold'})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['name'], 'Cold Drinks')

    def test_pagination(self):
        for i in range(5):
            TestDataFactory.create_category(self.user, name=f'Category {i}')
        response = self.client.get('/api/v1/categories/', {'limit': 2, 'page': 3})
        self.assertEqual(response.data['total'], 5)
        self.assertEqual([c['name'] for c in response.data['data']], ['Category 4'])

        response = self.client.get('/api/v1/categories/', {'limit': 2, 'getAll': 'true'})
        self.assertEqual(len(response.data['data']), 5)

    def test_invalid_list_parameters(self):
        response = self.client.get('/api/v1/categories/', {'page': 0})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid parameters')

    def test_rename_category(self):
        category = TestDataFactory.create_category(self.user, name='Old')
        response = self.client.patch(f'/api/v1/categories/{category.id}/', {'name': 'New'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        category.refresh_from_db()
        self.assertEqual(category.name, 'New')

    def test_rename_to_existing_name(self):
        TestDataFactory.create_category(self.user, name='Taken')
        category = TestDataFactory.create_category(self.user, name='Free')
        response = self.client.put(f'/api/v1/categories/{category.id}/', {'name': 'Taken'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Category name already in use')

    def test_other_users_category_is_not_found(self):
        category = TestDataFactory.create_category(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Category.objects.filter(pk=category.pk).exists())

    def test_delete_category(self):
        category = TestDataFactory.create_category(self.user)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Category.objects.filter(pk=category.pk).exists())

    def test_delete_category_in_use(self):
        category = TestDataFactory.create_category(self.user)
        TestDataFactory.create_product(self.user, category)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Category.objects.filter(pk=category.pk).exists())


class ProductAPITests(TestCase):
    """Test Product API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.category = TestDataFactory.create_category(self.user, name='Pizzas')

    def test_create_product_with_brazilian_amounts(self):
        data = {
            'categoryId': self.category.id,
            'name': 'Margherita',
            'unitCost': '1.234,5',
            'unitPrice': '2.000,00',
        }
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        body = response.data['data']
        self.assertEqual(body['unitCost'], '1234.5')
        self.assertEqual(body['unitPrice'], '2000')
        self.assertEqual(body['categoryName'], 'Pizzas')
        self.assertTrue(body['isActive'])

        product = Product.objects.get(pk=body['id'])
        self.assertEqual(product.unit_cost, Decimal('1234.5'))
        self.assertEqual(product.user, self.user)

    def test_create_product_with_invalid_amount(self):
        data = {'categoryId': self.category.id, 'name': 'Calabresa', 'unitCost': '-1', 'unitPrice': '10'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('unitCost', response.data['details'])

    def test_create_product_with_too_many_decimals(self):
        data = {'categoryId': self.category.id, 'name': 'Calabresa', 'unitCost': '1', 'unitPrice': '10,12345'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('unitPrice', response.data['details'])

    def test_create_product_in_foreign_category(self):
        category = TestDataFactory.create_category(TestDataFactory.create_user())
        data = {'categoryId': category.id, 'name': 'Calabresa', 'unitCost': '1', 'unitPrice': '2'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Category not found')
        self.assertEqual(Product.objects.count(), 0)

    def test_list_filters_by_category(self):
        drinks = TestDataFactory.create_category(self.user, name='Drinks')
        TestDataFactory.create_product(self.user, self.category, name='Margherita')
        TestDataFactory.create_product(self.user, drinks, name='Soda')
        response = self.client.get('/api/v1/products/', {'categoryId': drinks.id})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['name'], 'Soda')

        response = self.client.get('/api/v1/products/', {'categoryId': 'all'})
        self.assertEqual(response.data['total'], 2)

    def test_list_with_unknown_category(self):
        response = self.client.get('/api/v1/products/', {'categoryId': '999999'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_filters_by_active(self):
        TestDataFactory.create_product(self.user, self.category, name='On sale')
        TestDataFactory.create_product(self.user, self.category, name='Retired', is_active=False)
        response = self.client.get('/api/v1/products/', {'active': 'false'})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['name'], 'Retired')

    def test_partial_update(self):
        product = TestDataFactory.create_product(self.user, self.category, name='Margherita')
        response = self.client.patch(
            f'/api/v1/products/{product.id}/', {'unitPrice': '49,90', 'isActive': False}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.unit_price, Decimal('49.90'))
        self.assertFalse(product.is_active)
        self.assertEqual(product.name, 'Margherita')

    def test_move_to_foreign_category(self):
        product = TestDataFactory.create_product(self.user, self.category)
        category = TestDataFactory.create_category(TestDataFactory.create_user())
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'categoryId': category.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        product.refresh_from_db()
        self.assertEqual(product.category, self.category)

    def test_delete_product(self):
        product = TestDataFactory.create_product(self.user, self.category)
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_other_users_product_is_not_found(self):
        product = TestDataFactory.create_product(TestDataFactory.create_user())
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'name': 'Mine now'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AdditionalAPITests(TestCase):
    """Test Additional API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.category = TestDataFactory.create_category(self.user, name='Pizzas')

    def test_create_additional(self):
        data = {'categoryId': self.category.id, 'description': 'Extra cheese', 'additionalPrice': '3,50'}
        response = self.client.post('/api/v1/additionals/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['additionalPrice'], '3.5')
        self.assertEqual(Additional.objects.get().additional_price, Decimal('3.5'))

    def test_create_additional_without_price(self):
        data = {'categoryId': self.category.id, 'description': 'Extra cheese'}
        response = self.client.post('/api/v1/additionals/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('additionalPrice', response.data['details'])

    def test_search_and_paginate(self):
        for name in ('Extra cheese', 'Extra bacon', 'Stuffed crust'):
            TestDataFactory.create_additional(self.user, self.category, description=name)
        response = self.client.get('/api/v1/additionals/', {'search': 'extra', 'limit': 1})
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(len(response.data['data']), 1)
        self.assertEqual(response.data['data'][0]['description'], 'Extra bacon')

    def test_update_additional(self):
        additional = TestDataFactory.create_additional(self.user, self.category)
        data = {'categoryId': self.category.id, 'description': 'Catupiry', 'additionalPrice': 4}
        response = self.client.put(f'/api/v1/additionals/{additional.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        additional.refresh_from_db()
        self.assertEqual(additional.description, 'Catupiry')
        self.assertEqual(additional.additional_price, Decimal('4'))

    def test_delete_category_with_additionals(self):
        TestDataFactory.create_additional(self.user, self.category)
        response = self.client.delete(f'/api/v1/categories/{self.category.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delete_additional(self):
        additional = TestDataFactory.create_additional(self.user, self.category)
        response = self.client.delete(f'/api/v1/additionals/{additional.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Additional.objects.count(), 0)
