"""
Test utilities and factories for creating test data
"""
from rest_framework.test import APIClient
from bizmanager.core.models import User
from bizmanager.core.sessions import start_session
from bizmanager.catalog.models import Category, Product, Additional
from decimal import Decimal
import random
import string

DEFAULT_PASSWORD = 'Secure#Pass42'


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, name=None, password=DEFAULT_PASSWORD, is_staff=False, is_superuser=False):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            email=email,
            password=password,
            name=name or 'Test Owner',
            is_staff=is_staff,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_category(user, name=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(user=user, name=name)

    @staticmethod
    def create_product(user, category=None, name=None, unit_cost=None, unit_price=None, is_active=True):
        """Create a test product"""
        if category is None:
            category = TestDataFactory.create_category(user)
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        return Product.objects.create(
            user=user,
            category=category,
            name=name,
            description=f'Test description for {name}',
            unit_cost=unit_cost if unit_cost is not None else Decimal('4.50'),
            unit_price=unit_price if unit_price is not None else Decimal('9.90'),
            is_active=is_active,
        )

    @staticmethod
    def create_additional(user, category=None, description=None, additional_price=None):
        """Create a test additional"""
        if category is None:
            category = TestDataFactory.create_category(user)
        if not description:
            description = f'Additional_{TestDataFactory.random_string(6)}'
        return Additional.objects.create(
            user=user,
            category=category,
            description=description,
            additional_price=additional_price if additional_price is not None else Decimal('2.00'),
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Sign the client in as user; the refresh token is kept on self.tokens"""
        self.tokens = start_session(user)
        self.credentials(HTTP_AUTHORIZATION=f"Bearer {self.tokens['access']}")
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
