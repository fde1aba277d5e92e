"""
Test suite for the Core module
Tests: registration, sign-in, token refresh, sessions, account management,
password rules, staff user management and the API error format
"""
from datetime import timedelta
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from bizmanager.core.exceptions import api_exception_handler
from bizmanager.core.models import User, UserSession
from bizmanager.core.sessions import issue_tokens, prune_sessions, record_session, revoke_session
from bizmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient, DEFAULT_PASSWORD
from bizmanager.core.validators import PasswordComplexityValidator
from bizmanager.catalog.models import Category


class RegistrationTests(TestCase):
    """Test the registration endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register(self):
        data = {'email': 'owner@example.com', 'name': 'Maria Silva', 'password': 'Str0ngPass'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['email'], 'owner@example.com')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        user = User.objects.get(email='owner@example.com')
        self.assertTrue(user.check_password('Str0ngPass'))
        self.assertEqual(UserSession.objects.filter(user=user).count(), 1)

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(email='owner@example.com')
        data = {'email': 'Owner@Example.com', 'name': 'Maria Silva', 'password': 'Str0ngPass'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data['details'])

    def test_register_weak_password(self):
        data = {'email': 'owner@example.com', 'name': 'Maria Silva', 'password': 'password'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data['details'])
        self.assertFalse(User.objects.filter(email='owner@example.com').exists())

    def test_register_short_name(self):
        data = {'email': 'owner@example.com', 'name': 'Ana', 'password': 'Str0ngPass'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data['details'])


class LoginTests(TestCase):
    """Test sign-in, refresh and sign-out"""

    def setUp(self):
        self.user = TestDataFactory.create_user(email='owner@example.com')
        self.client = AuthenticatedAPIClient()

    def login(self):
        return self.client.post(
            '/api/v1/auth/login/',
            {'email': 'owner@example.com', 'password': DEFAULT_PASSWORD},
            format='json',
            HTTP_USER_AGENT='Mozilla/5.0 (X11; Linux x86_64)',
        )

    def test_login_records_session(self):
        response = self.login()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

        session = UserSession.objects.get(user=self.user)
        self.assertEqual(session.user_agent, 'Mozilla/5.0 (X11; Linux x86_64)')
        self.assertEqual(session.ip_address, '127.0.0.1')
        self.assertTrue(session.is_active)

    def test_login_wrong_password(self):
        response = self.client.post(
            '/api/v1/auth/login/', {'email': 'owner@example.com', 'password': 'Wr0ngPass'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)
        self.assertFalse(UserSession.objects.exists())

    def test_login_inactive_user(self):
        self.user.is_active = False
        self.user.save()
        response = self.login()
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh(self):
        tokens = self.login().data
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_with_garbage_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_revokes_refresh_token(self):
        tokens = self.login().data
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = self.client.post('/api/v1/auth/logout/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(UserSession.objects.get(user=self.user).revoked_at)

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_with_other_users_token(self):
        other = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/auth/logout/', {'refresh': other.tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class SessionTests(TestCase):
    """Test session listing and revocation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.other_device = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_list_sessions(self):
        response = self.client.get('/api/v1/auth/sessions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(sum(1 for s in response.data['data'] if s['is_current']), 1)

    def test_revoke_session(self):
        session = UserSession.objects.get(jti=self._jti(self.other_device))
        response = self.client.delete(f'/api/v1/auth/sessions/{session.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.other_device.post(
            '/api/v1/auth/refresh/', {'refresh': self.other_device.tokens['refresh']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_revoke_other_users_session(self):
        stranger = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        session = UserSession.objects.get(jti=self._jti(stranger))
        response = self.client.delete(f'/api/v1/auth/sessions/{session.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        session.refresh_from_db()
        self.assertIsNone(session.revoked_at)

    def test_revoke_others_keeps_current(self):
        response = self.client.post('/api/v1/auth/sessions/revoke-others/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['revoked'], 1)

        active = UserSession.objects.active().filter(user=self.user)
        self.assertEqual([s.jti for s in active], [self._jti(self.client)])

    def test_revoked_session_signs_device_out(self):
        self.assertEqual(self.other_device.get('/api/v1/categories/').status_code, status.HTTP_200_OK)

        session = UserSession.objects.get(jti=self._jti(self.other_device))
        self.client.delete(f'/api/v1/auth/sessions/{session.id}/')

        response = self.other_device.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_revoke_others_signs_other_devices_out(self):
        self.client.post('/api/v1/auth/sessions/revoke-others/')

        self.assertEqual(self.other_device.get('/api/v1/auth/me/').status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(self.client.get('/api/v1/auth/me/').status_code, status.HTTP_200_OK)

    def test_access_token_without_session_is_rejected(self):
        client = AuthenticatedAPIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {AccessToken.for_user(self.user)}')
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def _jti(self, client):
        return RefreshToken(client.tokens['refresh'])['jti']


class SessionPruningTests(TestCase):
    """Test removal of revoked and expired sessions"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.active = self._session()
        self.revoked = revoke_session(self._session())
        self.expired = self._session()
        UserSession.objects.filter(pk=self.expired.pk).update(expires_at=timezone.now() - timedelta(minutes=1))

    def _session(self):
        return record_session(issue_tokens(self.user), self.user)

    def test_prune_sessions(self):
        self.assertEqual(prune_sessions(), 2)
        self.assertEqual(list(UserSession.objects.values_list('pk', flat=True)), [self.active.pk])

    def test_prune_sessions_command(self):
        out = StringIO()
        call_command('prune_sessions', stdout=out)
        self.assertIn('Pruned 2 inactive sessions', out.getvalue())
        self.assertEqual(UserSession.objects.count(), 1)


class AccountTests(TestCase):
    """Test the current user's account endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(email='owner@example.com', name='Maria Silva')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_get_me(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['email'], 'owner@example.com')
        self.assertNotIn('password', response.data['data'])

    def test_update_me(self):
        response = self.client.patch(
            '/api/v1/auth/me/',
            {'name': 'Maria Souza', 'image': 'https://example.com/me.png', 'email': 'new@example.com'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'Maria Souza')
        self.assertEqual(self.user.image, 'https://example.com/me.png')
        self.assertEqual(self.user.email, 'owner@example.com')

    def test_update_me_short_name(self):
        response = self.client.patch('/api/v1/auth/me/', {'name': 'Ana'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_change_password(self):
        data = {
            'current_password': DEFAULT_PASSWORD,
            'new_password': 'N3wSecret',
            'new_password_confirm': 'N3wSecret',
        }
        response = self.client.post('/api/v1/auth/change-password/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('N3wSecret'))

    def test_change_password_errors(self):
        cases = [
            ({'current_password': 'Wr0ngPass', 'new_password': 'N3wSecret', 'new_password_confirm': 'N3wSecret'},
             'current_password'),
            ({'current_password': DEFAULT_PASSWORD, 'new_password': 'N3wSecret', 'new_password_confirm': 'N3wSecreT'},
             'new_password_confirm'),
            ({'current_password': DEFAULT_PASSWORD, 'new_password': 'alllowercase', 'new_password_confirm': 'alllowercase'},
             'new_password'),
        ]
        for data, field in cases:
            with self.subTest(field=field):
                response = self.client.post('/api/v1/auth/change-password/', data, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn(field, response.data['details'])
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password(DEFAULT_PASSWORD))

    def test_delete_account_wrong_password(self):
        response = self.client.delete('/api/v1/auth/me/', {'password': 'Wr0ngPass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.user.pk).exists())

    def test_delete_account(self):
        category = TestDataFactory.create_category(self.user)
        TestDataFactory.create_product(self.user, category)
        refresh = self.client.tokens['refresh']

        response = self.client.delete('/api/v1/auth/me/', {'password': DEFAULT_PASSWORD}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())
        self.assertFalse(Category.objects.exists())

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserAdminAPITests(TestCase):
    """Test staff-only user management"""

    def setUp(self):
        self.staff = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.staff)

    def test_non_staff_is_forbidden(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('error', response.data)

    def test_list_users(self):
        TestDataFactory.create_user()
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)

    def test_create_and_deactivate_user(self):
        data = {'email': 'clerk@example.com', 'name': 'Joao Pereira', 'password': 'Str0ngPass'}
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        user_id = response.data['data']['id']
        response = self.client.patch(f'/api/v1/users/{user_id}/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.get(pk=user_id).is_active)

    def test_delete_user(self):
        user = TestDataFactory.create_user()
        response = self.client.delete(f'/api/v1/users/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=user.pk).exists())

    def test_staff_cannot_grant_privileges(self):
        clerk = TestDataFactory.create_user()
        cases = [
            (self.staff, {'is_superuser': True}),
            (clerk, {'is_staff': True, 'is_superuser': True}),
        ]
        for user, data in cases:
            with self.subTest(user=user.email):
                response = self.client.patch(f'/api/v1/users/{user.id}/', data, format='json')
                self.assertEqual(response.status_code, status.HTTP_200_OK)
                user.refresh_from_db()
                self.assertFalse(user.is_superuser)
        clerk.refresh_from_db()
        self.assertFalse(clerk.is_staff)

    def test_superuser_can_grant_privileges(self):
        superuser = TestDataFactory.create_user(is_staff=True, is_superuser=True)
        client = AuthenticatedAPIClient().authenticate_user(superuser)
        response = client.patch(f'/api/v1/users/{self.staff.id}/', {'is_superuser': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.staff.refresh_from_db()
        self.assertTrue(self.staff.is_superuser)

    def test_staff_cannot_change_superuser(self):
        superuser = TestDataFactory.create_user(is_staff=True, is_superuser=True)
        response = self.client.patch(f'/api/v1/users/{superuser.id}/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/v1/users/{superuser.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        superuser.refresh_from_db()
        self.assertTrue(superuser.is_active)

    def test_deleted_user_is_signed_out(self):
        user = TestDataFactory.create_user()
        client = AuthenticatedAPIClient().authenticate_user(user)
        self.client.delete(f'/api/v1/users/{user.id}/')
        self.assertEqual(client.get('/api/v1/auth/me/').status_code, status.HTTP_401_UNAUTHORIZED)


class PasswordComplexityValidatorTests(SimpleTestCase):
    """Test PasswordComplexityValidator"""

    def test_rejects_simple_passwords(self):
        validator = PasswordComplexityValidator()
        for password in ('alllowercase1', 'ALLUPPERCASE1', 'NoDigitsHere'):
            with self.subTest(password=password):
                with self.assertRaises(ValidationError):
                    validator.validate(password)

    def test_accepts_complex_password(self):
        PasswordComplexityValidator().validate('Str0ngPass')


class ExceptionHandlerTests(SimpleTestCase):
    """Test the API error body"""

    def test_detail_becomes_error(self):
        response = api_exception_handler(NotFound(), {'view': None})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Not found.'})

    def test_unhandled_error(self):
        with self.assertLogs('bizmanager.core.exceptions', level='ERROR'):
            response = api_exception_handler(RuntimeError('boom'), {'view': None})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Internal server error'})

    def test_database_error(self):
        with self.assertLogs('bizmanager.core.exceptions', level='ERROR'):
            response = api_exception_handler(DatabaseError('locked'), {'view': None})
        self.assertEqual(response.data, {'error': 'Internal database error'})
