import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db import transaction
from django.shortcuts import get_object_or_404
from .models import UserSession
from .serializers import (
    UserSerializer, UserCreateSerializer, UserUpdateSerializer, AdminUserSerializer,
    PasswordChangeSerializer, AccountDeleteSerializer, LogoutSerializer, UserSessionSerializer
)
from .sessions import (
    SESSION_CLAIM, start_session, record_session, current_session_jti,
    revoke_session, revoke_other_sessions
)
from .utils import error_response

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token[SESSION_CLAIM] = token[api_settings.JTI_CLAIM]
        token['email'] = user.email
        token['name'] = user.name
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    """Email/password sign-in. Records the device as a session"""
    serializer_class = CustomTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])

        data = serializer.validated_data
        record_session(RefreshToken(data['refresh']), serializer.user, request)
        logger.info(f"User {serializer.user.id} signed in")
        return Response(data, status=status.HTTP_200_OK)


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Refresh serializer that reports revoked sessions and deleted users as invalid tokens"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint. Signs the new user in"""
    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid data', serializer.errors)
    user = serializer.save()
    tokens = start_session(user, request)
    logger.info(f"User {user.id} registered")
    return Response({
        'user': UserSerializer(user).data,
        **tokens,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Revoke the session behind the given refresh token"""
    serializer = LogoutSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid data', serializer.errors)
    try:
        refresh = RefreshToken(serializer.validated_data['refresh'])
    except TokenError:
        return error_response('Token is invalid or expired.')

    jti = refresh[api_settings.JTI_CLAIM]
    session = UserSession.objects.filter(jti=jti, user=request.user).first()
    if session is None:
        return error_response('Session not found', status_code=status.HTTP_404_NOT_FOUND)
    revoke_session(session)
    logger.info(f"User {request.user.id} signed out")
    return Response({'data': {'message': 'Signed out successfully'}})


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get, update or delete the current user's account"""
    user = request.user

    if request.method == 'GET':
        return Response({'data': UserSerializer(user).data})
    elif request.method == 'PATCH':
        serializer = UserUpdateSerializer(user, data=request.data, partial=True)
        if not serializer.is_valid():
            return error_response('Invalid data', serializer.errors)
        serializer.save()
        return Response({'data': UserSerializer(user).data})
    else:  # DELETE
        serializer = AccountDeleteSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return error_response('Invalid data', serializer.errors)
        user_id = user.id
        with transaction.atomic():
            revoke_other_sessions(user)
            user.delete()
        logger.info(f"User {user_id} deleted their account")
        return Response({'data': {'message': 'Account deleted successfully'}})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = PasswordChangeSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return error_response('Invalid data', serializer.errors)
    serializer.save()
    logger.info(f"User {request.user.id} changed their password")
    return Response({'data': {'message': 'Password updated successfully'}})


# Session views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_list(request):
    """List the current user's active sessions"""
    sessions = UserSession.objects.active().filter(user=request.user)
    serializer = UserSessionSerializer(sessions, many=True, context={'current_jti': current_session_jti(request)})
    return Response({'data': serializer.data, 'total': len(serializer.data)})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def session_detail(request, pk):
    """Revoke one of the current user's sessions"""
    session = get_object_or_404(UserSession, pk=pk, user=request.user)
    revoke_session(session)
    return Response({'data': {'message': 'Session revoked successfully'}})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def session_revoke_others(request):
    """Revoke every session except the one making the request"""
    revoked = revoke_other_sessions(request.user, keep_jti=current_session_jti(request))
    return Response({'data': {'message': 'Sessions revoked successfully', 'revoked': revoked}})


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.order_by('email')
        serializer = AdminUserSerializer(users, many=True, context={'request': request})
        return Response({'data': serializer.data, 'total': len(serializer.data)})
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            return Response(
                {'data': AdminUserSerializer(user, context={'request': request}).data},
                status=status.HTTP_201_CREATED
            )
        return error_response('Invalid data', serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_detail(request, pk):
    """Retrieve, update or delete a user. Only superusers may change superuser accounts"""
    user = get_object_or_404(User, pk=pk)

    if request.method != 'GET' and user.is_superuser and not request.user.is_superuser:
        return error_response('Permission denied', status_code=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        serializer = AdminUserSerializer(user, context={'request': request})
        return Response({'data': serializer.data})
    elif request.method in ('PUT', 'PATCH'):
        serializer = AdminUserSerializer(
            user, data=request.data, partial=request.method == 'PATCH', context={'request': request}
        )
        if serializer.is_valid():
            serializer.save()
            logger.info(f"User {user.id} updated by staff user {request.user.id}")
            return Response({'data': serializer.data})
        return error_response('Invalid data', serializer.errors)
    else:  # DELETE
        user_id = user.id
        user.delete()
        logger.info(f"User {user_id} deleted by staff user {request.user.id}")
        return Response(status=status.HTTP_204_NO_CONTENT)
