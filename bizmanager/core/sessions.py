"""
Sign-in sessions backed by simplejwt refresh tokens.

Each sign-in creates a refresh token and a UserSession row keyed by the
token's jti. Revoking a session blacklists the refresh token, so it can no
longer be exchanged for access tokens, and SessionJWTAuthentication stops
accepting the access tokens that carry its session id.
"""
import logging
from datetime import datetime, timezone as dt_timezone

from django.db.models import Q
from django.utils import timezone
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from .models import UserSession
from .utils import get_client_ip, get_user_agent

logger = logging.getLogger(__name__)

SESSION_CLAIM = 'sid'


def issue_tokens(user):
    """Create a refresh token whose access tokens carry the session id claim"""
    refresh = RefreshToken.for_user(user)
    refresh[SESSION_CLAIM] = refresh[api_settings.JTI_CLAIM]
    return refresh


def record_session(refresh, user, request=None):
    """Store the device behind a freshly issued refresh token"""
    expires_at = datetime.fromtimestamp(refresh['exp'], tz=dt_timezone.utc)
    session = UserSession.objects.create(
        user=user,
        jti=refresh[api_settings.JTI_CLAIM],
        user_agent=get_user_agent(request),
        ip_address=get_client_ip(request),
        expires_at=expires_at,
    )
    logger.info(f"Session {session.id} started for user {user.id}")
    return session


def start_session(user, request=None):
    """
    Issue tokens and record the session for a user that just authenticated.

    Returns:
        dict with 'access' and 'refresh' token strings
    """
    refresh = issue_tokens(user)
    record_session(refresh, user, request)
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
    }


def current_session_jti(request):
    """Session id carried by the access token of the request, if any"""
    token = getattr(request, 'auth', None)
    if token is None:
        return None
    try:
        return token.get(SESSION_CLAIM)
    except AttributeError:
        return None


def revoke_session(session):
    """Blacklist the session's refresh token and mark it revoked"""
    outstanding = OutstandingToken.objects.filter(jti=session.jti).first()
    if outstanding is not None:
        BlacklistedToken.objects.get_or_create(token=outstanding)
    if session.revoked_at is None:
        session.revoked_at = timezone.now()
        session.save(update_fields=['revoked_at'])
    logger.info(f"Session {session.id} revoked for user {session.user_id}")
    return session


def revoke_other_sessions(user, keep_jti=None):
    """Revoke every active session of the user except keep_jti. Returns the count revoked"""
    sessions = UserSession.objects.active().filter(user=user)
    if keep_jti:
        sessions = sessions.exclude(jti=keep_jti)
    count = 0
    for session in sessions:
        revoke_session(session)
        count += 1
    return count


def prune_sessions():
    """Delete revoked and expired sessions. Returns the number of rows removed"""
    deleted, _ = UserSession.objects.filter(
        Q(revoked_at__isnull=False) | Q(expires_at__lte=timezone.now())
    ).delete()
    if deleted:
        logger.info(f"Pruned {deleted} inactive sessions")
    return deleted
