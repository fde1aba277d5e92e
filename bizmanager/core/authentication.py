from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from .models import UserSession
from .sessions import SESSION_CLAIM


class SessionJWTAuthentication(JWTAuthentication):
    """JWT authentication that also requires the token's session to be active"""

    def get_validated_token(self, raw_token):
        token = super().get_validated_token(raw_token)
        session_id = token.get(SESSION_CLAIM)
        if not session_id or not UserSession.objects.active().filter(jti=session_id).exists():
            raise InvalidToken('Session has been revoked or has expired.')
        return token
