"""Request helpers shared by the API views"""
from rest_framework import status
from rest_framework.response import Response


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def get_user_agent(request, max_length=512):
    if not request or not hasattr(request, 'META'):
        return ''
    return (request.META.get('HTTP_USER_AGENT') or '')[:max_length]


def error_response(message, details=None, status_code=status.HTTP_400_BAD_REQUEST):
    """
    Build the error body used across the API:
        {"error": "Invalid data", "details": {...}}
    """
    body = {'error': message}
    if details is not None:
        body['details'] = details
    return Response(body, status=status_code)
