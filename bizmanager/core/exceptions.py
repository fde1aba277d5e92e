"""
DRF exception handler.

Every error body carries an "error" key so clients can show a single
message; field errors from DRF move to "details". Unhandled exceptions are
logged and returned as 500 instead of Django's HTML error page.
"""
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown view'

    if response is None:
        if isinstance(exc, DatabaseError):
            logger.exception(f"Database error in {view_name}")
            message = 'Internal database error'
        else:
            logger.exception(f"Unhandled error in {view_name}")
            message = 'Internal server error'
        return Response({'error': message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    data = response.data
    if isinstance(data, dict) and 'error' in data:
        return response
    if isinstance(data, dict) and set(data.keys()) <= {'detail', 'code', 'messages'}:
        response.data = {'error': str(data.get('detail', ''))}
        if 'messages' in data:
            response.data['details'] = data['messages']
    else:
        response.data = {'error': 'Invalid data', 'details': data}
    return response
