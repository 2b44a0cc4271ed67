"""
Project-wide API error handling.

Every DRF view goes through ``api_exception_handler``. Known API exceptions
keep DRF's status codes with the body reduced to ``{"error": ...}``.
Anything else is logged and answered with a generic 500 body so no
internal detail reaches the client.
"""
import logging
from uuid import UUID

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InvalidIdentifierError(APIException):
    """Path identifier is not a valid UUID."""
    status_code = 400
    default_detail = 'Invalid ID.'
    default_code = 'invalid_identifier'


class CronUnauthorizedError(APIException):
    """Cron call without the shared secret."""
    status_code = 401
    default_detail = 'Unauthorized'
    default_code = 'cron_unauthorized'


def parse_uuid(value, label='resource'):
    """Return ``value`` as a UUID or raise InvalidIdentifierError."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidIdentifierError(f'Invalid {label} ID')


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        # Field validation errors keep DRF's shape; single-message errors use {'error': ...}
        if isinstance(response.data, dict) and set(response.data) == {'detail'}:
            response.data = {'error': str(response.data['detail'])}
        return response

    view = context.get('view')
    logger.exception(
        "Unhandled error in %s",
        view.__class__.__name__ if view is not None else 'unknown view',
    )
    return Response(
        {'error': 'Internal server error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
