import hmac
import logging

from django.conf import settings
from rest_framework import permissions

from config.exceptions import CronUnauthorizedError

logger = logging.getLogger(__name__)


class HasCronSecret(permissions.BasePermission):
    """
    Permission: Scheduled jobs must send ``Authorization: Bearer <CRON_SECRET>``.

    An empty CRON_SECRET rejects every call. Use with
    ``authentication_classes([])`` so the bearer value is not parsed as a JWT.
    """

    def has_permission(self, request, view):
        secret = settings.CRON_SECRET
        header = request.META.get('HTTP_AUTHORIZATION', '')
        scheme, _, token = header.partition(' ')

        if not secret or scheme != 'Bearer' or not hmac.compare_digest(token.strip(), secret):
            logger.warning("Rejected cron call to %s", request.path)
            raise CronUnauthorizedError()
        return True
