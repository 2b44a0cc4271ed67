"""Notification management service - creation with cooldown, reads and housekeeping."""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from ..models import Notification, NotificationPriority
from .exceptions import NotificationNotFoundError

logger = logging.getLogger(__name__)


def is_duplicate(
    *,
    user: User,
    type: str,
    entity_key: str,
    cooldown: Optional[timedelta],
    now: Optional[datetime] = None,
) -> bool:
    """
    True if a live notification for (user, type, entity_key) exists inside the cooldown.

    A ``cooldown`` of None means the notification may only ever fire once
    while the earlier one has not expired. Deleted notifications no longer
    count, so deleting one lets it fire again.
    """
    now = now or timezone.now()
    queryset = Notification.objects.active(now).filter(user=user, type=type, entity_key=entity_key)
    if cooldown is not None:
        queryset = queryset.filter(created_at__gt=now - cooldown)
    return queryset.exists()


@transaction.atomic
def create_notification(
    *,
    user: User,
    type: str,
    title: str,
    message: str,
    priority: str = NotificationPriority.MEDIUM,
    data: Optional[dict] = None,
    entity_key: str = '',
    cooldown: Optional[timedelta] = None,
    action_url: str = '',
    icon: str = '',
    expires_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Optional[Notification]:
    """
    Create a notification unless an equivalent one is still in its cooldown.

    Deduplication only applies when ``entity_key`` is given. The user row
    is locked so concurrent generator runs cannot both insert.

    Args:
        user: Recipient
        type: NotificationType value
        title: Short headline
        message: Body text
        priority: low / medium / high
        data: Extra JSON payload for the client
        entity_key: Identifier of the triggering entity
        cooldown: Minimum interval before the same type/entity fires again
            (None = never again while the earlier one is live)
        action_url: Client route to open
        icon: Client icon name
        expires_at: After this the notification is hidden and purged
        now: Reference time (defaults to timezone.now())

    Returns:
        Created Notification, or None if it was a duplicate
    """
    now = now or timezone.now()

    if entity_key:
        User.objects.select_for_update().only('id').get(id=user.id)
        if is_duplicate(user=user, type=type, entity_key=entity_key, cooldown=cooldown, now=now):
            logger.debug("Skipped duplicate %s notification for user %s (%s)", type, user.id, entity_key)
            return None

    notification = Notification.objects.create(
        user=user,
        type=type,
        priority=priority,
        title=title,
        message=message,
        data=data,
        entity_key=entity_key,
        action_url=action_url,
        icon=icon,
        expires_at=expires_at,
        created_at=now,
    )

    logger.info("Created %s notification %s for user %s", type, notification.id, user.id)
    return notification


def get_user_notifications(
    *,
    user: User,
    limit: Optional[int] = None,
    unread_only: bool = False,
) -> QuerySet[Notification]:
    """
    The user's live notifications, newest first.

    Args:
        limit: Maximum number returned (defaults to NOTIFICATIONS['FETCH_LIMIT'])
        unread_only: Only unread notifications
    """
    limit = limit or settings.NOTIFICATIONS['FETCH_LIMIT']

    queryset = Notification.objects.active().filter(user=user)
    if unread_only:
        queryset = queryset.filter(read=False)

    return queryset.order_by('-created_at')[:limit]


def get_unread_count(*, user: User) -> int:
    return Notification.objects.active().filter(user=user, read=False).count()


@transaction.atomic
def mark_notification_read(*, notification_id: UUID, user: User) -> Notification:
    """
    Raises:
        NotificationNotFoundError: If notification doesn't exist, expired or belongs to another user
    """
    try:
        notification = (
            Notification.objects
            .active()
            .select_for_update()
            .get(id=notification_id, user=user)
        )
    except Notification.DoesNotExist:
        raise NotificationNotFoundError("Notification not found")

    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])

    return notification


def mark_all_read(*, user: User) -> int:
    """
    Returns:
        Number of notifications marked read
    """
    return Notification.objects.active().filter(user=user, read=False).update(read=True)


@transaction.atomic
def delete_notification(*, notification_id: UUID, user: User) -> None:
    """
    Delete a notification owned by ``user``.

    Raises:
        NotificationNotFoundError: If notification doesn't exist or belongs to another user
    """
    deleted, _ = Notification.objects.filter(id=notification_id, user=user).delete()
    if not deleted:
        raise NotificationNotFoundError("Notification not found")


def purge_expired_notifications(*, now: Optional[datetime] = None) -> int:
    """
    Returns:
        Number of expired notifications deleted
    """
    now = now or timezone.now()
    deleted, _ = Notification.objects.filter(expires_at__isnull=False, expires_at__lte=now).delete()
    if deleted:
        logger.info("Purged %d expired notification(s)", deleted)
    return deleted
