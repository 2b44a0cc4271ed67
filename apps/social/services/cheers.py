"""Pour cheers service."""

import logging
from uuid import UUID

from django.db import transaction, IntegrityError

from apps.accounts.models import User
from apps.notifications.models import NotificationType, NotificationPriority
from apps.notifications.services import create_notification
from apps.pours.models import Pour
from ..models import PourCheer
from .exceptions import PourNotVisibleError, CannotCheerOwnPourError, AlreadyCheeredError
from .profiles import can_view

logger = logging.getLogger(__name__)


@transaction.atomic
def cheer_pour(*, pour_id: UUID, user: User) -> int:
    """
    Cheer someone else's pour. Each user can cheer a pour once.

    The pour must be visible to the user under the owner's ``show_pours``
    setting. The owner gets a ``pour_cheers`` notification.

    Returns:
        Number of cheers on the pour after this one

    Raises:
        PourNotVisibleError: If pour doesn't exist or is hidden from the user
        CannotCheerOwnPourError: If the pour belongs to the user
        AlreadyCheeredError: If the user already cheered this pour
    """
    try:
        pour = Pour.objects.select_related('user', 'user_bottle__master_bottle').get(id=pour_id)
    except Pour.DoesNotExist:
        raise PourNotVisibleError("Pour not found")

    if pour.user_id == user.id:
        raise CannotCheerOwnPourError("You can't cheer your own pour")

    if not can_view(viewer=user, owner=pour.user, setting='show_pours'):
        raise PourNotVisibleError("Pour not found")

    if PourCheer.objects.filter(pour=pour, user=user).exists():
        raise AlreadyCheeredError("Already cheered this pour")

    try:
        PourCheer.objects.create(pour=pour, user=user)
    except IntegrityError:
        raise AlreadyCheeredError("Already cheered this pour")

    bottle_name = pour.user_bottle.master_bottle.name
    create_notification(
        user=pour.user,
        type=NotificationType.POUR_CHEERS,
        priority=NotificationPriority.LOW,
        title='Cheers!',
        message=f"{user.get_display_name()} raised a glass to your {bottle_name} pour",
        data={'pour_id': str(pour.id), 'from_user_id': str(user.id)},
        entity_key=f'{pour.id}:{user.id}',
        action_url=f'/pours/{pour.id}',
        icon='glass-cheers',
    )

    logger.info("User %s cheered pour %s", user.id, pour.id)
    return pour.cheers.count()
