"""Profile management service."""

import logging

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from .exceptions import UserNotFoundError, UsernameTakenError

User = get_user_model()
logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    'username',
    'display_name',
    'bio',
    'show_collection',
    'show_pours',
    'show_ratings',
)


def get_user_by_username(*, username: str) -> User:
    """
    Look up an active user by public username (case-insensitive).

    Raises:
        UserNotFoundError: If no active user has this username
    """
    try:
        return User.objects.get(username=username.lower(), is_active=True)
    except User.DoesNotExist:
        raise UserNotFoundError("User not found")


@transaction.atomic
def update_profile(*, user: User, **changes) -> User:
    """
    Update the public profile and privacy settings of a user.

    Only the fields in PROFILE_FIELDS are applied; anything else is ignored.
    An empty username clears the handle.

    Args:
        user: User being updated
        **changes: Field values already validated by the serializer

    Returns:
        Updated User

    Raises:
        UsernameTakenError: If another account already uses the username
    """
    user = User.objects.select_for_update().get(id=user.id)

    update_fields = []
    for field in PROFILE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field == 'username':
            value = value.lower() if value else None
            if value and User.objects.filter(username=value).exclude(id=user.id).exists():
                raise UsernameTakenError("Username is already taken")
        setattr(user, field, value)
        update_fields.append(field)

    if not update_fields:
        return user

    try:
        with transaction.atomic():
            user.save(update_fields=update_fields)
    except IntegrityError:
        raise UsernameTakenError("Username is already taken")

    logger.info("Profile updated for user %s: %s", user.id, ', '.join(update_fields))
    return user
