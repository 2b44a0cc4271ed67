"""Collection management service - a user's own bottles."""

import logging

from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone
from decimal import Decimal
from uuid import UUID
from typing import Optional

from apps.accounts.models import User
from ..models import UserBottle, BottleStatus, FillLevelReason
from .catalogue import get_master_bottle
from .exceptions import (
    UserBottleNotFoundError,
    InvalidBottleStateError,
    InvalidFillLevelError,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'purchase_date',
    'purchase_price',
    'quantity',
    'location_area',
    'location_bin',
    'barcode',
    'vault_barcode',
    'open_date',
    'notes',
)


@transaction.atomic
def add_to_collection(*, user: User, master_bottle_id: UUID, **fields) -> UserBottle:
    """
    Add a catalogue bottle to the user's collection.

    Every call creates a new UserBottle; owning two of the same bottling
    is normal. Passing ``open_date`` adds the bottle as already opened.

    Args:
        user: Owner of the new bottle
        master_bottle_id: Catalogue entry being added
        **fields: Any of EDITABLE_FIELDS

    Raises:
        MasterBottleNotFoundError: If catalogue bottle doesn't exist or is inactive
    """
    master_bottle = get_master_bottle(master_bottle_id=master_bottle_id)

    bottle = UserBottle.objects.create(
        user=user,
        master_bottle=master_bottle,
        **{key: value for key, value in fields.items() if key in EDITABLE_FIELDS},
    )

    logger.info("User %s added bottle %s (%s)", user.id, bottle.id, master_bottle.name)
    return bottle


def get_user_bottle(*, bottle_id: UUID, user: User) -> UserBottle:
    """
    Raises:
        UserBottleNotFoundError: If bottle doesn't exist or belongs to another user
    """
    try:
        return UserBottle.objects.select_related('master_bottle').get(id=bottle_id, user=user)
    except UserBottle.DoesNotExist:
        raise UserBottleNotFoundError("Bottle not found")


def get_user_collection(
    *,
    user: User,
    status: Optional[str] = None,
    search: Optional[str] = None,
    location_area: Optional[str] = None,
) -> QuerySet[UserBottle]:
    """
    Get the user's bottles, newest first.

    Args:
        user: Collection owner
        status: unopened / opened / finished
        search: Matched against catalogue name, brand, distillery and notes
        location_area: Exact storage area
    """
    queryset = UserBottle.objects.filter(user=user).select_related('master_bottle')

    if status:
        queryset = queryset.filter(status=status)

    if location_area:
        queryset = queryset.filter(location_area=location_area)

    if search:
        queryset = queryset.filter(
            Q(master_bottle__name__icontains=search) |
            Q(master_bottle__brand__icontains=search) |
            Q(master_bottle__distillery__icontains=search) |
            Q(notes__icontains=search)
        )

    return queryset.order_by('-created_at')


def _lock_user_bottle(bottle_id: UUID, user: User) -> UserBottle:
    try:
        return (
            UserBottle.objects
            .select_for_update()
            .select_related('master_bottle')
            .get(id=bottle_id, user=user)
        )
    except UserBottle.DoesNotExist:
        raise UserBottleNotFoundError("Bottle not found")


@transaction.atomic
def update_user_bottle(*, bottle_id: UUID, user: User, **changes) -> UserBottle:
    """
    Update purchase, storage and label details of an owned bottle.

    Fields outside EDITABLE_FIELDS are ignored. Status follows the model
    rules: an open date opens the bottle, quantity 0 finishes it.

    Raises:
        UserBottleNotFoundError: If bottle doesn't exist or belongs to another user
    """
    bottle = _lock_user_bottle(bottle_id, user)

    update_fields = [key for key in changes if key in EDITABLE_FIELDS]
    for key in update_fields:
        setattr(bottle, key, changes[key])

    if update_fields:
        bottle.save(update_fields=update_fields)

    return bottle


@transaction.atomic
def remove_from_collection(*, bottle_id: UUID, user: User) -> None:
    """
    Delete one bottle and its pours.

    Raises:
        UserBottleNotFoundError: If bottle doesn't exist or belongs to another user
    """
    bottle = _lock_user_bottle(bottle_id, user)
    bottle.delete()
    _prune_empty_sessions(user)
    logger.info("User %s removed bottle %s", user.id, bottle_id)


@transaction.atomic
def open_bottle(*, bottle_id: UUID, user: User, open_date=None) -> UserBottle:
    """
    Mark an unopened bottle as opened.

    Raises:
        UserBottleNotFoundError: If bottle doesn't exist or belongs to another user
        InvalidBottleStateError: If the bottle is already opened or finished
    """
    bottle = _lock_user_bottle(bottle_id, user)

    if bottle.status != BottleStatus.UNOPENED:
        raise InvalidBottleStateError(f"Bottle is already {bottle.status}")

    bottle.open_date = open_date or timezone.now()
    bottle.save(update_fields=['open_date'])

    logger.info("User %s opened bottle %s", user.id, bottle.id)
    return bottle


@transaction.atomic
def set_fill_level(
    *,
    bottle_id: UUID,
    user: User,
    fill_level: Decimal,
    reason: str = FillLevelReason.CORRECTION,
    notes: str = '',
) -> UserBottle:
    """
    Manually adjust the fill level of an opened bottle.

    The adjustment is appended to the bottle notes with its reason so
    corrections stay visible next to the pour history.

    Raises:
        UserBottleNotFoundError: If bottle doesn't exist or belongs to another user
        InvalidBottleStateError: If the bottle is not opened
        InvalidFillLevelError: If fill level is outside 0-100
    """
    fill_level = Decimal(str(fill_level))
    if not (Decimal('0') <= fill_level <= Decimal('100')):
        raise InvalidFillLevelError("Fill level must be between 0 and 100")

    bottle = _lock_user_bottle(bottle_id, user)

    if bottle.status != BottleStatus.OPENED:
        raise InvalidBottleStateError("Can only adjust fill level for opened bottles")

    reason_text = FillLevelReason(reason).label
    stamp = timezone.now().strftime('%Y-%m-%d %H:%M')
    note = f"[{stamp}] Fill level adjusted from {bottle.fill_level}% to {fill_level}% - {reason_text}"
    if notes:
        note = f"{note} - {notes}"
    bottle.notes = f"{bottle.notes}\n{note}" if bottle.notes else note
    bottle.fill_level = fill_level
    bottle.save(update_fields=['fill_level', 'notes'])

    return bottle


@transaction.atomic
def clear_collection(*, user: User) -> int:
    """
    Delete every bottle the user owns.

    Catalogue entries are untouched. Pours cascade with their bottles and
    pour sessions left without pours are removed.

    Returns:
        Number of bottles deleted
    """
    bottles = UserBottle.objects.filter(user=user)
    count = bottles.count()
    bottles.delete()
    _prune_empty_sessions(user)

    logger.info("User %s cleared collection (%d bottles)", user.id, count)
    return count


def _prune_empty_sessions(user: User) -> None:
    from apps.pours.services import refresh_user_sessions

    refresh_user_sessions(user=user)
