"""Pour management service - logging, editing and deleting pours."""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet, Prefetch
from django.utils import timezone

from apps.accounts.models import User
from apps.bottles.models import UserBottle, BottleStatus, bottle_volume_oz
from apps.bottles.services.exceptions import UserBottleNotFoundError
from ..models import Pour, PourSession
from .session_windows import resolve_session
from .exceptions import (
    PourNotFoundError,
    PourSessionNotFoundError,
    BottleNotOpenedError,
    InvalidPourError,
)

logger = logging.getLogger(__name__)

MIN_AMOUNT = Decimal('0.1')
MAX_AMOUNT = Decimal('10')
BOTTLE_STAT_FIELDS = ['fill_level', 'total_pours', 'average_rating', 'last_pour_date']


def _clean_amount(amount) -> Decimal:
    try:
        amount = Decimal(str(amount))
    except InvalidOperation:
        raise InvalidPourError("Amount must be a number")
    if not (MIN_AMOUNT <= amount <= MAX_AMOUNT):
        raise InvalidPourError("Amount must be between 0.1 and 10 oz")
    return amount


def _clean_rating(rating) -> Optional[Decimal]:
    if rating is None:
        return None
    try:
        rating = Decimal(str(rating))
    except InvalidOperation:
        raise InvalidPourError("Rating must be a number")
    if not (Decimal('0') <= rating <= Decimal('10')):
        raise InvalidPourError("Rating must be between 0 and 10")
    if rating != rating.quantize(Decimal('0.1')):
        raise InvalidPourError("Rating must have at most one decimal place")
    return rating


def _clean_labels(values, lower=False) -> list[str]:
    cleaned = []
    for value in values or []:
        value = str(value).strip()
        if lower:
            value = value.lower()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def _cost_of(bottle: UserBottle, amount: Decimal) -> Optional[Decimal]:
    if not bottle.purchase_price:
        return None
    return (bottle.purchase_price / bottle_volume_oz() * amount).quantize(Decimal('0.01'))


def _lock_owned_bottle(bottle_id: UUID, user: User) -> UserBottle:
    try:
        return UserBottle.objects.select_for_update().get(id=bottle_id, user=user)
    except UserBottle.DoesNotExist:
        raise UserBottleNotFoundError("Bottle not found")


@transaction.atomic
def log_pour(
    *,
    user: User,
    user_bottle_id: UUID,
    amount: Decimal,
    poured_at: Optional[datetime] = None,
    rating: Optional[Decimal] = None,
    notes: str = '',
    location: str = '',
    tags: Optional[list[str]] = None,
    companions: Optional[list[str]] = None,
    session_id: Optional[UUID] = None,
) -> Pour:
    """
    Log a pour from one of the user's opened bottles.

    This operation:
    1. Validates amount and rating
    2. Locks the bottle and checks ownership and status
    3. Places the pour in the given session, or resolves one by time
    4. Creates the pour with its cost
    5. Refreshes session stats, bottle fill level and bottle pour stats

    Args:
        user: User pouring
        user_bottle_id: Bottle poured from (must be owned and opened)
        amount: Ounces, 0.1-10
        poured_at: When it was poured (defaults to now)
        rating: 0-10, one decimal
        notes: Tasting notes
        location: One of PourLocation
        tags: Free tags, stored lower-case
        companions: Names of people poured with
        session_id: Explicit session (must be the user's)

    Returns:
        Created Pour

    Raises:
        InvalidPourError: If amount or rating are out of range
        UserBottleNotFoundError: If bottle doesn't exist or belongs to another user
        BottleNotOpenedError: If the bottle is not opened
        PourSessionNotFoundError: If session_id is not one of the user's sessions
    """
    amount = _clean_amount(amount)
    rating = _clean_rating(rating)
    poured_at = poured_at or timezone.now()

    bottle = _lock_owned_bottle(user_bottle_id, user)
    if bottle.status != BottleStatus.OPENED:
        raise BottleNotOpenedError("Bottle must be opened before pouring")

    if session_id:
        try:
            session = PourSession.objects.select_for_update().get(id=session_id, user=user)
        except PourSession.DoesNotExist:
            raise PourSessionNotFoundError("Pour session not found")
    else:
        session = resolve_session(user=user, poured_at=poured_at)

    pour = Pour.objects.create(
        user=user,
        user_bottle=bottle,
        session=session,
        poured_at=poured_at,
        amount=amount,
        rating=rating,
        notes=notes.strip(),
        location=location,
        tags=_clean_labels(tags, lower=True),
        companions=_clean_labels(companions),
        cost_per_pour=_cost_of(bottle, amount),
    )

    session.refresh_stats()

    bottle.consume(amount)
    bottle.update_pour_stats()
    bottle.save(update_fields=BOTTLE_STAT_FIELDS)

    logger.info(
        "User %s poured %soz from bottle %s into session %s",
        user.id, amount, bottle.id, session.id,
    )
    return pour


def get_pour(*, pour_id: UUID, user: User) -> Pour:
    """
    Raises:
        PourNotFoundError: If pour doesn't exist or belongs to another user
    """
    try:
        return (
            Pour.objects
            .select_related('user_bottle__master_bottle', 'session')
            .get(id=pour_id, user=user)
        )
    except Pour.DoesNotExist:
        raise PourNotFoundError("Pour not found")


def get_user_pours(
    *,
    user: User,
    user_bottle_id: Optional[UUID] = None,
    session_id: Optional[UUID] = None,
) -> QuerySet[Pour]:
    """The user's pours, most recent first, optionally for one bottle or session."""
    queryset = Pour.objects.filter(user=user).select_related('user_bottle__master_bottle', 'session')

    if user_bottle_id:
        queryset = queryset.filter(user_bottle_id=user_bottle_id)

    if session_id:
        queryset = queryset.filter(session_id=session_id)

    return queryset.order_by('-poured_at')


@transaction.atomic
def update_pour(*, pour_id: UUID, user: User, **changes) -> Pour:
    """
    Edit the tasting details of a pour (rating, notes, location, tags, companions).

    Amount and time are fixed once logged; delete and re-log to change them.

    Raises:
        PourNotFoundError: If pour doesn't exist or belongs to another user
        InvalidPourError: If rating is out of range
    """
    try:
        pour = Pour.objects.select_for_update().get(id=pour_id, user=user)
    except Pour.DoesNotExist:
        raise PourNotFoundError("Pour not found")

    update_fields = []
    if 'rating' in changes:
        pour.rating = _clean_rating(changes['rating'])
        update_fields.append('rating')
    if 'notes' in changes:
        pour.notes = (changes['notes'] or '').strip()
        update_fields.append('notes')
    if 'location' in changes:
        pour.location = changes['location'] or ''
        update_fields.append('location')
    if 'tags' in changes:
        pour.tags = _clean_labels(changes['tags'], lower=True)
        update_fields.append('tags')
    if 'companions' in changes:
        pour.companions = _clean_labels(changes['companions'])
        update_fields.append('companions')

    if not update_fields:
        return pour

    pour.save(update_fields=update_fields + ['updated_at'])

    if pour.session_id:
        pour.session.refresh_stats()

    if 'rating' in changes:
        bottle = UserBottle.objects.select_for_update().get(id=pour.user_bottle_id)
        bottle.update_pour_stats()
        bottle.save(update_fields=BOTTLE_STAT_FIELDS)

    return pour


@transaction.atomic
def delete_pour(*, pour_id: UUID, user: User) -> None:
    """
    Delete a pour and give its volume back to the bottle.

    A session left without pours is deleted with it; otherwise its time
    bounds and stats are recomputed from the remaining pours.

    Raises:
        PourNotFoundError: If pour doesn't exist or belongs to another user
    """
    try:
        pour = Pour.objects.select_for_update().get(id=pour_id, user=user)
    except Pour.DoesNotExist:
        raise PourNotFoundError("Pour not found")

    bottle = UserBottle.objects.select_for_update().get(id=pour.user_bottle_id)
    session = pour.session
    amount = pour.amount

    pour.delete()

    bottle.restore(amount)
    bottle.update_pour_stats()
    bottle.save(update_fields=BOTTLE_STAT_FIELDS)

    if session is not None:
        if session.pours.exists():
            session.refresh_stats()
        else:
            session.delete()

    logger.info("User %s deleted pour %s", user.id, pour_id)


def get_user_sessions(*, user: User) -> QuerySet[PourSession]:
    """The user's sessions, most recent first, with pours prefetched in time order."""
    return (
        PourSession.objects
        .filter(user=user)
        .prefetch_related(
            Prefetch(
                'pours',
                queryset=Pour.objects.select_related('user_bottle__master_bottle').order_by('poured_at'),
            )
        )
        .order_by('-started_at')
    )


def get_session(*, session_id: UUID, user: User) -> PourSession:
    """
    Raises:
        PourSessionNotFoundError: If session doesn't exist or belongs to another user
    """
    try:
        return get_user_sessions(user=user).get(id=session_id)
    except PourSession.DoesNotExist:
        raise PourSessionNotFoundError("Pour session not found")


@transaction.atomic
def update_session(*, session_id: UUID, user: User, **changes) -> PourSession:
    """
    Rename a session or edit its location, notes, tags and companions.

    Raises:
        PourSessionNotFoundError: If session doesn't exist or belongs to another user
    """
    try:
        session = PourSession.objects.select_for_update().get(id=session_id, user=user)
    except PourSession.DoesNotExist:
        raise PourSessionNotFoundError("Pour session not found")

    update_fields = []
    if 'name' in changes:
        session.name = (changes['name'] or '').strip()
        update_fields.append('name')
    if 'location' in changes:
        session.location = changes['location'] or ''
        update_fields.append('location')
    if 'notes' in changes:
        session.notes = (changes['notes'] or '').strip()
        update_fields.append('notes')
    if 'tags' in changes:
        session.session_tags = _clean_labels(changes['tags'], lower=True)
        update_fields.append('session_tags')
    if 'companions' in changes:
        session.session_companions = _clean_labels(changes['companions'])
        update_fields.append('session_companions')

    if update_fields:
        session.save(update_fields=update_fields + ['updated_at'])

    if 'tags' in changes or 'companions' in changes:
        session.refresh_stats()

    return get_session(session_id=session.id, user=user)
