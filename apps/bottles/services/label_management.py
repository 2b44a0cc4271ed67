"""
Label printing service.

Tracks which bottles still need a vault label. The "new" queue is
everything added since the user's last print session that doesn't
already carry an external barcode.
"""

import logging
from datetime import datetime
from io import BytesIO

import qrcode
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone
from uuid import UUID
from typing import Iterable, Optional

from apps.accounts.models import User
from ..models import UserBottle
from .exceptions import UserBottleNotFoundError, InvalidLabelFilterError

logger = logging.getLogger(__name__)

LABEL_FILTERS = ('new', 'never', 'missing', 'date_range', 'all')


def _no_barcode() -> Q:
    return Q(barcode='')


def get_bottles_needing_labels(
    *,
    user: User,
    label_filter: str = 'new',
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> QuerySet[UserBottle]:
    """
    Select bottles for the label queue.

    Filters:
        new: added since the last print session, no external barcode
        never: never printed, no external barcode
        missing: neither external nor vault barcode
        date_range: added between ``start`` and ``end`` (inclusive)
        all: every bottle

    Raises:
        InvalidLabelFilterError: Unknown filter, or date_range without both bounds
    """
    if label_filter not in LABEL_FILTERS:
        raise InvalidLabelFilterError(f"Unknown label filter '{label_filter}'")

    queryset = UserBottle.objects.filter(user=user).select_related('master_bottle')

    if label_filter == 'new':
        if user.last_print_session_date:
            queryset = queryset.filter(created_at__gte=user.last_print_session_date)
        queryset = queryset.filter(_no_barcode())
    elif label_filter == 'never':
        queryset = queryset.filter(_no_barcode(), last_label_printed_at__isnull=True)
    elif label_filter == 'missing':
        queryset = queryset.filter(_no_barcode(), vault_barcode='')
    elif label_filter == 'date_range':
        if not (start and end):
            raise InvalidLabelFilterError("date_range requires start and end")
        queryset = queryset.filter(created_at__gte=start, created_at__lte=end)

    return queryset.order_by('-created_at')


def count_labels_needed(*, user: User) -> int:
    """Size of the "new" label queue."""
    return get_bottles_needing_labels(user=user, label_filter='new').count()


@transaction.atomic
def mark_label_printed(*, bottle_id: UUID, user: User) -> UserBottle:
    """
    Stamp a single bottle as printed.

    Raises:
        UserBottleNotFoundError: If bottle doesn't exist or belongs to another user
    """
    try:
        bottle = UserBottle.objects.select_for_update().get(id=bottle_id, user=user)
    except UserBottle.DoesNotExist:
        raise UserBottleNotFoundError("Bottle not found")

    bottle.last_label_printed_at = timezone.now()
    bottle.save(update_fields=['last_label_printed_at'])
    return bottle


@transaction.atomic
def record_print_session(*, user: User, bottle_ids: Iterable[UUID]) -> int:
    """
    Close a print session.

    Stamps ``last_label_printed_at`` on the listed bottles the user owns
    (ids belonging to others are ignored) and moves the user's
    ``last_print_session_date`` to now.

    Returns:
        Number of bottles stamped
    """
    now = timezone.now()
    updated = UserBottle.objects.filter(
        user=user,
        id__in=list(bottle_ids),
    ).update(last_label_printed_at=now, updated_at=now)

    User.objects.filter(id=user.id).update(last_print_session_date=now)
    user.last_print_session_date = now

    logger.info("User %s printed %d label(s)", user.id, updated)
    return updated


def get_label_code(bottle: UserBottle) -> str:
    """
    Value encoded in a bottle's label QR code.

    The vault barcode when one was assigned, otherwise ``WV`` followed by
    the bottle id.
    """
    return bottle.vault_barcode or f'WV{bottle.id.hex}'


def generate_label_qr(*, bottle_id: UUID, user: User, box_size: int = 10) -> bytes:
    """
    Render the label QR code of a bottle as PNG.

    Uses error correction level M, which survives a scuffed label.

    Raises:
        UserBottleNotFoundError: If bottle doesn't exist or belongs to another user
    """
    try:
        bottle = UserBottle.objects.get(id=bottle_id, user=user)
    except UserBottle.DoesNotExist:
        raise UserBottleNotFoundError("Bottle not found")

    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=2,
    )
    qr.add_data(get_label_code(bottle))
    qr.make(fit=True)

    image = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()
