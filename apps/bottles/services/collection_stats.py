"""
Collection statistics and storage locations.

Read-only queries behind the dashboard and the location pickers. All
functions return plain dicts and lists of model instances; nothing here
modifies data.
"""

import re
from decimal import Decimal

from django.db.models import Count, Q, Sum

from apps.accounts.models import User
from ..models import UserBottle, BottleStatus

LOW_STOCK_FILL_LEVEL = Decimal('20')
RECENT_BOTTLES_LIMIT = 5
TOP_VALUED_LIMIT = 5
LOW_STOCK_LIMIT = 10

_LEADING_NUMBER = re.compile(r'\s*(\d+)')


def bottle_value(bottle: UserBottle) -> Decimal:
    """Purchase price times quantity; bottles without a price are worth 0."""
    return (bottle.purchase_price or Decimal('0.00')) * bottle.quantity


def get_dashboard_stats(*, user: User) -> dict:
    """
    Summary of the user's collection.

    Returns:
        dict: A dictionary containing:
            - stats: total_bottles, total_value, open_bottles,
              unique_bottles, locations and low_stock_bottles counts
            - recent_bottles: Most recently added bottles
            - top_valued_bottles: {'bottle', 'total_value'} dicts, most valuable first
            - low_stock_bottles: Opened bottles under 20% full, emptiest first
    """
    bottles = UserBottle.objects.filter(user=user).select_related('master_bottle')

    counts = bottles.aggregate(
        total_bottles=Sum('quantity'),
        open_bottles=Sum('quantity', filter=Q(status=BottleStatus.OPENED)),
        unique_bottles=Count('master_bottle', distinct=True),
    )
    locations = (
        bottles
        .exclude(location_area='', location_bin='')
        .order_by()
        .values('location_area', 'location_bin')
        .distinct()
        .count()
    )

    low_stock = list(
        bottles
        .filter(status=BottleStatus.OPENED, fill_level__lt=LOW_STOCK_FILL_LEVEL)
        .order_by('fill_level', 'master_bottle__name')
    )

    valued = sorted(
        ((bottle, bottle_value(bottle)) for bottle in bottles),
        key=lambda pair: pair[1],
        reverse=True,
    )

    return {
        'stats': {
            'total_bottles': counts['total_bottles'] or 0,
            'total_value': sum((value for _, value in valued), Decimal('0.00')),
            'open_bottles': counts['open_bottles'] or 0,
            'unique_bottles': counts['unique_bottles'],
            'locations': locations,
            'low_stock_bottles': len(low_stock),
        },
        'recent_bottles': list(bottles.order_by('-created_at')[:RECENT_BOTTLES_LIMIT]),
        'top_valued_bottles': [
            {'bottle': bottle, 'total_value': value} for bottle, value in valued[:TOP_VALUED_LIMIT]
        ],
        'low_stock_bottles': low_stock[:LOW_STOCK_LIMIT],
    }


def get_location_areas(*, user: User, query: str = '') -> list[str]:
    """
    Distinct storage areas used in the user's collection.

    Filtered case-insensitively by ``query``; an exact match comes first,
    the rest alphabetically.
    """
    areas = set(
        UserBottle.objects
        .filter(user=user)
        .exclude(location_area='')
        .values_list('location_area', flat=True)
    )

    query = query.strip().lower()
    if query:
        areas = {area for area in areas if query in area.lower()}

    return sorted(areas, key=lambda area: (area.lower() != query, area.lower()))


def _bin_sort_key(value: str):
    match = _LEADING_NUMBER.match(value)
    if match:
        return (0, int(match.group(1)), value.lower())
    return (1, 0, value.lower())


def get_location_bins(*, user: User, area: str, query: str = '') -> list[str]:
    """
    Distinct bins within one storage area.

    Bins starting with a number sort numerically ("2" before "10"), before
    the rest. Returns an empty list when no area is given.
    """
    if not area:
        return []

    bins = set(
        UserBottle.objects
        .filter(user=user, location_area=area)
        .exclude(location_bin='')
        .values_list('location_bin', flat=True)
    )

    query = query.strip().lower()
    if query:
        bins = {value for value in bins if query in value.lower()}

    return sorted(bins, key=_bin_sort_key)
