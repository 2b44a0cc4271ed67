"""
Activity feed.

The feed is assembled from what already exists: pours, and bottles added to
collections. It covers the user's own activity and that of friends whose
privacy settings let the user see it.
"""

from django.db.models import Count

from apps.accounts.models import User
from apps.bottles.models import UserBottle
from apps.pours.models import Pour
from ..models import FriendshipStatus, PourCheer
from .exceptions import InvalidFeedFilterError
from .friendships import get_friend_ids
from .profiles import can_view

FEED_FILTERS = ('all', 'pours', 'ratings', 'new_bottles')
MAX_FEED_LIMIT = 100


def _visible_owners(user: User) -> dict:
    """Ids of users whose pours, ratings and new bottles ``user`` may see."""
    owners = {'show_pours': {user.id}, 'show_ratings': {user.id}, 'show_collection': {user.id}}
    friends = User.objects.filter(id__in=get_friend_ids(user=user), is_active=True)
    for friend in friends:
        for setting, ids in owners.items():
            if can_view(viewer=user, owner=friend, setting=setting, friendship_status=FriendshipStatus.ACCEPTED):
                ids.add(friend.id)
    return owners


def _pour_activity(pour: Pour, user: User, show_rating: bool, cheered: set) -> dict:
    return {
        'type': 'rating' if pour.rating is not None and show_rating else 'pour',
        'id': pour.id,
        'user': pour.user,
        'occurred_at': pour.poured_at,
        'bottle_name': pour.user_bottle.master_bottle.name,
        'amount': pour.amount,
        'rating': pour.rating if show_rating else None,
        'cheers_count': pour.cheers_count,
        'has_cheered': pour.id in cheered,
        'is_own': pour.user_id == user.id,
    }


def _bottle_activity(bottle: UserBottle, user: User) -> dict:
    return {
        'type': 'new_bottle',
        'id': bottle.id,
        'user': bottle.user,
        'occurred_at': bottle.created_at,
        'bottle_name': bottle.master_bottle.name,
        'amount': None,
        'rating': None,
        'cheers_count': 0,
        'has_cheered': False,
        'is_own': bottle.user_id == user.id,
    }


def get_activity_feed(*, user: User, activity_filter: str = 'all', limit: int = 50, offset: int = 0) -> dict:
    """
    Newest-first activity of the user and their friends.

    Args:
        user: Viewer
        activity_filter: all, pours, ratings or new_bottles
        limit: Page size (at most 100)
        offset: Items to skip

    Returns:
        {'activities': [dict, ...], 'total': int, 'offset': int, 'limit': int, 'has_more': bool}

    Raises:
        InvalidFeedFilterError: If the filter or paging values are invalid
    """
    if activity_filter not in FEED_FILTERS:
        raise InvalidFeedFilterError(f"Filter must be one of: {', '.join(FEED_FILTERS)}")
    if not (1 <= limit <= MAX_FEED_LIMIT) or offset < 0:
        raise InvalidFeedFilterError(f"Limit must be 1-{MAX_FEED_LIMIT} and offset at least 0")

    owners = _visible_owners(user)
    window = offset + limit
    sources = []

    if activity_filter in ('all', 'pours', 'ratings'):
        pours = (
            Pour.objects
            .filter(user_id__in=owners['show_pours'])
            .select_related('user', 'user_bottle__master_bottle')
            .annotate(cheers_count=Count('cheers'))
            .order_by('-poured_at')
        )
        if activity_filter == 'ratings':
            pours = pours.filter(rating__isnull=False, user_id__in=owners['show_ratings'])

        page = list(pours[:window])
        cheered = set(
            PourCheer.objects
            .filter(user=user, pour__in=page)
            .values_list('pour_id', flat=True)
        )
        sources.append((
            pours.count(),
            [_pour_activity(pour, user, pour.user_id in owners['show_ratings'], cheered) for pour in page],
        ))

    if activity_filter in ('all', 'new_bottles'):
        bottles = (
            UserBottle.objects
            .filter(user_id__in=owners['show_collection'])
            .select_related('user', 'master_bottle')
            .order_by('-created_at')
        )
        sources.append((bottles.count(), [_bottle_activity(bottle, user) for bottle in bottles[:window]]))

    total = sum(count for count, _ in sources)
    activities = sorted(
        (activity for _, items in sources for activity in items),
        key=lambda activity: activity['occurred_at'],
        reverse=True,
    )

    return {
        'activities': activities[offset:window],
        'total': total,
        'offset': offset,
        'limit': limit,
        'has_more': window < total,
    }
