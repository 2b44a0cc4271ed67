"""
Public profiles and privacy checks.

Each user controls who sees their collection, pours and ratings with a
Visibility value (public / friends / private). The owner always sees
everything.
"""

from datetime import datetime, timezone as dt_timezone
from typing import Optional

from django.db.models import Avg, Count

from apps.accounts.models import User, Visibility
from apps.bottles.models import UserBottle
from apps.bottles.services import get_master_bottle
from apps.pours.models import Pour
from ..models import FriendshipStatus
from .exceptions import ProfileNotFoundError, ProfilePrivateError
from .friendships import get_friendship, get_friend_ids

PRIVACY_SETTINGS = ('show_collection', 'show_pours', 'show_ratings')


def can_view(*, viewer: Optional[User], owner: User, setting: str, friendship_status: Optional[str] = None) -> bool:
    """
    True if ``viewer`` may see the part of ``owner``'s data guarded by ``setting``.

    Args:
        viewer: Requesting user, or None for anonymous requests
        owner: Owner of the data
        setting: One of PRIVACY_SETTINGS
        friendship_status: Already looked-up status between the two users (optional)
    """
    if setting not in PRIVACY_SETTINGS:
        raise ValueError(f"Unknown privacy setting: {setting}")

    if viewer is not None and viewer.id == owner.id:
        return True

    visibility = getattr(owner, setting)
    if visibility == Visibility.PUBLIC:
        return True
    if visibility == Visibility.PRIVATE or viewer is None:
        return False

    if friendship_status is None:
        friendship = get_friendship(user_a=viewer, user_b=owner)
        friendship_status = friendship.status if friendship else None
    return friendship_status == FriendshipStatus.ACCEPTED


def _get_profile_owner(username: str) -> User:
    try:
        return User.objects.get(username=username.lower(), is_active=True)
    except User.DoesNotExist:
        raise ProfileNotFoundError("User not found")


def get_public_profile(*, username: str, viewer: Optional[User]) -> dict:
    """
    Profile of ``username`` as seen by ``viewer``.

    Stats are included only where the owner's privacy settings allow.

    Raises:
        ProfileNotFoundError: If no active user has this username
    """
    owner = _get_profile_owner(username)
    is_own_profile = viewer is not None and viewer.id == owner.id

    friendship_status = None
    if viewer is not None and not is_own_profile:
        friendship = get_friendship(user_a=viewer, user_b=owner)
        friendship_status = friendship.status if friendship else None

    profile = {
        'id': owner.id,
        'username': owner.username,
        'display_name': owner.get_display_name(),
        'bio': owner.bio,
        'created_at': owner.created_at,
        'is_own_profile': is_own_profile,
        'is_friend': friendship_status == FriendshipStatus.ACCEPTED,
        'friendship_status': friendship_status,
    }

    def visible(setting):
        return can_view(viewer=viewer, owner=owner, setting=setting, friendship_status=friendship_status)

    if visible('show_collection'):
        bottles = UserBottle.objects.filter(user=owner, quantity__gt=0)
        counts = bottles.aggregate(
            bottle_count=Count('id'),
            unique_bottles=Count('master_bottle', distinct=True),
        )
        profile['stats'] = {
            'bottle_count': counts['bottle_count'],
            'unique_bottles': counts['unique_bottles'],
        }

        if visible('show_pours'):
            profile['stats']['total_pours'] = Pour.objects.filter(user=owner).count()

        if visible('show_ratings'):
            average = Pour.objects.filter(user=owner, rating__isnull=False).aggregate(avg=Avg('rating'))['avg']
            profile['stats']['average_rating'] = round(average, 1) if average is not None else None

    if is_own_profile:
        profile['privacy'] = {setting: getattr(owner, setting) for setting in PRIVACY_SETTINGS}

    return profile


def get_public_collection(*, username: str, viewer: Optional[User]) -> dict:
    """
    Bottles of ``username`` visible to ``viewer``.

    Returns:
        {'bottles': QuerySet of UserBottle, 'show_ratings': whether ratings may be shown}

    Raises:
        ProfileNotFoundError: If no active user has this username
        ProfilePrivateError: If the collection is hidden from the viewer
    """
    owner = _get_profile_owner(username)
    if not can_view(viewer=viewer, owner=owner, setting='show_collection'):
        raise ProfilePrivateError("This collection is private")

    bottles = (
        UserBottle.objects
        .filter(user=owner, quantity__gt=0)
        .select_related('master_bottle')
        .order_by('master_bottle__name')
    )
    return {
        'bottles': bottles,
        'show_ratings': can_view(viewer=viewer, owner=owner, setting='show_ratings'),
    }


def get_friends_with_bottle(*, user: User, master_bottle_id) -> dict:
    """
    Friends who have ``master_bottle_id`` in their collection.

    Only friends whose collection is visible to ``user`` are included, and
    only bottles with quantity > 0. Most recently poured first.

    Returns:
        {'master_bottle': MasterBottle,
         'friends_with_bottle': [{'friend': User, 'bottle': UserBottle, 'show_ratings': bool}, ...]}

    Raises:
        MasterBottleNotFoundError: If the catalogue bottle doesn't exist
    """
    master_bottle = get_master_bottle(master_bottle_id=master_bottle_id)

    friends = User.objects.filter(id__in=get_friend_ids(user=user), is_active=True)
    visible = {
        friend.id: friend for friend in friends
        if can_view(viewer=user, owner=friend, setting='show_collection', friendship_status=FriendshipStatus.ACCEPTED)
    }

    bottles = (
        UserBottle.objects
        .filter(user_id__in=list(visible), master_bottle=master_bottle, quantity__gt=0)
        .order_by('user_id', '-last_pour_date')
    )

    entries = {}
    for bottle in bottles:
        entries.setdefault(bottle.user_id, bottle)

    friends_with_bottle = [
        {
            'friend': visible[user_id],
            'bottle': bottle,
            'show_ratings': can_view(
                viewer=user,
                owner=visible[user_id],
                setting='show_ratings',
                friendship_status=FriendshipStatus.ACCEPTED,
            ),
        }
        for user_id, bottle in entries.items()
    ]
    friends_with_bottle.sort(
        key=lambda entry: entry['bottle'].last_pour_date or datetime.min.replace(tzinfo=dt_timezone.utc),
        reverse=True,
    )

    return {'master_bottle': master_bottle, 'friends_with_bottle': friends_with_bottle}
