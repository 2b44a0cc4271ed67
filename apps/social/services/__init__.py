"""
Social services - Business logic layer.

This package contains all business operations for the social app:
- Friend requests and friendships
- Privacy checks and public profiles
- Pour cheers
- Companion search and stats
- Activity feed
"""

from .friendships import (
    get_friendship,
    are_friends,
    send_friend_request,
    accept_friend_request,
    remove_friendship,
    get_friends,
    get_pending_requests,
    get_friend_ids,
    get_friend,
)

from .profiles import (
    can_view,
    get_public_profile,
    get_public_collection,
    get_friends_with_bottle,
)

from .cheers import cheer_pour

from .companions import search_friends, get_companion_stats

from .feed import FEED_FILTERS, get_activity_feed

from .exceptions import (
    SocialServiceError,
    RecipientNotFoundError,
    RecipientProfileIncompleteError,
    SelfFriendRequestError,
    FriendshipExistsError,
    FriendRequestNotFoundError,
    FriendshipNotFoundError,
    ProfileNotFoundError,
    ProfilePrivateError,
    PourNotVisibleError,
    CannotCheerOwnPourError,
    AlreadyCheeredError,
    InvalidFeedFilterError,
)

__all__ = [
    # Friendships
    'get_friendship',
    'are_friends',
    'send_friend_request',
    'accept_friend_request',
    'remove_friendship',
    'get_friends',
    'get_pending_requests',
    'get_friend_ids',
    'get_friend',
    # Profiles
    'can_view',
    'get_public_profile',
    'get_public_collection',
    'get_friends_with_bottle',
    # Cheers
    'cheer_pour',
    # Companions
    'search_friends',
    'get_companion_stats',
    # Feed
    'FEED_FILTERS',
    'get_activity_feed',
    # Exceptions
    'SocialServiceError',
    'RecipientNotFoundError',
    'RecipientProfileIncompleteError',
    'SelfFriendRequestError',
    'FriendshipExistsError',
    'FriendRequestNotFoundError',
    'FriendshipNotFoundError',
    'ProfileNotFoundError',
    'ProfilePrivateError',
    'PourNotVisibleError',
    'CannotCheerOwnPourError',
    'AlreadyCheeredError',
    'InvalidFeedFilterError',
]
