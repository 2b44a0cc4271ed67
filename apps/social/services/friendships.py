"""
Friendship service.

Friend requests, acceptance and removal. A friendship row exists at most
once per unordered pair of users (enforced by ``Friendship.pair_key``).
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import Q, QuerySet

from apps.accounts.models import User
from apps.notifications.models import NotificationType
from apps.notifications.services import create_notification
from ..models import Friendship, FriendshipStatus
from .exceptions import (
    RecipientNotFoundError,
    RecipientProfileIncompleteError,
    SelfFriendRequestError,
    FriendshipExistsError,
    FriendRequestNotFoundError,
    FriendshipNotFoundError,
)

logger = logging.getLogger(__name__)

EXISTING_FRIENDSHIP_MESSAGES = {
    FriendshipStatus.PENDING: 'Friend request already pending',
    FriendshipStatus.ACCEPTED: 'Already friends',
    FriendshipStatus.BLOCKED: 'Cannot send friend request',
}


def _find_recipient(*, recipient_id, email, username) -> Optional[User]:
    queryset = User.objects.filter(is_active=True)
    if recipient_id:
        return queryset.filter(id=recipient_id).first()
    if email:
        return queryset.filter(email__iexact=email.strip()).first()
    if username:
        return queryset.filter(username=username.strip().lower()).first()
    return None


def get_friendship(*, user_a: User, user_b: User) -> Optional[Friendship]:
    """The friendship row between two users in either direction, if any."""
    return Friendship.objects.filter(pair_key=Friendship.make_pair_key(user_a.id, user_b.id)).first()


def are_friends(*, user_a: User, user_b: User) -> bool:
    return Friendship.objects.filter(
        pair_key=Friendship.make_pair_key(user_a.id, user_b.id),
        status=FriendshipStatus.ACCEPTED,
    ).exists()


@transaction.atomic
def send_friend_request(
    *,
    requester: User,
    recipient_id: Optional[UUID] = None,
    email: Optional[str] = None,
    username: Optional[str] = None,
) -> Friendship:
    """
    Send a friend request, identifying the recipient by id, email or username.

    The recipient is notified with a ``friend_request`` notification.

    Raises:
        RecipientNotFoundError: If no active user matches
        RecipientProfileIncompleteError: If the recipient has no username yet
        SelfFriendRequestError: If requester and recipient are the same user
        FriendshipExistsError: If the pair already has a friendship row
    """
    recipient = _find_recipient(recipient_id=recipient_id, email=email, username=username)
    if recipient is None:
        raise RecipientNotFoundError("No user found with that email or username")

    if recipient.id == requester.id:
        raise SelfFriendRequestError("Cannot send friend request to yourself")

    if not recipient.username:
        raise RecipientProfileIncompleteError("User found but hasn't set up their profile yet")

    existing = get_friendship(user_a=requester, user_b=recipient)
    if existing is not None:
        raise FriendshipExistsError(EXISTING_FRIENDSHIP_MESSAGES[existing.status])

    try:
        friendship = Friendship.objects.create(
            requester=requester,
            recipient=recipient,
            status=FriendshipStatus.PENDING,
        )
    except IntegrityError:
        # Concurrent request for the same pair
        raise FriendshipExistsError(EXISTING_FRIENDSHIP_MESSAGES[FriendshipStatus.PENDING])

    create_notification(
        user=recipient,
        type=NotificationType.FRIEND_REQUEST,
        title='New Friend Request',
        message=f"{requester.get_display_name()} sent you a friend request",
        data={
            'requester_id': str(requester.id),
            'requester_name': requester.get_display_name(),
            'friendship_id': str(friendship.id),
        },
        entity_key=str(friendship.id),
        action_url='/friends',
        icon='user-plus',
    )

    logger.info("User %s sent a friend request to %s", requester.id, recipient.id)
    return friendship


@transaction.atomic
def accept_friend_request(*, friendship_id: UUID, user: User) -> Friendship:
    """
    Accept a pending request addressed to ``user``.

    The requester is notified with ``friend_request_accepted``.

    Raises:
        FriendRequestNotFoundError: If there is no pending request with this id for the user
    """
    try:
        friendship = (
            Friendship.objects
            .select_for_update()
            .select_related('requester')
            .get(id=friendship_id, recipient=user, status=FriendshipStatus.PENDING)
        )
    except Friendship.DoesNotExist:
        raise FriendRequestNotFoundError("Friend request not found")

    friendship.status = FriendshipStatus.ACCEPTED
    friendship.save()

    create_notification(
        user=friendship.requester,
        type=NotificationType.FRIEND_REQUEST_ACCEPTED,
        title='Friend Request Accepted',
        message=f"{user.get_display_name()} accepted your friend request",
        data={'friend_id': str(user.id), 'friendship_id': str(friendship.id)},
        entity_key=str(friendship.id),
        action_url=f'/users/{user.username}' if user.username else '/friends',
        icon='users',
    )

    logger.info("User %s accepted friend request %s", user.id, friendship.id)
    return friendship


@transaction.atomic
def remove_friendship(*, friendship_id: UUID, user: User) -> None:
    """
    Remove a friendship or withdraw/decline a pending request. Either party may do it.

    Raises:
        FriendshipNotFoundError: If the friendship doesn't exist or the user is not part of it
    """
    deleted, _ = (
        Friendship.objects
        .filter(Q(requester=user) | Q(recipient=user), id=friendship_id)
        .delete()
    )
    if not deleted:
        raise FriendshipNotFoundError("Friendship not found")

    logger.info("User %s removed friendship %s", user.id, friendship_id)


def get_friends(*, user: User) -> QuerySet[Friendship]:
    """Accepted friendships of the user, most recent first."""
    return (
        Friendship.objects
        .filter(Q(requester=user) | Q(recipient=user), status=FriendshipStatus.ACCEPTED)
        .select_related('requester', 'recipient')
        .order_by('-accepted_at')
    )


def get_pending_requests(*, user: User) -> dict:
    """
    Returns:
        {'incoming': requests addressed to the user, 'outgoing': requests the user sent}
    """
    pending = Friendship.objects.filter(status=FriendshipStatus.PENDING).select_related('requester', 'recipient')
    return {
        'incoming': pending.filter(recipient=user),
        'outgoing': pending.filter(requester=user),
    }


def get_friend_ids(*, user: User) -> list:
    """Ids of the user's accepted friends."""
    rows = (
        Friendship.objects
        .filter(Q(requester=user) | Q(recipient=user), status=FriendshipStatus.ACCEPTED)
        .values_list('requester_id', 'recipient_id')
    )
    return [recipient_id if requester_id == user.id else requester_id for requester_id, recipient_id in rows]


def get_friend(*, user: User, friend_id: UUID) -> User:
    """
    One of the user's accepted friends.

    Raises:
        FriendshipNotFoundError: If ``friend_id`` is not a friend of the user
    """
    if friend_id not in get_friend_ids(user=user):
        raise FriendshipNotFoundError("Friend not found")
    return User.objects.get(id=friend_id)
