"""
Drinking companions.

Sessions record companions as free-text names. A friend counts as a
companion of a session when one of its names matches the friend's display
name or username, ignoring case.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db.models import Q

from apps.accounts.models import User
from apps.pours.models import PourSession
from .friendships import get_friend, get_friend_ids

RECENT_COMPANION_SESSIONS = 10
RECENT_COMPANIONS_LIMIT = 5
TOP_COMPANIONS_LIMIT = 10


def _names_of(user: User) -> set[str]:
    return {name.lower() for name in (user.display_name, user.username) if name}


def _sessions_with_companions(user: User) -> list[PourSession]:
    sessions = PourSession.objects.filter(user=user).order_by('-started_at')
    return [session for session in sessions if session.companions]


def _sessions_with(sessions: list[PourSession], friend: User) -> list[PourSession]:
    names = _names_of(friend)
    return [
        session for session in sessions
        if any(companion.lower() in names for companion in session.companions)
    ]


def search_friends(*, user: User, query: str, limit: int = 10) -> dict:
    """
    Friends whose display name or username contains ``query``.

    Also suggests companion names from the user's recent sessions that
    contain ``query`` and are not one of the matched friends.

    Returns:
        {'friends': [{'friend': User, 'session_count': int}, ...],
         'recent_companions': [str, ...]}
    """
    query = query.strip()
    if not query:
        return {'friends': [], 'recent_companions': []}

    friends = list(
        User.objects
        .filter(id__in=get_friend_ids(user=user), is_active=True)
        .filter(Q(display_name__icontains=query) | Q(username__icontains=query))
        .order_by('display_name', 'username')[:limit]
    )

    sessions = _sessions_with_companions(user)
    matched_names = set().union(*(_names_of(friend) for friend in friends))

    recent_companions = []
    for session in sessions[:RECENT_COMPANION_SESSIONS]:
        for companion in session.companions:
            if query.lower() not in companion.lower() or companion.lower() in matched_names:
                continue
            if companion not in recent_companions:
                recent_companions.append(companion)

    return {
        'friends': [
            {'friend': friend, 'session_count': len(_sessions_with(sessions, friend))}
            for friend in friends
        ],
        'recent_companions': recent_companions[:RECENT_COMPANIONS_LIMIT],
    }


def get_companion_stats(*, user: User, friend_id: Optional[UUID] = None) -> dict:
    """
    Who the user drinks with.

    With ``friend_id``, totals for sessions shared with that friend.
    Without it, the user's most frequent companions.

    Raises:
        FriendshipNotFoundError: If ``friend_id`` is not a friend of the user
    """
    sessions = _sessions_with_companions(user)

    if friend_id is not None:
        friend = get_friend(user=user, friend_id=friend_id)
        shared = _sessions_with(sessions, friend)
        return {
            'friend': friend,
            'session_count': len(shared),
            'first_session': min((session.started_at for session in shared), default=None),
            'last_session': max((session.started_at for session in shared), default=None),
            'total_pours': sum(session.total_pours for session in shared),
            'total_amount': sum((session.total_amount for session in shared), Decimal('0.00')),
        }

    companions = {}
    for session in sessions:
        for name in session.companions:
            stats = companions.setdefault(name.lower(), {
                'name': name,
                'session_count': 0,
                'last_session': session.started_at,
                'total_pours': 0,
            })
            stats['session_count'] += 1
            stats['total_pours'] += session.total_pours
            stats['last_session'] = max(stats['last_session'], session.started_at)

    top = sorted(
        companions.values(),
        key=lambda stats: (stats['session_count'], stats['last_session']),
        reverse=True,
    )
    return {'top_companions': top[:TOP_COMPANIONS_LIMIT]}
