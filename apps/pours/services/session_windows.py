"""
Pour session windowing.

Pours are clustered into sessions by time. A pour within the inactivity
gap of a session's window joins that session; a later pour past the gap
closes the open session and starts a new one. Backdated pours attach to
the historical session whose window contains them, so logging an old
pour never disturbs the open session.

A session's window is ``[started_at - gap, last_pour_at + gap]``.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction, DatabaseError
from django.db.models import F, Count, Sum, Min, Max
from django.utils import timezone

from apps.accounts.models import User
from ..models import Pour, PourSession

logger = logging.getLogger(__name__)


def get_inactivity_gap() -> timedelta:
    """Longest pause between two pours of the same session."""
    return timedelta(minutes=settings.POUR_SESSIONS['INACTIVITY_GAP_MINUTES'])


def _in_window(session: PourSession, poured_at: datetime, gap: timedelta) -> bool:
    return session.started_at - gap <= poured_at <= session.last_pour_at + gap


def _widen(session: PourSession, poured_at: datetime) -> PourSession:
    """Stretch the session bounds to cover ``poured_at``."""
    update_fields = []
    if poured_at < session.started_at:
        session.started_at = poured_at
        update_fields.append('started_at')
    if poured_at > session.last_pour_at:
        session.last_pour_at = poured_at
        update_fields.append('last_pour_at')
        if session.ended_at is not None:
            session.ended_at = poured_at
            update_fields.append('ended_at')
    if update_fields:
        session.save(update_fields=update_fields + ['updated_at'])
    return session


def _close(session: PourSession) -> None:
    session.ended_at = session.last_pour_at
    session.save(update_fields=['ended_at', 'updated_at'])
    logger.info("Closed pour session %s for user %s", session.id, session.user_id)


@transaction.atomic
def resolve_session(
    *,
    user: User,
    poured_at: datetime,
    now: Optional[datetime] = None,
) -> PourSession:
    """
    Find or create the session a pour at ``poured_at`` belongs to.

    The user row is locked for the duration of the transaction so two
    concurrent pours from the same user cannot both open a session.

    This operation:
    1. Joins the open session when ``poured_at`` falls inside its window
    2. Closes the open session when ``poured_at`` is past its window
    3. Attaches a backdated pour to the closed session containing it
    4. Otherwise starts a new session, open only if it is still active

    The caller links the pour and refreshes the session statistics.

    Args:
        user: Owner of the pour
        poured_at: When the pour happened
        now: Reference time (defaults to timezone.now())

    Returns:
        PourSession the pour belongs to
    """
    now = now or timezone.now()
    gap = get_inactivity_gap()

    # Serializes resolvers for this user
    User.objects.select_for_update().only('id').get(id=user.id)

    open_session = (
        PourSession.objects
        .select_for_update()
        .filter(user=user, ended_at__isnull=True)
        .first()
    )

    if open_session is not None:
        if _in_window(open_session, poured_at, gap):
            return _widen(open_session, poured_at)

        if poured_at > open_session.last_pour_at:
            _close(open_session)
            open_session = None

    historical = (
        PourSession.objects
        .select_for_update()
        .filter(
            user=user,
            ended_at__isnull=False,
            started_at__lte=poured_at + gap,
            last_pour_at__gte=poured_at - gap,
        )
        .order_by('-last_pour_at')
        .first()
    )
    if historical is not None:
        return _widen(historical, poured_at)

    still_active = open_session is None and poured_at + gap >= now
    session = PourSession.objects.create(
        user=user,
        started_at=poured_at,
        last_pour_at=poured_at,
        ended_at=None if still_active else poured_at,
    )
    logger.info(
        "Started %s pour session %s for user %s",
        'open' if still_active else 'closed', session.id, user.id,
    )
    return session


@transaction.atomic
def get_current_session(*, user: User, now: Optional[datetime] = None) -> Optional[PourSession]:
    """
    The user's open session, if it is still within the gap of ``now``.

    An open session that has gone quiet is closed on the way out.
    """
    now = now or timezone.now()

    session = (
        PourSession.objects
        .select_for_update()
        .filter(user=user, ended_at__isnull=True)
        .first()
    )
    if session is None:
        return None

    if session.last_pour_at + get_inactivity_gap() < now:
        _close(session)
        return None

    return session


def close_stale_sessions(*, now: Optional[datetime] = None) -> int:
    """
    Close every open session whose last pour is older than the gap.

    Returns:
        Number of sessions closed
    """
    now = now or timezone.now()
    closed = (
        PourSession.objects
        .filter(ended_at__isnull=True, last_pour_at__lt=now - get_inactivity_gap())
        .update(ended_at=F('last_pour_at'), updated_at=now)
    )
    if closed:
        logger.info("Closed %d stale pour session(s)", closed)
    return closed


def assign_orphaned_pours(*, user: Optional[User] = None, now: Optional[datetime] = None) -> int:
    """
    Put every pour without a session into one.

    Pours are processed oldest first so they cluster the same way they
    would have when logged live. A pour that fails is logged and left
    orphaned; the rest are still processed.

    Returns:
        Number of pours assigned
    """
    orphans = Pour.objects.filter(session__isnull=True).select_related('user').order_by('poured_at')
    if user is not None:
        orphans = orphans.filter(user=user)

    assigned = 0
    for pour in orphans:
        try:
            with transaction.atomic():
                session = resolve_session(user=pour.user, poured_at=pour.poured_at, now=now)
                pour.session = session
                pour.save(update_fields=['session', 'updated_at'])
                session.refresh_stats()
        except DatabaseError:
            logger.exception("Could not assign pour %s to a session", pour.id)
            continue
        assigned += 1

    if assigned:
        logger.info("Assigned %d orphaned pour(s) to sessions", assigned)
    return assigned


@transaction.atomic
def refresh_user_sessions(*, user: User) -> int:
    """
    Drop the user's sessions that no longer have pours and refresh the rest.

    Returns:
        Number of sessions deleted
    """
    empty = PourSession.objects.filter(user=user).annotate(pour_count=Count('pours')).filter(pour_count=0)
    deleted, _ = PourSession.objects.filter(id__in=list(empty.values_list('id', flat=True))).delete()

    for session in PourSession.objects.filter(user=user):
        session.refresh_stats()

    return deleted


def get_orphaned_pour_summary(*, user: User, now: Optional[datetime] = None) -> dict:
    """
    Summary of the user's recent pours that are not in any session.

    Only pours within ORPHAN_LOOKBACK_HOURS of ``now`` are counted.
    """
    now = now or timezone.now()
    since = now - timedelta(hours=settings.POUR_SESSIONS['ORPHAN_LOOKBACK_HOURS'])

    summary = Pour.objects.filter(
        user=user,
        session__isnull=True,
        poured_at__gte=since,
    ).aggregate(
        count=Count('id'),
        total_amount=Sum('amount'),
        first_pour_at=Min('poured_at'),
        last_pour_at=Max('poured_at'),
    )
    summary['total_amount'] = summary['total_amount'] or 0
    return summary
