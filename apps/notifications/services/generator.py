"""
Scheduled notification generation.

Runs every registered rule for every active user. A failing rule for one
user, or a user whose preferences cannot be loaded, is logged and counted;
the run continues with the next rule or user.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Iterable, Optional

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from ..models import Notification, NotificationPriority, NotificationType
from .notification_management import create_notification, purge_expired_notifications
from .preferences import get_preferences
from .rules import NotificationRule, get_rules

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    created: int = 0
    skipped: int = 0
    failures: int = 0
    purged: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def apply_rule(*, rule: NotificationRule, user: User, preferences, now: datetime) -> tuple[int, int]:
    """
    Evaluate one rule for one user and insert its candidates.

    Returns:
        (created, skipped) counts
    """
    created = skipped = 0
    for candidate in rule.evaluate(user, preferences, now):
        notification = create_notification(
            user=user,
            type=rule.notification_type,
            title=candidate.title,
            message=candidate.message,
            priority=candidate.priority,
            data=candidate.data,
            entity_key=candidate.entity_key,
            cooldown=rule.cooldown,
            action_url=candidate.action_url,
            icon=candidate.icon,
            expires_at=candidate.expires_at,
            now=now,
        )
        if notification is None:
            skipped += 1
        else:
            created += 1
    return created, skipped


def generate_all(
    *,
    now: Optional[datetime] = None,
    rules: Optional[Iterable[NotificationRule]] = None,
    users=None,
) -> GenerationReport:
    """
    Generate notifications for all active users.

    Args:
        now: Reference time (defaults to timezone.now())
        rules: Rules to run (defaults to every registered rule)
        users: Queryset of users to process (defaults to all active users)

    Returns:
        GenerationReport with created / skipped / failed / purged counts
    """
    now = now or timezone.now()
    rules = list(rules) if rules is not None else get_rules()
    users = users if users is not None else User.objects.filter(is_active=True)
    report = GenerationReport()

    report.purged = purge_expired_notifications(now=now)

    for user in users.order_by('created_at'):
        try:
            with transaction.atomic():
                preferences = get_preferences(user=user)
                enabled = [rule for rule in rules if rule.is_enabled(preferences)]
        except Exception:
            logger.exception("Could not load notification preferences for user %s", user.id)
            report.failures += 1
            continue

        for rule in enabled:
            try:
                with transaction.atomic():
                    created, skipped = apply_rule(rule=rule, user=user, preferences=preferences, now=now)
            except Exception:
                logger.exception("Notification rule %s failed for user %s", rule.notification_type, user.id)
                report.failures += 1
                continue
            report.created += created
            report.skipped += skipped

    logger.info(
        "Notification generation finished: %d created, %d skipped, %d failed, %d purged",
        report.created, report.skipped, report.failures, report.purged,
    )
    return report


@transaction.atomic
def broadcast_system_notification(
    *,
    title: str,
    message: str,
    type: str = NotificationType.SYSTEM,
    action_url: str = '',
    expires_at: Optional[datetime] = None,
) -> int:
    """
    Send an announcement to every active user who has system notifications on.

    Returns:
        Number of notifications created
    """
    recipients = User.objects.filter(is_active=True).exclude(notification_preferences__system_notifications=False)
    now = timezone.now()
    notifications = [
        Notification(
            user=user,
            type=type,
            priority=NotificationPriority.MEDIUM,
            title=title,
            message=message,
            action_url=action_url,
            icon='megaphone',
            expires_at=expires_at,
            created_at=now,
        )
        for user in recipients
    ]
    Notification.objects.bulk_create(notifications)

    logger.info("Broadcast %s notification to %d user(s)", type, len(notifications))
    return len(notifications)
