"""
Notification rules evaluated by the scheduled generator.

Each rule looks at one user's data and yields candidate notifications.
Rules never write; the generator inserts candidates through
``create_notification`` with the rule's cooldown.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings
from django.db.models import Max, Min
from django.utils import timezone

from apps.accounts.models import User
from apps.bottles.models import UserBottle, BottleStatus
from apps.pours.models import Pour
from ..models import NotificationType, NotificationPriority, NotificationPreferences

logger = logging.getLogger(__name__)

_rules: dict[str, 'NotificationRule'] = {}


@dataclass
class Candidate:
    """A notification a rule wants to send."""
    entity_key: str
    title: str
    message: str
    priority: str = NotificationPriority.MEDIUM
    data: dict = field(default_factory=dict)
    action_url: str = ''
    icon: str = ''
    expires_at: Optional[datetime] = None


class NotificationRule:
    """
    Base class for generator rules.

    Subclasses set ``notification_type`` and ``preference_flag`` (the
    boolean on NotificationPreferences that switches the rule off) and
    implement ``evaluate``. ``cooldown`` of None means once per entity.
    """

    notification_type: str = ''
    preference_flag: Optional[str] = None

    @property
    def cooldown(self) -> Optional[timedelta]:
        return None

    def is_enabled(self, preferences: NotificationPreferences) -> bool:
        if self.preference_flag is None:
            return True
        return getattr(preferences, self.preference_flag)

    def evaluate(
        self,
        user: User,
        preferences: NotificationPreferences,
        now: datetime,
    ) -> Iterable[Candidate]:
        raise NotImplementedError


def register_rule(cls):
    """Class decorator adding a rule to the generator registry."""
    _rules[cls.notification_type] = cls()
    logger.debug("Registered notification rule: %s", cls.notification_type)
    return cls


def get_rules() -> list[NotificationRule]:
    """Registered rules in registration order."""
    return list(_rules.values())


def get_rule(notification_type: str) -> NotificationRule:
    """Raises KeyError if no rule is registered for the type."""
    if notification_type not in _rules:
        raise KeyError(f"Unknown notification rule: {notification_type}. Available: {list(_rules)}")
    return _rules[notification_type]


def sunday_based_weekday(moment: datetime) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6."""
    return (timezone.localtime(moment).weekday() + 1) % 7


@register_rule
class LowStockRule(NotificationRule):
    """Opened bottles that are nearly empty."""

    notification_type = NotificationType.LOW_STOCK
    preference_flag = 'low_stock_alerts'

    @property
    def cooldown(self):
        return timedelta(days=settings.NOTIFICATIONS['LOW_STOCK_COOLDOWN_DAYS'])

    def evaluate(self, user, preferences, now):
        bottles = (
            UserBottle.objects
            .filter(
                user=user,
                status=BottleStatus.OPENED,
                fill_level__gt=0,
                fill_level__lt=preferences.low_stock_threshold,
            )
            .select_related('master_bottle')
        )
        for bottle in bottles:
            fill = bottle.fill_level.quantize(Decimal('1'))
            yield Candidate(
                entity_key=str(bottle.id),
                title='Low Stock Alert',
                message=f"{bottle.master_bottle.name} is running low ({fill}% remaining)",
                priority=NotificationPriority.MEDIUM,
                data={'bottle_id': str(bottle.id), 'fill_level': str(bottle.fill_level)},
                action_url=f'/bottles/{bottle.id}',
                icon='bottle',
            )


@register_rule
class PourReminderRule(NotificationRule):
    """Recent pours still missing a rating and notes."""

    notification_type = NotificationType.POUR_REMINDER
    preference_flag = 'pour_reminders'

    def evaluate(self, user, preferences, now):
        lookback = timedelta(days=settings.NOTIFICATIONS['POUR_REMINDER_LOOKBACK_DAYS'])
        delay = timedelta(hours=preferences.pour_reminder_delay_hours)

        pours = (
            Pour.objects
            .filter(
                user=user,
                rating__isnull=True,
                notes='',
                poured_at__lte=now - delay,
                poured_at__gte=now - lookback,
            )
            .select_related('user_bottle__master_bottle')
        )
        for pour in pours:
            name = pour.user_bottle.master_bottle.name
            yield Candidate(
                entity_key=str(pour.id),
                title='Rate Your Pour',
                message=f"How was the {name}? Add your rating and tasting notes.",
                priority=NotificationPriority.LOW,
                data={'pour_id': str(pour.id), 'bottle_id': str(pour.user_bottle_id)},
                action_url=f'/pours/{pour.id}/rate',
                icon='glass',
            )


@register_rule
class InactivityRule(NotificationRule):
    """Open bottles but no pours for a while."""

    notification_type = NotificationType.INACTIVITY_REMINDER
    preference_flag = 'inactivity_reminders'

    @property
    def cooldown(self):
        return timedelta(days=settings.NOTIFICATIONS['INACTIVITY_COOLDOWN_DAYS'])

    def evaluate(self, user, preferences, now):
        opened = UserBottle.objects.filter(user=user, status=BottleStatus.OPENED)
        open_count = opened.count()
        if not open_count:
            return

        last_activity = Pour.objects.filter(user=user).aggregate(last=Max('poured_at'))['last']
        if last_activity is None:
            last_activity = opened.aggregate(first=Min('open_date'))['first']
        if last_activity is None:
            return

        idle_days = (now - last_activity).days
        if idle_days < settings.NOTIFICATIONS['INACTIVITY_DAYS']:
            return

        yield Candidate(
            entity_key='inactivity',
            title='Time for a Pour?',
            message=f"It's been {idle_days} days since your last pour. You have {open_count} open bottle(s) waiting.",
            priority=NotificationPriority.LOW,
            data={'idle_days': idle_days, 'open_bottles': open_count},
            action_url='/collection?status=opened',
            icon='clock',
        )


@register_rule
class WeeklyInsightRule(NotificationRule):
    """Weekly summary on the user's chosen day."""

    notification_type = NotificationType.WEEKLY_INSIGHT
    preference_flag = 'weekly_insights'

    @property
    def cooldown(self):
        return timedelta(days=7)

    def evaluate(self, user, preferences, now):
        if sunday_based_weekday(now) != preferences.weekly_insight_day:
            return

        since = now - timedelta(days=settings.NOTIFICATIONS['WEEKLY_INSIGHT_LOOKBACK_DAYS'])
        pours = list(
            Pour.objects
            .filter(user=user, poured_at__gt=since, poured_at__lte=now)
            .select_related('user_bottle__master_bottle')
        )
        if not pours:
            return

        total_amount = sum((pour.amount for pour in pours), Decimal('0'))
        ratings = [pour.rating for pour in pours if pour.rating is not None]
        average_rating = sum(ratings) / len(ratings) if ratings else None
        categories = Counter(pour.user_bottle.master_bottle.category for pour in pours)
        favourite_category = categories.most_common(1)[0][0]

        parts = [f"{len(pours)} pours totaling {total_amount:.1f}oz"]
        if average_rating is not None:
            parts.append(f"Average rating: {average_rating:.1f}/10")
        parts.append(f"Favorite: {favourite_category}")

        year, week, _ = timezone.localtime(now).isocalendar()
        yield Candidate(
            entity_key=f'{year}-W{week:02d}',
            title='Your Weekly Whiskey Insights',
            message='. '.join(parts),
            priority=NotificationPriority.LOW,
            data={
                'total_pours': len(pours),
                'total_amount': str(total_amount),
                'average_rating': str(average_rating.quantize(Decimal('0.1'))) if average_rating is not None else None,
                'favorite_category': favourite_category,
            },
            action_url='/analytics',
            icon='chart',
        )


@register_rule
class AchievementRule(NotificationRule):
    """Pour count and collection size milestones. Only the highest reached milestone is announced."""

    notification_type = NotificationType.ACHIEVEMENT
    preference_flag = 'achievements'

    def evaluate(self, user, preferences, now):
        pour_count = Pour.objects.filter(user=user).count()
        milestone = self._highest_reached(settings.NOTIFICATIONS['ACHIEVEMENT_POUR_MILESTONES'], pour_count)
        if milestone:
            yield Candidate(
                entity_key=f'pours:{milestone}',
                title='First Pour!' if milestone == 1 else f'{milestone} Pours Logged',
                message=(
                    "You logged your first pour. Cheers!" if milestone == 1
                    else f"You've logged {milestone} pours. Cheers!"
                ),
                priority=NotificationPriority.HIGH,
                data={'achievement_type': 'pours', 'milestone': milestone},
                action_url='/profile/achievements',
                icon='trophy',
            )

        bottle_count = UserBottle.objects.filter(user=user).count()
        milestone = self._highest_reached(settings.NOTIFICATIONS['ACHIEVEMENT_COLLECTION_MILESTONES'], bottle_count)
        if milestone:
            yield Candidate(
                entity_key=f'bottles:{milestone}',
                title=f'{milestone} Bottle Collection',
                message=f"Your collection has reached {milestone} bottles.",
                priority=NotificationPriority.HIGH,
                data={'achievement_type': 'bottles', 'milestone': milestone},
                action_url='/profile/achievements',
                icon='trophy',
            )

    @staticmethod
    def _highest_reached(milestones, count):
        reached = [milestone for milestone in milestones if milestone <= count]
        return max(reached) if reached else None
