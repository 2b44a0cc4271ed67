import pytest
from datetime import timedelta
from decimal import Decimal
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone
from apps.accounts.models import User
from apps.notifications.models import Notification, NotificationType, NotificationPriority
from apps.notifications.services import (
    create_notification,
    is_duplicate,
    get_user_notifications,
    get_unread_count,
    mark_notification_read,
    mark_all_read,
    delete_notification,
    purge_expired_notifications,
    get_preferences,
    update_preferences,
    get_rule,
    get_rules,
    sunday_based_weekday,
    NotificationRule,
    generate_all,
    broadcast_system_notification,
)
from apps.notifications.services import generator
from apps.notifications.services.exceptions import NotificationNotFoundError, InvalidPreferenceError
from apps.pours.models import Pour


def _notify(user, **kwargs):
    kwargs.setdefault('type', NotificationType.SYSTEM)
    kwargs.setdefault('title', 'Hello')
    kwargs.setdefault('message', 'World')
    return create_notification(user=user, **kwargs)


def _pour(user, bottle, poured_at, amount='1.00', rating=None, notes=''):
    return Pour.objects.create(
        user=user,
        user_bottle=bottle,
        poured_at=poured_at,
        amount=Decimal(amount),
        rating=Decimal(rating) if rating is not None else None,
        notes=notes,
    )


def _evaluate(notification_type, user, now=None):
    rule = get_rule(notification_type)
    return list(rule.evaluate(user, get_preferences(user=user), now or timezone.now()))


# =============================================================================
# Creation and Deduplication
# =============================================================================

@pytest.mark.django_db
class TestCreateNotification:
    """Tests for create_notification cooldown handling."""

    def test_create(self, notified_user):
        notification = _notify(notified_user, priority=NotificationPriority.HIGH, data={'a': 1})

        assert notification is not None
        assert notification.read is False
        assert notification.priority == NotificationPriority.HIGH
        assert notification.data == {'a': 1}

    def test_duplicate_inside_cooldown(self, notified_user):
        now = timezone.now()
        first = _notify(notified_user, entity_key='bottle-1', cooldown=timedelta(days=7), now=now)
        second = _notify(
            notified_user, entity_key='bottle-1', cooldown=timedelta(days=7), now=now + timedelta(days=3)
        )

        assert first is not None
        assert second is None
        assert Notification.objects.filter(user=notified_user).count() == 1

    def test_fires_again_after_cooldown(self, notified_user):
        now = timezone.now()
        _notify(notified_user, entity_key='bottle-1', cooldown=timedelta(days=7), now=now)
        again = _notify(
            notified_user, entity_key='bottle-1', cooldown=timedelta(days=7), now=now + timedelta(days=8)
        )

        assert again is not None

    def test_different_entity_not_duplicate(self, notified_user):
        _notify(notified_user, entity_key='bottle-1', cooldown=timedelta(days=7))

        assert _notify(notified_user, entity_key='bottle-2', cooldown=timedelta(days=7)) is not None

    def test_no_entity_key_never_deduplicated(self, notified_user):
        _notify(notified_user)
        _notify(notified_user)

        assert Notification.objects.filter(user=notified_user).count() == 2

    def test_no_cooldown_means_once_while_live(self, notified_user):
        now = timezone.now()
        _notify(notified_user, entity_key='pours:1', now=now)

        assert _notify(notified_user, entity_key='pours:1', now=now + timedelta(days=365)) is None

    def test_expired_notification_does_not_block(self, notified_user):
        now = timezone.now()
        _notify(notified_user, entity_key='pours:1', expires_at=now - timedelta(minutes=1), now=now - timedelta(days=1))

        assert not is_duplicate(user=notified_user, type=NotificationType.SYSTEM, entity_key='pours:1', cooldown=None)
        assert _notify(notified_user, entity_key='pours:1', now=now) is not None

    def test_deleted_notification_can_fire_again(self, notified_user):
        first = _notify(notified_user, entity_key='pours:1')
        delete_notification(notification_id=first.id, user=notified_user)

        assert _notify(notified_user, entity_key='pours:1') is not None

    def test_duplicates_are_per_user(self, notified_user, notification_other_user):
        _notify(notified_user, entity_key='inactivity')

        assert _notify(notification_other_user, entity_key='inactivity') is not None


# =============================================================================
# Reading and Housekeeping
# =============================================================================

@pytest.mark.django_db
class TestReadAndHousekeeping:
    """Tests for listing, marking read, deleting and purging."""

    def test_expired_hidden(self, notified_user):
        _notify(notified_user, title='Live')
        _notify(notified_user, title='Old', expires_at=timezone.now() - timedelta(hours=1))

        titles = [n.title for n in get_user_notifications(user=notified_user)]
        assert titles == ['Live']
        assert get_unread_count(user=notified_user) == 1

    def test_newest_first_with_limit(self, notified_user):
        now = timezone.now()
        for hours in (3, 2, 1):
            _notify(notified_user, title=f'{hours}h', now=now - timedelta(hours=hours))

        titles = [n.title for n in get_user_notifications(user=notified_user, limit=2)]
        assert titles == ['1h', '2h']

    def test_unread_only(self, notified_user):
        read = _notify(notified_user, title='Read')
        _notify(notified_user, title='Unread')
        mark_notification_read(notification_id=read.id, user=notified_user)

        titles = [n.title for n in get_user_notifications(user=notified_user, unread_only=True)]
        assert titles == ['Unread']

    def test_mark_read_other_user(self, notified_user, notification_other_user):
        notification = _notify(notified_user)

        with pytest.raises(NotificationNotFoundError):
            mark_notification_read(notification_id=notification.id, user=notification_other_user)

    def test_mark_all_read(self, notified_user, notification_other_user):
        _notify(notified_user)
        _notify(notified_user)
        _notify(notification_other_user)

        assert mark_all_read(user=notified_user) == 2
        assert get_unread_count(user=notified_user) == 0
        assert get_unread_count(user=notification_other_user) == 1

    def test_delete_only_own(self, notified_user, notification_other_user):
        notification = _notify(notified_user)

        with pytest.raises(NotificationNotFoundError):
            delete_notification(notification_id=notification.id, user=notification_other_user)

        delete_notification(notification_id=notification.id, user=notified_user)
        assert not Notification.objects.filter(id=notification.id).exists()

    def test_purge_expired(self, notified_user):
        _notify(notified_user, expires_at=timezone.now() - timedelta(days=1))
        _notify(notified_user, expires_at=timezone.now() + timedelta(days=1))
        _notify(notified_user)

        assert purge_expired_notifications() == 1
        assert Notification.objects.filter(user=notified_user).count() == 2


# =============================================================================
# Preferences
# =============================================================================

@pytest.mark.django_db
class TestPreferences:
    """Tests for notification preferences."""

    def test_defaults_created_lazily(self, notified_user):
        preferences = get_preferences(user=notified_user)

        assert preferences.low_stock_threshold == 25
        assert preferences.pour_reminder_delay_hours == 24
        assert preferences.weekly_insight_day == 0
        assert preferences.system_notifications is True

    def test_update(self, notified_user):
        preferences = update_preferences(user=notified_user, low_stock_threshold=40, achievements=False)

        assert preferences.low_stock_threshold == 40
        assert preferences.achievements is False
        assert get_preferences(user=notified_user).low_stock_threshold == 40

    @pytest.mark.parametrize('field,value', [
        ('low_stock_threshold', 4),
        ('low_stock_threshold', 51),
        ('pour_reminder_delay_hours', 0),
        ('pour_reminder_delay_hours', 169),
        ('weekly_insight_day', 7),
    ])
    def test_out_of_range(self, notified_user, field, value):
        with pytest.raises(InvalidPreferenceError):
            update_preferences(user=notified_user, **{field: value})


# =============================================================================
# Rules
# =============================================================================

@pytest.mark.django_db
class TestRuleRegistry:

    def test_all_rules_registered(self):
        types = {rule.notification_type for rule in get_rules()}

        assert types == {
            NotificationType.LOW_STOCK,
            NotificationType.POUR_REMINDER,
            NotificationType.INACTIVITY_REMINDER,
            NotificationType.WEEKLY_INSIGHT,
            NotificationType.ACHIEVEMENT,
        }

    def test_unknown_rule(self):
        with pytest.raises(KeyError):
            get_rule('nonexistent')


@pytest.mark.django_db
class TestLowStockRule:

    def test_low_bottle(self, notified_user, make_bottle):
        bottle = make_bottle(open_date=timezone.now(), fill_level=Decimal('12.40'))

        candidates = _evaluate(NotificationType.LOW_STOCK, notified_user)

        assert len(candidates) == 1
        assert candidates[0].entity_key == str(bottle.id)
        assert candidates[0].title == 'Low Stock Alert'
        assert candidates[0].message == "Blanton's Original is running low (12% remaining)"

    def test_ignores_full_empty_and_sealed(self, notified_user, make_bottle):
        make_bottle(open_date=timezone.now(), fill_level=Decimal('60'))
        make_bottle(open_date=timezone.now(), fill_level=Decimal('0'))
        make_bottle(fill_level=Decimal('10'))

        assert _evaluate(NotificationType.LOW_STOCK, notified_user) == []

    def test_user_threshold(self, notified_user, make_bottle):
        make_bottle(open_date=timezone.now(), fill_level=Decimal('30'))
        assert _evaluate(NotificationType.LOW_STOCK, notified_user) == []

        update_preferences(user=notified_user, low_stock_threshold=40)
        assert len(_evaluate(NotificationType.LOW_STOCK, notified_user)) == 1


@pytest.mark.django_db
class TestPourReminderRule:

    def test_unrated_pour_after_delay(self, notified_user, opened_bottle):
        now = timezone.now()
        pour = _pour(notified_user, opened_bottle, now - timedelta(days=2))

        candidates = _evaluate(NotificationType.POUR_REMINDER, notified_user, now)

        assert [c.entity_key for c in candidates] == [str(pour.id)]
        assert candidates[0].title == 'Rate Your Pour'

    def test_skips_rated_recent_and_old_pours(self, notified_user, opened_bottle):
        now = timezone.now()
        _pour(notified_user, opened_bottle, now - timedelta(days=2), rating='7.0')
        _pour(notified_user, opened_bottle, now - timedelta(days=2), notes='Caramel')
        _pour(notified_user, opened_bottle, now - timedelta(hours=3))
        _pour(notified_user, opened_bottle, now - timedelta(days=10))

        assert _evaluate(NotificationType.POUR_REMINDER, notified_user, now) == []


@pytest.mark.django_db
class TestInactivityRule:

    def test_idle_user(self, notified_user, opened_bottle):
        now = timezone.now()
        _pour(notified_user, opened_bottle, now - timedelta(days=20))

        candidates = _evaluate(NotificationType.INACTIVITY_REMINDER, notified_user, now)

        assert len(candidates) == 1
        assert candidates[0].entity_key == 'inactivity'
        assert candidates[0].data == {'idle_days': 20, 'open_bottles': 1}

    def test_recent_pour(self, notified_user, opened_bottle):
        _pour(notified_user, opened_bottle, timezone.now() - timedelta(days=2))

        assert _evaluate(NotificationType.INACTIVITY_REMINDER, notified_user) == []

    def test_never_poured_uses_open_date(self, notified_user, opened_bottle):
        candidates = _evaluate(NotificationType.INACTIVITY_REMINDER, notified_user)

        assert len(candidates) == 1
        assert candidates[0].data['idle_days'] == 30

    def test_no_open_bottles(self, notified_user, make_bottle):
        make_bottle()

        assert _evaluate(NotificationType.INACTIVITY_REMINDER, notified_user) == []


@pytest.mark.django_db
class TestWeeklyInsightRule:

    def test_summary_on_chosen_day(self, notified_user, opened_bottle):
        now = timezone.now()
        update_preferences(user=notified_user, weekly_insight_day=sunday_based_weekday(now))
        _pour(notified_user, opened_bottle, now - timedelta(days=1), amount='1.50', rating='8.0')
        _pour(notified_user, opened_bottle, now - timedelta(days=2), amount='2.00', rating='9.0')
        _pour(notified_user, opened_bottle, now - timedelta(days=9), amount='2.00')

        candidates = _evaluate(NotificationType.WEEKLY_INSIGHT, notified_user, now)

        year, week, _ = timezone.localtime(now).isocalendar()
        assert len(candidates) == 1
        assert candidates[0].entity_key == f'{year}-W{week:02d}'
        assert candidates[0].message == '2 pours totaling 3.5oz. Average rating: 8.5/10. Favorite: Bourbon'

    def test_other_day(self, notified_user, opened_bottle):
        now = timezone.now()
        update_preferences(user=notified_user, weekly_insight_day=(sunday_based_weekday(now) + 1) % 7)
        _pour(notified_user, opened_bottle, now - timedelta(days=1))

        assert _evaluate(NotificationType.WEEKLY_INSIGHT, notified_user, now) == []

    def test_no_pours(self, notified_user):
        now = timezone.now()
        update_preferences(user=notified_user, weekly_insight_day=sunday_based_weekday(now))

        assert _evaluate(NotificationType.WEEKLY_INSIGHT, notified_user, now) == []


@pytest.mark.django_db
class TestAchievementRule:

    def test_first_pour(self, notified_user, opened_bottle):
        _pour(notified_user, opened_bottle, timezone.now())

        candidates = _evaluate(NotificationType.ACHIEVEMENT, notified_user)

        assert [c.entity_key for c in candidates] == ['pours:1']
        assert candidates[0].title == 'First Pour!'
        assert candidates[0].priority == NotificationPriority.HIGH

    def test_only_highest_milestone(self, notified_user, opened_bottle):
        for hours in range(12):
            _pour(notified_user, opened_bottle, timezone.now() - timedelta(hours=hours))

        candidates = _evaluate(NotificationType.ACHIEVEMENT, notified_user)

        assert [c.entity_key for c in candidates] == ['pours:10']

    def test_collection_milestone(self, notified_user, make_bottle):
        for _ in range(10):
            make_bottle()

        candidates = _evaluate(NotificationType.ACHIEVEMENT, notified_user)

        assert [c.entity_key for c in candidates] == ['bottles:10']


# =============================================================================
# Generator
# =============================================================================

class ExplodingRule(NotificationRule):
    notification_type = NotificationType.SYSTEM

    def evaluate(self, user, preferences, now):
        raise RuntimeError('boom')


@pytest.mark.django_db
class TestGenerateAll:
    """Tests for the scheduled generator."""

    def test_creates_then_deduplicates(self, notified_user, make_bottle):
        make_bottle(open_date=timezone.now(), fill_level=Decimal('10'))
        users = User.objects.filter(id=notified_user.id)
        rules = [get_rule(NotificationType.LOW_STOCK)]

        first = generate_all(rules=rules, users=users)
        second = generate_all(rules=rules, users=users)

        assert (first.created, first.skipped) == (1, 0)
        assert (second.created, second.skipped) == (0, 1)
        assert Notification.objects.filter(user=notified_user, type=NotificationType.LOW_STOCK).count() == 1

    def test_disabled_preference(self, notified_user, make_bottle):
        make_bottle(open_date=timezone.now(), fill_level=Decimal('10'))
        update_preferences(user=notified_user, low_stock_alerts=False)

        report = generate_all(rules=[get_rule(NotificationType.LOW_STOCK)], users=User.objects.filter(id=notified_user.id))

        assert report.created == 0
        assert not Notification.objects.filter(user=notified_user).exists()

    def test_failing_rule_does_not_stop_run(self, notified_user, make_bottle):
        make_bottle(open_date=timezone.now(), fill_level=Decimal('10'))

        report = generate_all(
            rules=[ExplodingRule(), get_rule(NotificationType.LOW_STOCK)],
            users=User.objects.filter(id=notified_user.id),
        )

        assert report.failures == 1
        assert report.created == 1

    def test_failing_user_does_not_stop_run(self, notified_user, notification_other_user, make_bottle, monkeypatch):
        make_bottle(user=notification_other_user, open_date=timezone.now(), fill_level=Decimal('10'))
        real_get_preferences = generator.get_preferences

        def broken_for_first_user(*, user):
            if user.id == notified_user.id:
                raise RuntimeError('preferences unavailable')
            return real_get_preferences(user=user)

        monkeypatch.setattr(generator, 'get_preferences', broken_for_first_user)

        report = generate_all(
            rules=[get_rule(NotificationType.LOW_STOCK)],
            users=User.objects.filter(id__in=[notified_user.id, notification_other_user.id]),
        )

        assert report.failures == 1
        assert report.created == 1
        assert Notification.objects.filter(user=notification_other_user, type=NotificationType.LOW_STOCK).count() == 1
        assert not Notification.objects.filter(user=notified_user).exists()

    def test_purges_expired(self, notified_user):
        _notify(notified_user, expires_at=timezone.now() - timedelta(days=1))

        report = generate_all(rules=[], users=User.objects.filter(id=notified_user.id))

        assert report.purged == 1
        assert report.as_dict() == {'created': 0, 'skipped': 0, 'failures': 0, 'purged': 1}

    def test_skips_inactive_users(self, notified_user, make_bottle):
        make_bottle(open_date=timezone.now(), fill_level=Decimal('10'))
        notified_user.is_active = False
        notified_user.save()

        report = generate_all(rules=[get_rule(NotificationType.LOW_STOCK)])

        assert report.created == 0


@pytest.mark.django_db
class TestBroadcast:

    def test_respects_system_preference(self, notified_user, notification_other_user):
        update_preferences(user=notification_other_user, system_notifications=False)

        sent = broadcast_system_notification(title='Maintenance', message='Back soon')

        assert sent == 1
        assert Notification.objects.filter(user=notified_user, type=NotificationType.SYSTEM).count() == 1
        assert not Notification.objects.filter(user=notification_other_user).exists()


@pytest.mark.django_db
class TestGenerateNotificationsCommand:

    def test_unknown_rule(self):
        with pytest.raises(CommandError):
            call_command('generate_notifications', '--rule', 'nonexistent')

    def test_single_rule(self, notified_user, make_bottle):
        make_bottle(open_date=timezone.now(), fill_level=Decimal('10'))

        call_command('generate_notifications', '--rule', NotificationType.LOW_STOCK)

        assert Notification.objects.filter(user=notified_user, type=NotificationType.LOW_STOCK).count() == 1

    def test_broadcast(self, notified_user):
        call_command('generate_notifications', '--broadcast', 'New feature', 'Pour sessions are here')

        notification = Notification.objects.get(user=notified_user)
        assert notification.title == 'New feature'
