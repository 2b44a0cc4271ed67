import pytest
from datetime import timedelta
from decimal import Decimal
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from apps.notifications.models import Notification, NotificationType
from apps.notifications.services import create_notification


def _notify(user, **kwargs):
    kwargs.setdefault('type', NotificationType.SYSTEM)
    kwargs.setdefault('title', 'Hello')
    kwargs.setdefault('message', 'World')
    return create_notification(user=user, **kwargs)


# =============================================================================
# Notification API Tests
# =============================================================================

@pytest.mark.django_db
class TestNotificationListAPI:
    """Tests for /api/notifications/"""

    def test_requires_auth(self, api_client):
        response = api_client.get(reverse('notifications:notification-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_list(self, authenticated_client, notified_user, notification_other_user):
        _notify(notified_user, title='Mine')
        _notify(notified_user, title='Gone', expires_at=timezone.now() - timedelta(hours=1))
        _notify(notification_other_user, title='Theirs')

        response = authenticated_client.get(reverse('notifications:notification-list'))

        assert response.status_code == status.HTTP_200_OK
        assert [n['title'] for n in response.data['notifications']] == ['Mine']
        assert response.data['unread_count'] == 1

    def test_unread_and_limit(self, authenticated_client, notified_user):
        now = timezone.now()
        for hours in (3, 2, 1):
            _notify(notified_user, title=f'{hours}h', now=now - timedelta(hours=hours))
        Notification.objects.filter(title='1h').update(read=True)

        response = authenticated_client.get(
            reverse('notifications:notification-list'), {'unread': 'true', 'limit': '1'}
        )

        assert [n['title'] for n in response.data['notifications']] == ['2h']
        assert response.data['unread_count'] == 2

    def test_invalid_limit(self, authenticated_client):
        response = authenticated_client.get(reverse('notifications:notification-list'), {'limit': 'many'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {'error': 'Invalid limit'}

    def test_create(self, authenticated_client, notified_user):
        payload = {
            'type': NotificationType.BOTTLE_RATING,
            'title': 'Rate it',
            'message': 'How was the bottle?',
            'entity_key': 'bottle-1',
        }

        response = authenticated_client.post(reverse('notifications:notification-list'), payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['type'] == NotificationType.BOTTLE_RATING
        assert Notification.objects.filter(user=notified_user).count() == 1

    def test_create_duplicate(self, authenticated_client, notified_user):
        payload = {
            'type': NotificationType.BOTTLE_RATING,
            'title': 'Rate it',
            'message': 'How was the bottle?',
            'entity_key': 'bottle-1',
        }
        url = reverse('notifications:notification-list')
        authenticated_client.post(url, payload, format='json')

        response = authenticated_client.post(url, payload, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'created': False}
        assert Notification.objects.filter(user=notified_user).count() == 1

    def test_create_invalid_type(self, authenticated_client):
        response = authenticated_client.post(reverse('notifications:notification-list'), {
            'type': 'party',
            'title': 'x',
            'message': 'y',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'type' in response.data


@pytest.mark.django_db
class TestNotificationActionsAPI:
    """Tests for read / read-all / delete"""

    def test_mark_read(self, authenticated_client, notified_user):
        notification = _notify(notified_user)

        url = reverse('notifications:notification-read', kwargs={'notification_id': notification.id})
        response = authenticated_client.patch(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['read'] is True

    def test_mark_read_other_users(self, authenticated_client, notification_other_user):
        notification = _notify(notification_other_user)

        url = reverse('notifications:notification-read', kwargs={'notification_id': notification.id})
        response = authenticated_client.patch(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data == {'error': 'Notification not found'}

    def test_malformed_id(self, authenticated_client):
        url = reverse('notifications:notification-read', kwargs={'notification_id': 'not-a-uuid'})
        response = authenticated_client.patch(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_mark_all_read(self, authenticated_client, notified_user):
        _notify(notified_user)
        _notify(notified_user)

        response = authenticated_client.patch(reverse('notifications:notification-read-all'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'updated': 2}

    def test_delete(self, authenticated_client, notified_user):
        notification = _notify(notified_user)

        url = reverse('notifications:notification-delete', kwargs={'notification_id': notification.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Notification.objects.filter(id=notification.id).exists()

    def test_delete_other_users(self, authenticated_client, notification_other_user):
        notification = _notify(notification_other_user)

        url = reverse('notifications:notification-delete', kwargs={'notification_id': notification.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert Notification.objects.filter(id=notification.id).exists()


@pytest.mark.django_db
class TestPreferencesAPI:
    """Tests for /api/notifications/preferences/"""

    def test_get_defaults(self, authenticated_client):
        response = authenticated_client.get(reverse('notifications:notification-preferences'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['low_stock_threshold'] == 25
        assert response.data['weekly_insights'] is True

    def test_partial_update(self, authenticated_client):
        response = authenticated_client.put(
            reverse('notifications:notification-preferences'),
            {'pour_reminders': False, 'weekly_insight_day': 5},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['pour_reminders'] is False
        assert response.data['weekly_insight_day'] == 5
        assert response.data['low_stock_alerts'] is True

    def test_out_of_range(self, authenticated_client):
        response = authenticated_client.put(
            reverse('notifications:notification-preferences'),
            {'low_stock_threshold': 90},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Cron API Tests
# =============================================================================

@pytest.mark.django_db
class TestCronNotifications:
    """Tests for /api/cron/notifications/"""

    def test_requires_secret(self, api_client):
        response = api_client.post(reverse('notifications:cron-notifications'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data == {'error': 'Unauthorized'}

    def test_user_token_is_not_enough(self, authenticated_client):
        response = authenticated_client.post(reverse('notifications:cron-notifications'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_runs_generator(self, api_client, notified_user, make_bottle):
        make_bottle(open_date=timezone.now(), fill_level=Decimal('10'))

        api_client.credentials(HTTP_AUTHORIZATION='Bearer test-cron-secret')
        response = api_client.post(reverse('notifications:cron-notifications'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['failures'] == 0
        assert response.data['created'] >= 1
        assert Notification.objects.filter(user=notified_user, type=NotificationType.LOW_STOCK).exists()
