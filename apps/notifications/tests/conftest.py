import pytest
from datetime import timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.bottles.models import MasterBottle, UserBottle, SpiritCategory


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def notified_user(db):
    """Create and return the user receiving notifications."""
    return User.objects.create_user(
        email='notified@example.com',
        password='TestPass123!',
        display_name='Notified',
        username='notified',
    )


@pytest.fixture
def notification_other_user(db):
    """Create and return a second user."""
    return User.objects.create_user(
        email='bystander@example.com',
        password='TestPass123!',
        display_name='Bystander',
        username='bystander',
    )


@pytest.fixture
def authenticated_client(api_client, notified_user):
    """Return API client authenticated as the notified user."""
    refresh = RefreshToken.for_user(notified_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def bourbon(db):
    """Create and return a catalogue bottle."""
    return MasterBottle.objects.create(
        name='Blanton\'s Original',
        brand='Blanton\'s',
        distillery='Buffalo Trace',
        category=SpiritCategory.BOURBON,
    )


@pytest.fixture
def make_bottle(db, notified_user, bourbon):
    """Factory for bottles in the notified user's collection."""
    def _make(**kwargs):
        kwargs.setdefault('user', notified_user)
        kwargs.setdefault('master_bottle', bourbon)
        return UserBottle.objects.create(**kwargs)
    return _make


@pytest.fixture
def opened_bottle(make_bottle):
    """Opened, full bottle opened 30 days ago."""
    return make_bottle(open_date=timezone.now() - timedelta(days=30))
