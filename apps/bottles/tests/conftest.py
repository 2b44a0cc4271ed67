import pytest
from decimal import Decimal
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
def collector(db):
    """Create and return the collection owner."""
    return User.objects.create_user(
        email='collector@example.com',
        password='TestPass123!',
        display_name='Collector',
        username='collector',
    )


@pytest.fixture
def bottle_other_user(db):
    """Create and return a user with their own collection."""
    return User.objects.create_user(
        email='neighbour@example.com',
        password='TestPass123!',
        display_name='Neighbour',
        username='neighbour',
    )


@pytest.fixture
def authenticated_client(api_client, collector):
    """Return API client authenticated as the collector."""
    refresh = RefreshToken.for_user(collector)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def master_bottle(db, collector):
    """Create and return a catalogue bottle."""
    return MasterBottle.objects.create(
        name='Eagle Rare 10',
        brand='Eagle Rare',
        distillery='Buffalo Trace',
        category=SpiritCategory.BOURBON,
        age=10,
        proof=Decimal('90.0'),
        msrp=Decimal('39.99'),
        created_by=collector,
    )


@pytest.fixture
def second_master_bottle(db):
    """Create and return another catalogue bottle."""
    return MasterBottle.objects.create(
        name='Lagavulin 16',
        brand='Lagavulin',
        distillery='Lagavulin',
        category=SpiritCategory.SCOTCH,
        age=16,
    )


@pytest.fixture
def unopened_bottle(db, collector, master_bottle):
    """Create and return an unopened bottle owned by the collector."""
    return UserBottle.objects.create(
        user=collector,
        master_bottle=master_bottle,
        purchase_price=Decimal('45.00'),
        location_area='Cabinet',
        location_bin='A1',
    )


@pytest.fixture
def opened_bottle(db, collector, second_master_bottle):
    """Create and return an opened bottle owned by the collector."""
    return UserBottle.objects.create(
        user=collector,
        master_bottle=second_master_bottle,
        purchase_price=Decimal('100.00'),
        open_date=timezone.now(),
    )


@pytest.fixture
def other_users_bottle(db, bottle_other_user, master_bottle):
    """Create and return a bottle owned by another user."""
    return UserBottle.objects.create(user=bottle_other_user, master_bottle=master_bottle)
