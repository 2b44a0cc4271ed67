import pytest
from datetime import timedelta
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
def pour_user(db):
    """Create and return the user who pours."""
    return User.objects.create_user(
        email='pourer@example.com',
        password='TestPass123!',
        display_name='Pourer',
        username='pourer',
    )


@pytest.fixture
def pour_other_user(db):
    """Create and return a second user."""
    return User.objects.create_user(
        email='stranger@example.com',
        password='TestPass123!',
        display_name='Stranger',
        username='stranger',
    )


@pytest.fixture
def authenticated_client(api_client, pour_user):
    """Return API client authenticated as the pouring user."""
    refresh = RefreshToken.for_user(pour_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def catalogue_bottle(db):
    """Create and return a catalogue bottle."""
    return MasterBottle.objects.create(
        name='Four Roses Single Barrel',
        brand='Four Roses',
        distillery='Four Roses',
        category=SpiritCategory.BOURBON,
    )


@pytest.fixture
def open_bottle(db, pour_user, catalogue_bottle):
    """Opened bottle bought for 50.72 (2.00 per ounce)."""
    return UserBottle.objects.create(
        user=pour_user,
        master_bottle=catalogue_bottle,
        purchase_price=Decimal('50.72'),
        open_date=timezone.now() - timedelta(days=30),
    )


@pytest.fixture
def sealed_bottle(db, pour_user, catalogue_bottle):
    """Unopened bottle."""
    return UserBottle.objects.create(user=pour_user, master_bottle=catalogue_bottle)


@pytest.fixture
def strangers_bottle(db, pour_other_user, catalogue_bottle):
    """Opened bottle owned by another user."""
    return UserBottle.objects.create(
        user=pour_other_user,
        master_bottle=catalogue_bottle,
        open_date=timezone.now(),
    )
