import pytest
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.bottles.models import MasterBottle, UserBottle, SpiritCategory
from apps.pours.models import Pour
from apps.social.models import Friendship, FriendshipStatus


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def alice(db):
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        display_name='Alice',
        username='alice',
    )


@pytest.fixture
def bob(db):
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        display_name='Bob',
        username='bob',
    )


@pytest.fixture
def carol(db):
    """User who has not picked a username yet."""
    return User.objects.create_user(
        email='carol@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def authenticated_client(api_client, alice):
    """Return API client authenticated as Alice."""
    refresh = RefreshToken.for_user(alice)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def friendship(db, alice, bob):
    """Accepted friendship between Alice and Bob."""
    return Friendship.objects.create(requester=alice, recipient=bob, status=FriendshipStatus.ACCEPTED)


@pytest.fixture
def bobs_bottle(db, bob):
    master = MasterBottle.objects.create(
        name='Redbreast 12',
        brand='Redbreast',
        distillery='Midleton',
        category=SpiritCategory.IRISH,
    )
    return UserBottle.objects.create(user=bob, master_bottle=master, open_date=timezone.now())


@pytest.fixture
def bobs_pour(db, bob, bobs_bottle):
    return Pour.objects.create(
        user=bob,
        user_bottle=bobs_bottle,
        poured_at=timezone.now(),
        amount=Decimal('1.50'),
        rating=Decimal('8.0'),
    )
