"""
Management command to create sample data for testing the API.

Usage:
    python manage.py create_sample_data
    python manage.py create_sample_data --clear

This creates:
- 4 users (admin, alice, bob, charlie)
- 8 catalogue bottles
- Collections for alice and bob, some bottles opened
- A few weeks of pours, clustered into sessions
- Friendships (alice & bob accepted, charlie -> alice pending)
- Notifications from one generator run
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from decimal import Decimal
from datetime import timedelta
import random

from apps.accounts.models import User, Visibility
from apps.bottles.models import MasterBottle, UserBottle, SpiritCategory
from apps.notifications.models import Notification, NotificationPreferences
from apps.notifications.services import generate_all
from apps.pours.models import Pour, PourSession, PourLocation
from apps.pours.services import log_pour
from apps.social.models import Friendship, FriendshipStatus, PourCheer

SAMPLE_EMAILS = ['admin@example.com', 'alice@example.com', 'bob@example.com', 'charlie@example.com']


class Command(BaseCommand):
    help = 'Create sample data for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing sample data before creating new sample data',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=42,
            help='Random seed for pour amounts and ratings',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.rng = random.Random(options['seed'])
        self.stdout.write('Creating sample data...')

        users = self.create_users()
        catalogue = self.create_catalogue(users['admin'])
        collections = self.create_collections(users, catalogue)
        self.create_pours(users, collections)
        self.create_friendships(users)
        created = self.create_notifications(users)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write(f'  {created} notification(s) generated')
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (superuser)')
        self.stdout.write('  alice@example.com / password123')
        self.stdout.write('  bob@example.com / password123')
        self.stdout.write('  charlie@example.com / password123')

    def clear_data(self):
        """Delete the sample users and everything they own."""
        users = User.objects.filter(email__in=SAMPLE_EMAILS)
        PourCheer.objects.filter(user__in=users).delete()
        Friendship.objects.filter(requester__in=users).delete()
        Friendship.objects.filter(recipient__in=users).delete()
        Notification.objects.filter(user__in=users).delete()
        NotificationPreferences.objects.filter(user__in=users).delete()
        Pour.objects.filter(user__in=users).delete()
        PourSession.objects.filter(user__in=users).delete()
        UserBottle.objects.filter(user__in=users).delete()
        MasterBottle.objects.filter(created_by__in=users, user_bottles__isnull=True).delete()
        users.delete()

    def create_users(self):
        """Create test users."""
        self.stdout.write('  Creating users...')

        user_data = [
            ('admin', 'admin@example.com', 'Admin User', 'admin123', {'is_staff': True, 'is_superuser': True}),
            ('alice', 'alice@example.com', 'Alice Barrel', 'password123', {'show_collection': Visibility.PUBLIC}),
            ('bob', 'bob@example.com', 'Bob Bourbon', 'password123', {}),
            ('charlie', 'charlie@example.com', 'Charlie Cask', 'password123', {'show_pours': Visibility.PRIVATE}),
        ]

        users = {}
        for username, email, display_name, password, extra in user_data:
            user, _ = User.objects.get_or_create(
                email=email,
                defaults={'username': username, 'display_name': display_name, **extra},
            )
            user.set_password(password)
            user.save()
            users[username] = user

        return users

    def create_catalogue(self, created_by):
        """Create catalogue bottles."""
        self.stdout.write('  Creating catalogue...')

        bottle_data = [
            {
                'name': 'Eagle Rare 10',
                'brand': 'Eagle Rare',
                'distillery': 'Buffalo Trace',
                'category': SpiritCategory.BOURBON,
                'region': 'Kentucky',
                'age': 10,
                'proof': Decimal('90.0'),
                'msrp': Decimal('39.99'),
            },
            {
                'name': 'Four Roses Single Barrel',
                'brand': 'Four Roses',
                'distillery': 'Four Roses',
                'category': SpiritCategory.BOURBON,
                'region': 'Kentucky',
                'proof': Decimal('100.0'),
                'msrp': Decimal('49.99'),
            },
            {
                'name': 'Wild Turkey Rare Breed',
                'brand': 'Wild Turkey',
                'distillery': 'Wild Turkey',
                'category': SpiritCategory.BOURBON,
                'region': 'Kentucky',
                'proof': Decimal('116.8'),
                'msrp': Decimal('54.99'),
            },
            {
                'name': 'Sazerac Rye',
                'brand': 'Sazerac',
                'distillery': 'Buffalo Trace',
                'category': SpiritCategory.RYE,
                'region': 'Kentucky',
                'proof': Decimal('90.0'),
                'msrp': Decimal('34.99'),
            },
            {
                'name': 'Lagavulin 16',
                'brand': 'Lagavulin',
                'distillery': 'Lagavulin',
                'category': SpiritCategory.SCOTCH,
                'region': 'Islay',
                'age': 16,
                'proof': Decimal('86.0'),
                'msrp': Decimal('99.99'),
            },
            {
                'name': 'Glenfarclas 15',
                'brand': 'Glenfarclas',
                'distillery': 'Glenfarclas',
                'category': SpiritCategory.SCOTCH,
                'region': 'Speyside',
                'age': 15,
                'proof': Decimal('92.0'),
                'msrp': Decimal('89.99'),
            },
            {
                'name': 'Redbreast 12',
                'brand': 'Redbreast',
                'distillery': 'Midleton',
                'category': SpiritCategory.IRISH,
                'region': 'Cork',
                'age': 12,
                'proof': Decimal('80.0'),
                'msrp': Decimal('69.99'),
            },
            {
                'name': 'Yamazaki 12',
                'brand': 'Yamazaki',
                'distillery': 'Yamazaki',
                'category': SpiritCategory.JAPANESE,
                'region': 'Osaka',
                'age': 12,
                'proof': Decimal('86.0'),
                'msrp': Decimal('174.99'),
            },
        ]

        catalogue = {}
        for data in bottle_data:
            bottle, _ = MasterBottle.objects.get_or_create(
                name=data['name'],
                distillery=data['distillery'],
                defaults={**data, 'created_by': created_by},
            )
            catalogue[data['name']] = bottle

        return catalogue

    def create_collections(self, users, catalogue):
        """Put bottles into alice's and bob's collections. Opened bottles get an open date."""
        self.stdout.write('  Creating collections...')

        now = timezone.now()
        collection_data = {
            'alice': [
                ('Eagle Rare 10', Decimal('39.99'), 40),
                ('Lagavulin 16', Decimal('94.00'), 25),
                ('Redbreast 12', Decimal('64.50'), 10),
                ('Yamazaki 12', Decimal('160.00'), None),
                ('Sazerac Rye', Decimal('32.00'), None),
            ],
            'bob': [
                ('Four Roses Single Barrel', Decimal('47.99'), 20),
                ('Wild Turkey Rare Breed', Decimal('52.00'), 5),
                ('Glenfarclas 15', Decimal('85.00'), None),
            ],
        }

        collections = {}
        for username, entries in collection_data.items():
            user = users[username]
            bottles = []
            for name, price, opened_days_ago in entries:
                bottle, _ = UserBottle.objects.get_or_create(
                    user=user,
                    master_bottle=catalogue[name],
                    defaults={
                        'purchase_price': price,
                        'purchase_date': (now - timedelta(days=90)).date(),
                        'location_area': 'Bar cart',
                        'open_date': now - timedelta(days=opened_days_ago) if opened_days_ago else None,
                    },
                )
                bottles.append(bottle)
            collections[username] = bottles

        return collections

    def create_pours(self, users, collections):
        """Log pours on opened bottles over the last few weeks."""
        self.stdout.write('  Creating pours...')

        now = timezone.now()
        tags = ['vanilla', 'caramel', 'oak', 'smoke', 'spice', 'honey', 'dried fruit']

        for username, bottles in collections.items():
            user = users[username]
            if Pour.objects.filter(user=user).exists():
                continue

            opened = [bottle for bottle in bottles if bottle.open_date]
            for evening in range(0, 21, 3):
                start = (now - timedelta(days=evening)).replace(hour=20, minute=0, second=0, microsecond=0)
                if start > now:
                    start -= timedelta(days=1)
                # Two pours 20 minutes apart land in one session
                for offset, bottle in enumerate(self.rng.sample(opened, k=min(2, len(opened)))):
                    rated = evening > 0 or offset == 0
                    log_pour(
                        user=user,
                        user_bottle_id=bottle.id,
                        amount=Decimal(self.rng.choice(['1.0', '1.5', '2.0'])),
                        poured_at=start + timedelta(minutes=20 * offset),
                        rating=Decimal(self.rng.choice(['7.0', '7.5', '8.0', '8.5', '9.0'])) if rated else None,
                        location=PourLocation.HOME,
                        tags=self.rng.sample(tags, k=2),
                    )

    def create_friendships(self, users):
        """alice & bob are friends; charlie has asked alice."""
        self.stdout.write('  Creating friendships...')

        friendship_data = [
            (users['alice'], users['bob'], FriendshipStatus.ACCEPTED),
            (users['charlie'], users['alice'], FriendshipStatus.PENDING),
        ]
        for requester, recipient, status in friendship_data:
            Friendship.objects.get_or_create(
                pair_key=Friendship.make_pair_key(requester.id, recipient.id),
                defaults={'requester': requester, 'recipient': recipient, 'status': status},
            )

    def create_notifications(self, users):
        """Run the notification generator for the sample users."""
        self.stdout.write('  Generating notifications...')

        report = generate_all(users=User.objects.filter(id__in=[user.id for user in users.values()]))
        return report.created
