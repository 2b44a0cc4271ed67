"""
Management command to repair pour sessions.

Usage:
    python manage.py repair_pour_sessions
    python manage.py repair_pour_sessions --dry-run
    python manage.py repair_pour_sessions --user alice@example.com

This:
- Closes open sessions whose last pour is older than the inactivity gap
- Puts every pour without a session into one
"""

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Count
from django.utils import timezone

from apps.accounts.models import User
from apps.pours.models import Pour, PourSession
from apps.pours.services import (
    get_inactivity_gap,
    close_stale_sessions,
    assign_orphaned_pours,
)


class Command(BaseCommand):
    help = 'Close stale pour sessions and assign orphaned pours to sessions'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report what would change without writing anything',
        )
        parser.add_argument(
            '--user',
            help='Only assign orphaned pours of the user with this email',
        )

    def handle(self, *args, **options):
        user = None
        if options['user']:
            try:
                user = User.objects.get(email=options['user'])
            except User.DoesNotExist:
                raise CommandError(f"No user with email {options['user']}")

        if options['dry_run']:
            self.report(user)
            return

        closed = close_stale_sessions()
        assigned = assign_orphaned_pours(user=user)

        self.stdout.write(self.style.SUCCESS(
            f'Closed {closed} stale session(s), assigned {assigned} orphaned pour(s).'
        ))

    def report(self, user):
        now = timezone.now()
        stale = PourSession.objects.filter(
            ended_at__isnull=True,
            last_pour_at__lt=now - get_inactivity_gap(),
        ).count()

        orphans = Pour.objects.filter(session__isnull=True)
        if user is not None:
            orphans = orphans.filter(user=user)

        self.stdout.write(f'Stale open sessions: {stale}')
        self.stdout.write(f'Orphaned pours: {orphans.count()}')
        for row in orphans.values('user__email').annotate(count=Count('id')).order_by('-count'):
            self.stdout.write(f"  {row['user__email']}: {row['count']}")
        self.stdout.write(self.style.WARNING('Dry run - nothing changed.'))
