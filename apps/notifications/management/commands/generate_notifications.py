"""
Management command to generate notifications.

Usage:
    python manage.py generate_notifications
    python manage.py generate_notifications --rule low_stock --rule achievement
    python manage.py generate_notifications --broadcast "Title" "Message"

Meant to run from cron, e.g. hourly.
"""

from django.core.management.base import BaseCommand, CommandError

from apps.notifications.services import generate_all, get_rule, broadcast_system_notification


class Command(BaseCommand):
    help = 'Evaluate notification rules for all active users'

    def add_arguments(self, parser):
        parser.add_argument(
            '--rule',
            action='append',
            dest='rules',
            help='Only run this rule (notification type). Can be repeated.',
        )
        parser.add_argument(
            '--broadcast',
            nargs=2,
            metavar=('TITLE', 'MESSAGE'),
            help='Send a system announcement instead of running the rules',
        )

    def handle(self, *args, **options):
        if options['broadcast']:
            title, message = options['broadcast']
            sent = broadcast_system_notification(title=title, message=message)
            self.stdout.write(self.style.SUCCESS(f'Sent announcement to {sent} user(s).'))
            return

        rules = None
        if options['rules']:
            try:
                rules = [get_rule(name) for name in options['rules']]
            except KeyError as e:
                raise CommandError(str(e))

        report = generate_all(rules=rules)

        self.stdout.write(self.style.SUCCESS(
            f'Created {report.created}, skipped {report.skipped}, purged {report.purged} notification(s).'
        ))
        if report.failures:
            self.stdout.write(self.style.WARNING(f'{report.failures} rule evaluation(s) failed, see logs.'))
