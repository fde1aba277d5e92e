"""
Management command to delete revoked and expired sign-in sessions
Usage: python manage.py prune_sessions [--skip-tokens]
"""
from django.core.management import call_command
from django.core.management.base import BaseCommand
from bizmanager.core.sessions import prune_sessions


class Command(BaseCommand):
    help = 'Delete revoked and expired sessions, then flush expired refresh tokens'

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-tokens',
            action='store_true',
            help='Do not run flushexpiredtokens after pruning sessions',
        )

    def handle(self, *args, **options):
        deleted = prune_sessions()
        self.stdout.write(self.style.SUCCESS(f'Pruned {deleted} inactive sessions'))

        if not options['skip_tokens']:
            call_command('flushexpiredtokens')
