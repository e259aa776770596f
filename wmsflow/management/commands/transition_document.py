"""
Management command to move a document to another status.

Usage:
    python manage.py transition_document GI-202610-001 New --actor alex
    python manage.py transition_document GT-202610-002 Cancelled --note "Duplicate"
    python manage.py transition_document GR-202610-003 Completed --dry-run
"""

from django.core.management.base import BaseCommand, CommandError

from wmsflow.exceptions import WmsError
from wmsflow.services.documents import find_document
from wmsflow.services.guards import Guards


class Command(BaseCommand):
    """Transition document command."""

    help = 'Moves a document to another status'

    def add_arguments(self, parser):
        parser.add_argument('doc_no')
        parser.add_argument('status')
        parser.add_argument('--actor', default='', help='Who performs the transition')
        parser.add_argument('--note', default='', help='Note recorded in the status history')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Shows whether the transition would be accepted without executing it'
        )

    def handle(self, *args, **options):
        doc_no, status = options['doc_no'], options['status']
        try:
            document = find_document(doc_no)
            if options['dry_run']:
                outcome = Guards.dry_run('transition', document, status=status, note=options['note'])
                if outcome.allowed:
                    self.stdout.write(f'{doc_no}: {document.status} -> {status} would be accepted')
                else:
                    self.stdout.write(f'{doc_no}: refused [{outcome.code}] {outcome.reason}')
                return

            previous = document.status
            Guards.confirm(
                'transition', document,
                actor=options['actor'], status=status, note=options['note'],
            )
        except WmsError as e:
            raise CommandError(f'[{e.code}] {e.message}') from e

        self.stdout.write(self.style.SUCCESS(f'{doc_no}: {previous} -> {document.status}'))
