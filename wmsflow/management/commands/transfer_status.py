"""
Management command to show the displayed status of transfers.

Usage:
    python manage.py transfer_status
    python manage.py transfer_status GT-202610-001 GT-202610-002
"""

from django.core.management.base import BaseCommand

from wmsflow.exceptions import WmsError
from wmsflow.models import GoodsTransfer
from wmsflow.services.transfers import TransferOrchestrator
from wmsflow.transitions import lifecycle_for


class Command(BaseCommand):
    """Transfer status command."""

    help = 'Shows stored and derived status of goods transfers'

    def add_arguments(self, parser):
        parser.add_argument('doc_no', nargs='*', help='Transfer numbers (default: all open transfers)')

    def handle(self, *args, **options):
        transfers = GoodsTransfer.objects.order_by('doc_no')
        if options['doc_no']:
            transfers = transfers.filter(doc_no__in=options['doc_no'])
        else:
            transfers = transfers.exclude(status__in=lifecycle_for(GoodsTransfer.kind).terminal)

        for transfer in transfers:
            try:
                derived = TransferOrchestrator.derived_status(transfer)
            except WmsError as e:
                self.stderr.write(f'{transfer.doc_no}: [{e.code}] {e.message}')
                continue
            links = ' '.join(filter(None, [transfer.linked_gi_no, transfer.linked_gr_no]))
            self.stdout.write(f'{transfer.doc_no}  {transfer.status:<10} {derived:<10} {links}'.rstrip())
