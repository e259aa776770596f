"""
Transfers — a Goods Transfer is executed by a linked issue and receipt.

    GT saved as Created ──► GI (Transfer, Detail mode, New)   linked_gi_no
    GI Completed        ──► GR (Transfer, New)                linked_gr_no
    GR Completed        ──► GT Completed

Links are document numbers, resolved on read. The displayed transfer
status is derived from the linked documents, see derive_transfer_status().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.dispatch import receiver
from django.utils import timezone

from wmsflow.adapters.ledger import get_ledger
from wmsflow.conf import wmsflow_settings
from wmsflow.exceptions import CapacityExceeded, GuardViolation, InconsistencyError, InvalidTransition
from wmsflow.models.documents import (
    GoodsIssue,
    GoodsIssueLine,
    GoodsReceipt,
    GoodsReceiptLine,
    GoodsTransfer,
)
from wmsflow.models.enums import (
    IssueMode,
    IssueStatus,
    IssueType,
    ReceiptStatus,
    ReceiptType,
    TransferStatus,
)
from wmsflow.services.history import StatusHistory
from wmsflow.services.numbering import DocumentNumbers
from wmsflow.services.queries import StockQueries
from wmsflow.signals import document_status_changed

logger = logging.getLogger('wmsflow')

ZERO = Decimal('0')

_PASSTHROUGH = frozenset({TransferStatus.DRAFT, TransferStatus.COMPLETED, TransferStatus.CANCELLED})
_EXPORTING = frozenset({IssueStatus.PICKING, IssueStatus.SUBMITTED, IssueStatus.ADJUSTMENT_REQUESTED})


def derive_transfer_status(status: str, issue_status: str | None = None,
                           receipt_status: str | None = None) -> str:
    """
    Displayed status of a transfer.

        Draft / Completed / Cancelled      -> as stored
        receipt exists, Completed          -> Completed
        receipt exists                     -> Receiving
        issue Completed                    -> Receiving
        issue Picking/Submitted/AdjReq     -> Exporting
        otherwise                          -> Created
    """
    if status in _PASSTHROUGH:
        return status
    if receipt_status is not None:
        if receipt_status == ReceiptStatus.COMPLETED:
            return TransferStatus.COMPLETED
        return TransferStatus.RECEIVING
    if issue_status is not None:
        if issue_status == IssueStatus.COMPLETED:
            return TransferStatus.RECEIVING
        if issue_status in _EXPORTING:
            return TransferStatus.EXPORTING
    return TransferStatus.CREATED


@dataclass(frozen=True)
class TransferLineProgress:
    line_no: int
    model_code: str
    qty_transfer: Decimal
    qty_exported: Decimal
    qty_received: Decimal


class TransferOrchestrator:

    # ══════════════════════════════════════════════════════════════
    # LINKS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def linked_issue(cls, transfer: GoodsTransfer) -> GoodsIssue | None:
        if not transfer.linked_gi_no:
            return None
        try:
            return GoodsIssue.objects.get(doc_no=transfer.linked_gi_no)
        except GoodsIssue.DoesNotExist:
            raise InconsistencyError(
                'DANGLING_REFERENCE',
                f"{transfer.doc_no} links issue {transfer.linked_gi_no}, which does not exist",
                doc_no=transfer.doc_no,
                linked=transfer.linked_gi_no,
            ) from None

    @classmethod
    def linked_receipt(cls, transfer: GoodsTransfer) -> GoodsReceipt | None:
        if not transfer.linked_gr_no:
            return None
        try:
            return GoodsReceipt.objects.get(doc_no=transfer.linked_gr_no)
        except GoodsReceipt.DoesNotExist:
            raise InconsistencyError(
                'DANGLING_REFERENCE',
                f"{transfer.doc_no} links receipt {transfer.linked_gr_no}, which does not exist",
                doc_no=transfer.doc_no,
                linked=transfer.linked_gr_no,
            ) from None

    @classmethod
    def derived_status(cls, transfer: GoodsTransfer) -> str:
        if transfer.status in _PASSTHROUGH:
            return transfer.status
        issue = cls.linked_issue(transfer)
        receipt = cls.linked_receipt(transfer)
        return derive_transfer_status(
            transfer.status,
            issue.status if issue else None,
            receipt.status if receipt else None,
        )

    @classmethod
    def line_progress(cls, transfer: GoodsTransfer) -> list[TransferLineProgress]:
        """Per-line quantities exported by the linked issue and received by the linked receipt."""
        issue = cls.linked_issue(transfer)
        receipt = cls.linked_receipt(transfer)
        exported = {ln.line_no: ln.qty_picked for ln in issue.lines.all()} if issue else {}
        received = {ln.line_no: ln.qty_received for ln in receipt.lines.all()} if receipt else {}

        return [
            TransferLineProgress(
                line_no=line.line_no,
                model_code=line.model_code,
                qty_transfer=line.qty_transfer,
                qty_exported=exported.get(line.line_no, ZERO),
                qty_received=received.get(line.line_no, ZERO),
            )
            for line in transfer.lines.all()
        ]

    # ══════════════════════════════════════════════════════════════
    # LINES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def clamp_quantity(cls, source_wh_code: str, model_code: str, qty: Decimal,
                       index: int, ledger=None) -> tuple[Decimal, CapacityExceeded | None]:
        """Clamp a transfer quantity to what the source warehouse has available."""
        if not source_wh_code or not model_code or qty <= 0:
            return qty, None
        available = StockQueries.available(source_wh_code, model_code, ledger=ledger or get_ledger())
        if qty <= available:
            return qty, None
        clamped = max(available, ZERO)
        logger.warning(
            "transfer.qty_clamped",
            extra={"wh_code": source_wh_code, "model_code": model_code,
                   "requested": str(qty), "max": str(clamped)},
        )
        return clamped, CapacityExceeded(f'lines[{index}].qty_transfer', qty, clamped)

    # ══════════════════════════════════════════════════════════════
    # GUARDS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def check_cancel(cls, transfer: GoodsTransfer) -> None:
        """
        Raises:
            GuardViolation('DOWNSTREAM_COMPLETED'): stock already left the source
        """
        issue = cls.linked_issue(transfer)
        if issue is not None and issue.status == IssueStatus.COMPLETED:
            raise GuardViolation(
                'DOWNSTREAM_COMPLETED',
                f"{transfer.doc_no} cannot be cancelled: issue {issue.doc_no} is completed",
                doc_no=transfer.doc_no,
                linked=issue.doc_no,
            )

    @classmethod
    def check_complete(cls, transfer: GoodsTransfer) -> None:
        receipt = cls.linked_receipt(transfer)
        if receipt is None or receipt.status != ReceiptStatus.COMPLETED:
            raise InvalidTransition(
                'INVALID_TRANSITION',
                f"{transfer.doc_no} completes when its receipt is completed",
                doc_no=transfer.doc_no,
            )

    # ══════════════════════════════════════════════════════════════
    # AUTOMATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_issue(cls, transfer: GoodsTransfer) -> GoodsIssue:
        """Create the transfer's issue (status New) and link it."""
        actor = wmsflow_settings.SYSTEM_ACTOR

        with transaction.atomic():
            issue = GoodsIssue.objects.create(
                doc_no=DocumentNumbers.next(GoodsIssue.prefix),
                status=IssueStatus.NEW,
                issue_type=IssueType.TRANSFER,
                issue_mode=IssueMode.DETAIL,
                source_wh_code=transfer.source_wh_code,
                dest_wh_code=transfer.dest_wh_code,
                expected_date=transfer.expected_date,
                ref_no=transfer.doc_no,
                transfer_no=transfer.doc_no,
                created_by=actor,
                note=f"Created from transfer {transfer.doc_no}",
            )
            GoodsIssueLine.objects.bulk_create([
                GoodsIssueLine(
                    issue=issue,
                    line_no=line.line_no,
                    model_code=line.model_code,
                    uom=line.uom,
                    tracking_type=line.tracking_type,
                    qty_planned=line.qty_transfer,
                )
                for line in transfer.lines.all()
            ])
            StatusHistory.append(
                issue, IssueStatus.NEW, actor,
                f"Document created with status {IssueStatus.NEW}.",
            )

            transfer.linked_gi_no = issue.doc_no
            transfer.save(update_fields=['linked_gi_no', 'updated_at'])

        logger.info(
            "transfer.issue_created",
            extra={"doc_no": transfer.doc_no, "issue": issue.doc_no},
        )
        return issue

    @classmethod
    def create_receipt(cls, transfer: GoodsTransfer, issue: GoodsIssue) -> GoodsReceipt:
        """Create the transfer's receipt (status New) from what the issue picked."""
        actor = wmsflow_settings.SYSTEM_ACTOR

        with transaction.atomic():
            receipt = GoodsReceipt.objects.create(
                doc_no=DocumentNumbers.next(GoodsReceipt.prefix),
                status=ReceiptStatus.NEW,
                receipt_type=ReceiptType.TRANSFER,
                source_wh_code=transfer.source_wh_code,
                dest_wh_code=transfer.dest_wh_code,
                doc_date=timezone.localdate(),
                ref_no=transfer.doc_no,
                transfer_no=transfer.doc_no,
                created_by=actor,
                note=f"Created from transfer {transfer.doc_no} / issue {issue.doc_no}",
            )
            GoodsReceiptLine.objects.bulk_create([
                GoodsReceiptLine(
                    receipt=receipt,
                    line_no=line.line_no,
                    model_code=line.model_code,
                    uom=line.uom,
                    tracking_type=line.tracking_type,
                    qty_planned=line.qty_picked,
                )
                for line in issue.lines.all()
                if line.qty_picked > 0
            ])
            StatusHistory.append(
                receipt, ReceiptStatus.NEW, actor,
                f"Document created with status {ReceiptStatus.NEW}.",
            )

            transfer.linked_gr_no = receipt.doc_no
            transfer.save(update_fields=['linked_gr_no', 'updated_at'])

        logger.info(
            "transfer.receipt_created",
            extra={"doc_no": transfer.doc_no, "issue": issue.doc_no, "receipt": receipt.doc_no},
        )
        return receipt

    @classmethod
    def propagate_cancel(cls, transfer: GoodsTransfer, actor: str = '') -> None:
        """Cancel the linked issue and receipt unless already closed."""
        from wmsflow.services.lifecycle import DocumentLifecycle

        for linked in (cls.linked_issue(transfer), cls.linked_receipt(transfer)):
            if linked is None or linked.is_terminal:
                continue
            DocumentLifecycle.cancel(
                linked,
                actor=actor or wmsflow_settings.SYSTEM_ACTOR,
                note=f"Cancelled with transfer {transfer.doc_no}.",
            )


def _transfer_of(document) -> GoodsTransfer | None:
    if not document.transfer_no:
        return None
    try:
        return GoodsTransfer.objects.get(doc_no=document.transfer_no)
    except GoodsTransfer.DoesNotExist:
        raise InconsistencyError(
            'DANGLING_REFERENCE',
            f"{document.doc_no} links transfer {document.transfer_no}, which does not exist",
            doc_no=document.doc_no,
            linked=document.transfer_no,
        ) from None


@receiver(document_status_changed, sender=GoodsIssue)
def issue_completed(sender, document, status, **kwargs):
    if status != IssueStatus.COMPLETED:
        return
    transfer = _transfer_of(document)
    if transfer is None or transfer.linked_gr_no:
        return
    TransferOrchestrator.create_receipt(transfer, document)


@receiver(document_status_changed, sender=GoodsReceipt)
def receipt_completed(sender, document, status, **kwargs):
    if status != ReceiptStatus.COMPLETED:
        return
    transfer = _transfer_of(document)
    if transfer is None or transfer.status != TransferStatus.CREATED:
        return

    from wmsflow.services.lifecycle import DocumentLifecycle

    DocumentLifecycle.transition(
        transfer,
        TransferStatus.COMPLETED,
        actor=wmsflow_settings.SYSTEM_ACTOR,
        note=f"Receipt {document.doc_no} completed.",
    )
