"""
Document lifecycle — guarded status transitions.

Every accepted transition, in one transaction:
    1. kind-specific work that must happen before the status flips
       (issue reservation, count snapshot, transfer's issue creation)
    2. status write + StatusEvent
    3. ledger commit for committing statuses, release on cancellation
    4. document_status_changed signal

Anything raised along the way rolls back all of it, and the in-memory
document gets its previous status back.
"""

import logging
from decimal import Decimal

from django.db import transaction

from wmsflow.adapters.ledger import get_ledger
from wmsflow.conf import wmsflow_settings
from wmsflow.details import LotDetails, NoneDetails
from wmsflow.exceptions import (
    GuardViolation,
    InvalidTransition,
    LedgerCommitFailure,
    ValidationError,
)
from wmsflow.models.enums import (
    DocumentKind,
    EditMode,
    IssueMode,
    IssueStatus,
    IssueType,
    ReceiptStatus,
    ReceiptType,
    TransferStatus,
)
from wmsflow.protocols.ledger import CommitRequest, ReservationRequest, StockMovement
from wmsflow.services.history import StatusHistory
from wmsflow.services.queries import StockQueries
from wmsflow.signals import document_status_changed

logger = logging.getLogger('wmsflow')


# Header fields that must be filled, per kind. Conditional rules are in
# _header_errors().
REQUIRED_HEADER = {
    DocumentKind.RECEIPT: ('dest_wh_code', 'doc_date'),
    DocumentKind.ISSUE: ('source_wh_code',),
    DocumentKind.TRANSFER: ('source_wh_code', 'dest_wh_code'),
    DocumentKind.COUNT: ('wh_code',),
}


def _qty(value) -> str:
    """Decimal without trailing zeros (10.000 -> 10)."""
    return f"{value.normalize():f}"


def _header_errors(document) -> dict[str, tuple[str, str]]:
    """Failing header fields as {field: (code, message)}."""
    errors = {
        name: ('REQUIRED', 'Required')
        for name in REQUIRED_HEADER[document.kind]
        if not getattr(document, name)
    }
    kind = document.kind

    if kind == DocumentKind.RECEIPT:
        if document.receipt_type in (ReceiptType.PO, ReceiptType.RETURN) and not document.partner_code:
            errors['partner_code'] = ('REQUIRED', 'Partner is required for this receipt type')
        if document.receipt_type == ReceiptType.TRANSFER and not document.source_wh_code:
            errors['source_wh_code'] = ('REQUIRED', 'Source warehouse is required for transfers')

    elif kind == DocumentKind.ISSUE:
        if document.issue_type == IssueType.SALES_ORDER and not document.partner_code:
            errors['partner_code'] = ('REQUIRED', 'Partner is required for sales orders')
        if document.issue_type == IssueType.TRANSFER and not document.dest_wh_code:
            errors['dest_wh_code'] = ('REQUIRED', 'Destination warehouse is required for transfers')

    if (
        kind in (DocumentKind.ISSUE, DocumentKind.TRANSFER, DocumentKind.RECEIPT)
        and document.source_wh_code
        and document.source_wh_code == document.dest_wh_code
    ):
        errors['dest_wh_code'] = ('SAME_WAREHOUSE', 'Destination cannot be the same as source')

    return errors


class DocumentLifecycle:
    """Status transitions for every document kind."""

    # ══════════════════════════════════════════════════════════════
    # CHECKS (no mutation)
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def is_editable(cls, document, mode: str = EditMode.EDIT) -> bool:
        return document.lifecycle.is_editable(document.status, mode)

    @classmethod
    def validate_header(cls, document) -> None:
        errors = _header_errors(document)
        if errors:
            code, message = next(iter(errors.values()))
            raise ValidationError(
                code,
                message,
                field_errors={name: msg for name, (_, msg) in errors.items()},
                doc_no=document.doc_no,
            )

    @classmethod
    def validate_for_submit(cls, document, ledger=None) -> None:
        """
        Whole-document checks before a state-changing submit.

        Raises:
            ValidationError: first failing rule's code, with every
                failing field in field_errors
        """
        cls.validate_header(document)

        lines = list(document.lines.all())
        if not lines:
            raise ValidationError('NO_LINES', doc_no=document.doc_no)

        errors: dict[str, str] = {}
        first: tuple[str, str] | None = None

        def fail(code: str, name: str, message: str):
            nonlocal first
            errors[name] = message
            if first is None:
                first = (code, message)

        for i, line in enumerate(lines):
            if not line.model_code:
                fail('INVALID_LINE', f'lines[{i}].model_code', 'Model is required')

        if document.kind == DocumentKind.TRANSFER:
            for i, line in enumerate(lines):
                if line.qty_transfer <= 0:
                    fail('INVALID_QUANTITY', f'lines[{i}].qty_transfer', 'Quantity must be greater than 0')

        elif document.kind == DocumentKind.RECEIPT:
            for i, line in enumerate(lines):
                if line.qty_planned <= 0:
                    fail('INVALID_QUANTITY', f'lines[{i}].qty_planned', 'Quantity must be greater than 0')

        elif document.kind == DocumentKind.ISSUE and document.status == IssueStatus.DRAFT:
            cls._issue_availability(document, lines, ledger or get_ledger(), fail)

        if first is not None:
            code, message = first
            raise ValidationError(code, message, field_errors=errors, doc_no=document.doc_no)

    @classmethod
    def _issue_availability(cls, issue, lines, ledger, fail) -> None:
        wh_code = issue.source_wh_code
        for i, line in enumerate(lines):
            if line.qty_planned <= 0:
                fail('INVALID_QUANTITY', f'lines[{i}].qty_planned', 'Quantity must be greater than 0')
                continue

            if issue.issue_mode == IssueMode.SUMMARY:
                if not line.location_code:
                    fail('REQUIRED', f'lines[{i}].location_code', 'Location is required')
                    continue
                available = StockQueries.available(
                    wh_code, line.model_code, line.location_code,
                    exclude_doc_no=issue.doc_no, ledger=ledger,
                )
                where = f"location {line.location_code}"
            else:
                available = StockQueries.available(
                    wh_code, line.model_code, exclude_doc_no=issue.doc_no, ledger=ledger,
                )
                where = f"warehouse {wh_code}"

            if line.qty_planned > available:
                fail(
                    'INSUFFICIENT_AVAILABLE',
                    f'lines[{i}].qty_planned',
                    f"{line.model_code}: requested {_qty(line.qty_planned)} exceeds the "
                    f"available quantity at {where} (max {_qty(available)})",
                )

    @classmethod
    def check(cls, document, target: str, note: str = '') -> None:
        """
        Raise if ``document`` may not move to ``target``. Never mutates.

        Raises:
            GuardViolation: business rule refusal
            InvalidTransition: edge not in the kind's table
            ValidationError: document not fit to submit
        """
        lifecycle = document.lifecycle

        if target == lifecycle.cancelled and lifecycle.is_terminal(document.status):
            raise GuardViolation(
                'ALREADY_TERMINAL',
                f"{document.doc_no} is {document.status} and cannot be cancelled",
                doc_no=document.doc_no,
                status=document.status,
            )

        if not lifecycle.can_transition(document.status, target):
            raise InvalidTransition(
                'INVALID_TRANSITION',
                f"{document.doc_no}: {document.status} → {target} is not allowed",
                doc_no=document.doc_no,
                status=document.status,
                target=target,
            )

        if document.kind == DocumentKind.RECEIPT and target == ReceiptStatus.REJECTED:
            if not note.strip():
                raise GuardViolation('REASON_REQUIRED', doc_no=document.doc_no)

        if document.kind == DocumentKind.TRANSFER:
            from wmsflow.services.transfers import TransferOrchestrator

            if target == TransferStatus.CANCELLED:
                TransferOrchestrator.check_cancel(document)
            elif target == TransferStatus.COMPLETED:
                TransferOrchestrator.check_complete(document)

        if target not in (lifecycle.cancelled, ReceiptStatus.REJECTED):
            if document.status == lifecycle.initial:
                cls.validate_for_submit(document)
            elif not document.lines.exists():
                raise ValidationError('NO_LINES', doc_no=document.doc_no)

        # An issue completes only with something picked
        if document.kind == DocumentKind.ISSUE and target in lifecycle.committing:
            if not document.lines.filter(qty_picked__gt=0).exists():
                raise ValidationError(
                    'NOTHING_PICKED',
                    f"{document.doc_no}: nothing has been picked",
                    doc_no=document.doc_no,
                )

    # ══════════════════════════════════════════════════════════════
    # TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def transition(cls, document, target: str, actor: str = '', note: str = ''):
        """
        Move ``document`` to ``target``.

        Returns:
            The document, with its new status

        Raises:
            GuardViolation, InvalidTransition, ValidationError: refused,
                nothing changed
            LedgerCommitFailure: ledger refused, nothing changed
        """
        cls.check(document, target, note)

        previous = document.status
        try:
            with transaction.atomic():
                cls._before(document, previous, target, actor)

                document.status = target
                document.save(update_fields=['status', 'updated_at'])
                StatusHistory.append(
                    document, target, actor,
                    note or f"Status changed from {previous} to {target}.",
                )

                cls._after(document, previous, target, actor)

                document_status_changed.send(
                    sender=type(document),
                    document=document,
                    previous=previous,
                    status=target,
                    actor=actor,
                )
        except Exception:
            document.status = previous
            raise

        logger.info(
            "doc.transition",
            extra={
                "doc_no": document.doc_no,
                "kind": document.kind,
                "from": previous,
                "to": target,
                "actor": actor,
            },
        )
        return document

    @classmethod
    def cancel(cls, document, actor: str = '', note: str = ''):
        return cls.transition(document, document.lifecycle.cancelled, actor, note)

    @classmethod
    def approve_receipt(cls, receipt, actor: str = '', note: str = ''):
        """Submitted → Completed (posts stock)."""
        return cls.transition(receipt, ReceiptStatus.COMPLETED, actor, note)

    @classmethod
    def reject_receipt(cls, receipt, reason: str, actor: str = ''):
        """
        Submitted → Rejected.

        Raises:
            GuardViolation('REASON_REQUIRED'): If reason is blank
        """
        if not (reason or '').strip():
            raise GuardViolation('REASON_REQUIRED', doc_no=receipt.doc_no)
        return cls.transition(receipt, ReceiptStatus.REJECTED, actor, f"Rejected: {reason.strip()}")

    # ══════════════════════════════════════════════════════════════
    # HOOKS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _before(cls, document, previous: str, target: str, actor: str) -> None:
        lifecycle = document.lifecycle
        leaving_initial = previous == lifecycle.initial and target != lifecycle.cancelled

        if not leaving_initial:
            return

        if document.kind == DocumentKind.ISSUE and wmsflow_settings.RESERVE_ON_SUBMIT:
            cls._reserve_issue(document)
        elif document.kind == DocumentKind.COUNT:
            from wmsflow.services.counting import InventoryCountPlanner

            InventoryCountPlanner.snapshot(document)
        elif document.kind == DocumentKind.TRANSFER and not document.linked_gi_no:
            from wmsflow.services.transfers import TransferOrchestrator

            TransferOrchestrator.create_issue(document)

    @classmethod
    def _after(cls, document, previous: str, target: str, actor: str) -> None:
        lifecycle = document.lifecycle
        ledger = get_ledger()

        if target in lifecycle.committing:
            request = cls.build_commit_request(document, actor)
            result = ledger.commit(request)
            if not result.ok:
                raise LedgerCommitFailure(
                    'COMMIT_FAILED',
                    result.message,
                    doc_no=document.doc_no,
                )

        elif target == lifecycle.cancelled:
            if document.kind == DocumentKind.ISSUE:
                ledger.release(document.doc_no)
            elif document.kind == DocumentKind.TRANSFER:
                from wmsflow.services.transfers import TransferOrchestrator

                TransferOrchestrator.propagate_cancel(document, actor)

    @classmethod
    def _reserve_issue(cls, issue) -> None:
        """Reserve what is known: per-line location (Summary) or picked details (Detail)."""
        movements = []
        for line in issue.lines.all():
            if issue.issue_mode == IssueMode.SUMMARY and line.location_code:
                movements.append(StockMovement(
                    line_id=line.pk,
                    model_code=line.model_code,
                    loc_code=line.location_code,
                    qty=line.qty_planned,
                ))
            elif issue.issue_mode == IssueMode.DETAIL:
                movements.extend(cls.detail_movements(line, line.location_code))

        if not movements:
            return

        result = get_ledger().reserve(ReservationRequest(
            doc_no=issue.doc_no,
            wh_code=issue.source_wh_code,
            movements=tuple(movements),
        ))
        if not result.ok:
            raise LedgerCommitFailure('RESERVE_FAILED', result.message, doc_no=issue.doc_no)

    # ══════════════════════════════════════════════════════════════
    # COMMIT REQUEST
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def detail_movements(cls, line, fallback_location: str) -> list[StockMovement]:
        details = line.details
        if details.is_empty():
            return []

        def location(item_location: str) -> str:
            loc = item_location or fallback_location
            if not loc:
                raise ValidationError(
                    'NO_LOCATION',
                    f"Line {line.line_no} ({line.model_code}) has no location",
                    field_errors={f'lines[{line.line_no - 1}].location_code': 'Required'},
                )
            return loc

        if isinstance(details, NoneDetails):
            return [StockMovement(
                line_id=line.pk,
                model_code=line.model_code,
                loc_code=location(details.location_code),
                qty=details.qty,
            )]
        if isinstance(details, LotDetails):
            return [
                StockMovement(
                    line_id=line.pk,
                    model_code=line.model_code,
                    loc_code=location(item.location_code),
                    qty=item.qty,
                    lot_code=item.lot_code,
                    expiry_date=item.expiry_date,
                )
                for item in details.items
            ]
        return [
            StockMovement(
                line_id=line.pk,
                model_code=line.model_code,
                loc_code=location(item.location_code),
                qty=Decimal(1),
                serial_no=item.serial_no,
            )
            for item in details.items
        ]

    @classmethod
    def build_commit_request(cls, document, actor: str = '') -> CommitRequest:
        """
        One request for the whole document.

        Receipts post to each line's location, or to the destination
        warehouse's default location when the line has none.
        """
        if document.kind == DocumentKind.RECEIPT:
            wh_code = document.dest_wh_code
            direction = 1
            default = StockQueries.default_location(wh_code) or ''
        else:
            wh_code = document.source_wh_code
            direction = -1
            default = ''

        movements = []
        for line in document.lines.all():
            movements.extend(cls.detail_movements(line, line.location_code or default))

        return CommitRequest(
            doc_no=document.doc_no,
            doc_kind=document.kind,
            wh_code=wh_code,
            direction=direction,
            movements=tuple(movements),
            actor=actor or wmsflow_settings.SYSTEM_ACTOR,
        )
