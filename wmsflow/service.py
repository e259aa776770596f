"""
Warehouse Service — the single public interface for document operations.

Usage:
    from wmsflow import wms, WmsError

    result = wms.create('Issue', header, lines, actor='alex')
    wms.allocate(line, 'A-01', 5)
    wms.transition(result.document.doc_no, 'New', actor='alex')
    wms.transfer_status('GT-202610-001')   # 'Exporting'
"""

from decimal import Decimal
from typing import Any, Iterable, Mapping

from wmsflow.adapters.ledger import get_ledger
from wmsflow.models.enums import EditMode
from wmsflow.services.allocation import AllocationEngine, AllocationResult
from wmsflow.services.counting import InventoryCountPlanner
from wmsflow.services.documents import DocumentEditor, SaveResult, find_document
from wmsflow.services.guards import GuardOutcome, Guards
from wmsflow.services.history import StatusHistory
from wmsflow.services.lifecycle import DocumentLifecycle
from wmsflow.services.queries import StockQueries
from wmsflow.services.transfers import TransferOrchestrator


def _resolve(document):
    return find_document(document) if isinstance(document, str) else document


class Wms:
    """
    Single interface for document operations.

    Documents may be passed as instances or by document number.

    IMPORTANT: every state-changing method runs in one transaction; a
    refused or failed operation leaves documents and stock unchanged.
    """

    # ══════════════════════════════════════════════════════════════
    # DOCUMENTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get(cls, doc_no: str):
        return find_document(doc_no)

    @classmethod
    def create(cls, kind: str, header: Mapping[str, Any] | None = None,
               lines: Iterable[Mapping[str, Any]] | None = None,
               target_status: str | None = None, actor: str = '') -> SaveResult:
        return DocumentEditor.create(kind, header, lines, target_status, actor)

    @classmethod
    def save(cls, document, header: Mapping[str, Any] | None = None,
             lines: Iterable[Mapping[str, Any]] | None = None,
             target_status: str | None = None, actor: str = '') -> SaveResult:
        """
        Save an existing document (header/lines only while Draft).

        A header change that would discard lines is refused with
        GuardViolation('LINES_EXIST'); use dry_run_guard/confirm with
        'change_header' for that.
        """
        return DocumentEditor.save(_resolve(document), header, lines, target_status, actor)

    @classmethod
    def is_editable(cls, document, mode: str = EditMode.EDIT) -> bool:
        return DocumentLifecycle.is_editable(_resolve(document), mode)

    @classmethod
    def transition(cls, document, target_status: str, actor: str = '', note: str = ''):
        return DocumentLifecycle.transition(_resolve(document), target_status, actor, note)

    @classmethod
    def cancel(cls, document, actor: str = '', note: str = ''):
        return DocumentLifecycle.cancel(_resolve(document), actor, note)

    @classmethod
    def approve_receipt(cls, receipt, actor: str = '', note: str = ''):
        return DocumentLifecycle.approve_receipt(_resolve(receipt), actor, note)

    @classmethod
    def reject_receipt(cls, receipt, reason: str, actor: str = ''):
        return DocumentLifecycle.reject_receipt(_resolve(receipt), reason, actor)

    @classmethod
    def history(cls, document) -> list:
        doc = _resolve(document)
        return StatusHistory.for_document(doc.doc_no)

    # ══════════════════════════════════════════════════════════════
    # ALLOCATION / RECEPTION / COUNTING
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def allocate(cls, line, location_code: str, user_input) -> AllocationResult:
        """Allocate an issue line at a location (see AllocationEngine.allocate_issue_line)."""
        return AllocationEngine.allocate_issue_line(line, location_code, user_input, get_ledger())

    @classmethod
    def record_receipt(cls, line, user_input, location_code: str | None = None):
        return AllocationEngine.record_receipt(line, user_input, location_code)

    @classmethod
    def generate_count_plan(cls, count, scope: str | None = None, locations=None,
                            models=None, confirmed: bool = False):
        return InventoryCountPlanner.generate_plan(
            _resolve(count), scope, locations, models, confirmed,
        )

    @classmethod
    def record_count(cls, line, counted_qty):
        return InventoryCountPlanner.record_count(line, counted_qty)

    # ══════════════════════════════════════════════════════════════
    # TRANSFERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def transfer_status(cls, transfer) -> str:
        """Displayed (derived) status of a transfer."""
        return TransferOrchestrator.derived_status(_resolve(transfer))

    @classmethod
    def transfer_progress(cls, transfer):
        return TransferOrchestrator.line_progress(_resolve(transfer))

    # ══════════════════════════════════════════════════════════════
    # GUARDS (two-phase)
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def dry_run_guard(cls, action: str, target, **params) -> GuardOutcome:
        return Guards.dry_run(action, _resolve(target), **params)

    @classmethod
    def confirm(cls, action: str, target, confirmed: bool = True, actor: str = '', **params):
        return Guards.confirm(action, _resolve(target), confirmed, actor, **params)

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def available(cls, wh_code: str, model_code: str, loc_code: str | None = None) -> Decimal:
        return StockQueries.available(wh_code, model_code, loc_code)

    @classmethod
    def onhand(cls, wh_code: str, loc_codes=None, model_codes=None):
        return get_ledger().onhand(wh_code, loc_codes, model_codes)
