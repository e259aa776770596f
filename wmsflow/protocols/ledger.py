"""
Stock Ledger Protocol — interface to the on-hand source of truth.

wmsflow reads on-hand/lot/serial records through this protocol and sends
one commit request per completing document. The default implementation is
``wmsflow.adapters.quant_ledger.QuantLedger`` (Quant/Move tables in the
same database); any other system can be plugged in via
``WMSFLOW["LEDGER_BACKEND"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class OnhandRecord:
    """On-hand of one model at one location."""

    wh_code: str
    loc_code: str
    model_code: str
    onhand_qty: Decimal
    allocated_qty: Decimal = Decimal('0')

    @property
    def available_qty(self) -> Decimal:
        return self.onhand_qty - self.allocated_qty


@dataclass(frozen=True)
class LotRecord:
    lot_code: str
    onhand_qty: Decimal
    expiry_date: date | None = None
    receipt_date: date | None = None


@dataclass(frozen=True)
class SerialRecord:
    serial_no: str
    receipt_date: date | None = None
    expiry_date: date | None = None


@dataclass(frozen=True)
class StockMovement:
    """
    One quantity change at a (location, model[, lot | serial]) coordinate.

    ``qty`` is always positive; the document kind decides the direction.
    """

    line_id: int | None
    model_code: str
    loc_code: str
    qty: Decimal
    lot_code: str = ''
    serial_no: str = ''
    expiry_date: date | None = None


@dataclass(frozen=True)
class CommitRequest:
    """
    Everything the ledger needs to apply a document atomically.

    direction: +1 adds stock (receipt), -1 removes it (issue).
    """

    doc_no: str
    doc_kind: str
    wh_code: str
    direction: int
    movements: tuple[StockMovement, ...] = field(default_factory=tuple)
    actor: str = ''


@dataclass(frozen=True)
class ReservationRequest:
    doc_no: str
    wh_code: str
    movements: tuple[StockMovement, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CommitResult:
    """Single outcome for the whole request."""

    ok: bool
    doc_no: str
    message: str | None = None


@runtime_checkable
class StockLedger(Protocol):
    """
    Protocol for the stock ledger collaborator.

    Reads are side-effect free. ``reserve``/``commit`` must be all-or-nothing
    and report the outcome as a CommitResult rather than partially applying.
    """

    def onhand(
        self,
        wh_code: str,
        loc_codes: Sequence[str] | None = None,
        model_codes: Sequence[str] | None = None,
        exclude_doc_no: str | None = None,
    ) -> list[OnhandRecord]:
        """
        On-hand records of a warehouse, optionally filtered.

        Reservations held by ``exclude_doc_no`` are not counted as allocated,
        so a document sees the stock it has already reserved as available.

        Returns:
            One OnhandRecord per (location, model) pair
        """
        ...

    def lots(self, wh_code: str, loc_code: str, model_code: str) -> list[LotRecord]:
        """Lots on hand for a model at a location (FEFO order)."""
        ...

    def serials(self, wh_code: str, loc_code: str, model_code: str,
                exclude_doc_no: str | None = None) -> list[SerialRecord]:
        """Serial numbers on hand and not reserved for a model at a location."""
        ...

    def reserve(self, request: ReservationRequest) -> CommitResult:
        """Allocate quantities to a document (raises allocated_qty)."""
        ...

    def release(self, doc_no: str, line_id: int | None = None) -> int:
        """
        Release every active reservation of a document, or only those of
        one of its lines when ``line_id`` is given.

        Returns:
            Number of reservations released
        """
        ...

    def commit(self, request: CommitRequest) -> CommitResult:
        """Apply a completed document's stock movement."""
        ...
