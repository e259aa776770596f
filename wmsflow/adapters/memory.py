"""
In-memory StockLedger.

Keeps on-hand and reservations in dicts. Used by tests that exercise the
allocation engine and status rules without touching Quant/Move, and handy
as a reference for writing other ledger backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from wmsflow.protocols.ledger import (
    CommitRequest,
    CommitResult,
    LotRecord,
    OnhandRecord,
    ReservationRequest,
    SerialRecord,
    StockMovement,
)

ZERO = Decimal('0')

# (wh_code, loc_code, model_code, lot_code, serial_no)
Coordinate = tuple[str, str, str, str, str]


@dataclass
class _Stock:
    qty: Decimal
    expiry_date: date | None = None
    receipt_date: date | None = None


@dataclass
class _Reservation:
    doc_no: str
    coordinate: Coordinate
    qty: Decimal
    line_id: int | None = None


class InMemoryLedger:

    def __init__(self):
        self.stock: dict[Coordinate, _Stock] = {}
        self.reservations: list[_Reservation] = []
        self.committed: list[CommitRequest] = []

    def seed(self, wh_code: str, loc_code: str, model_code: str, qty,
             lot_code: str = '', serial_no: str = '',
             expiry_date: date | None = None, receipt_date: date | None = None) -> None:
        """Put stock on hand directly (test setup)."""
        key = (wh_code, loc_code, model_code, lot_code, serial_no)
        current = self.stock.get(key)
        total = Decimal(str(qty)) + (current.qty if current else ZERO)
        self.stock[key] = _Stock(total, expiry_date, receipt_date or date.today())

    # ── reads ─────────────────────────────────────────────────────

    def _reserved(self, match, exclude_doc_no: str | None = None) -> Decimal:
        return sum(
            (r.qty for r in self.reservations
             if match(r.coordinate) and r.doc_no != exclude_doc_no),
            ZERO,
        )

    def onhand(self, wh_code: str, loc_codes: Sequence[str] | None = None,
               model_codes: Sequence[str] | None = None,
               exclude_doc_no: str | None = None) -> list[OnhandRecord]:
        pairs: dict[tuple[str, str], Decimal] = {}
        for (wh, loc, model, _lot, _serial), stock in self.stock.items():
            if wh != wh_code:
                continue
            if loc_codes is not None and loc not in loc_codes:
                continue
            if model_codes is not None and model not in model_codes:
                continue
            pairs[(loc, model)] = pairs.get((loc, model), ZERO) + stock.qty

        records = []
        for (loc, model), qty in sorted(pairs.items()):
            allocated = self._reserved(
                lambda c, loc=loc, model=model: c[:3] == (wh_code, loc, model),
                exclude_doc_no,
            )
            if qty or allocated:
                records.append(OnhandRecord(wh_code, loc, model, qty, allocated))
        return records

    def lots(self, wh_code: str, loc_code: str, model_code: str) -> list[LotRecord]:
        records = [
            LotRecord(lot, stock.qty, stock.expiry_date, stock.receipt_date)
            for (wh, loc, model, lot, _serial), stock in self.stock.items()
            if (wh, loc, model) == (wh_code, loc_code, model_code) and lot and stock.qty > 0
        ]
        return sorted(records, key=lambda r: (
            r.expiry_date or date.max,
            r.receipt_date or date.max,
            r.lot_code,
        ))

    def serials(self, wh_code: str, loc_code: str, model_code: str,
                exclude_doc_no: str | None = None) -> list[SerialRecord]:
        reserved = {
            r.coordinate[4] for r in self.reservations
            if r.doc_no != exclude_doc_no and r.coordinate[:3] == (wh_code, loc_code, model_code)
        }
        return [
            SerialRecord(serial, stock.receipt_date, stock.expiry_date)
            for (wh, loc, model, _lot, serial), stock in sorted(self.stock.items())
            if (wh, loc, model) == (wh_code, loc_code, model_code)
            and serial and stock.qty > 0 and serial not in reserved
        ]

    # ── writes ────────────────────────────────────────────────────

    def _available(self, wh_code: str, m: StockMovement, doc_no: str | None) -> Decimal:
        def at_location(c):
            return c[:3] == (wh_code, m.loc_code, m.model_code)

        def on_coordinate(c):
            if not at_location(c):
                return False
            if m.serial_no:
                return c[4] == m.serial_no
            return c[3] == m.lot_code

        def free(match):
            onhand = sum((s.qty for c, s in self.stock.items() if match(c)), ZERO)
            return onhand - self._reserved(match, exclude_doc_no=doc_no)

        location_free = free(at_location)
        if not (m.serial_no or m.lot_code):
            return location_free
        return min(free(on_coordinate), location_free)

    def reserve(self, request: ReservationRequest) -> CommitResult:
        start = len(self.reservations)
        for m in request.movements:
            key = (request.wh_code, m.loc_code, m.model_code, m.lot_code, m.serial_no)
            available = self._available(request.wh_code, m, None)
            if available < m.qty:
                del self.reservations[start:]
                return CommitResult(
                    False, request.doc_no,
                    f"{m.model_code} at {m.loc_code}: only {available} available",
                )
            self.reservations.append(_Reservation(request.doc_no, key, m.qty, m.line_id))
        return CommitResult(True, request.doc_no)

    def release(self, doc_no: str, line_id: int | None = None) -> int:
        before = len(self.reservations)
        self.reservations = [
            r for r in self.reservations
            if r.doc_no != doc_no or (line_id is not None and r.line_id != line_id)
        ]
        return before - len(self.reservations)

    def commit(self, request: CommitRequest) -> CommitResult:
        # Validate everything first so a failure leaves no trace
        for m in request.movements:
            key = (request.wh_code, m.loc_code, m.model_code, m.lot_code, m.serial_no)
            if request.direction > 0:
                if m.serial_no and key in self.stock and self.stock[key].qty > 0:
                    return CommitResult(False, request.doc_no, f"Serial {m.serial_no} is already on hand")
            else:
                available = self._available(request.wh_code, m, request.doc_no)
                if available < m.qty:
                    return CommitResult(
                        False, request.doc_no,
                        f"{m.model_code} at {m.loc_code}: only {available} available",
                    )

        for m in request.movements:
            key = (request.wh_code, m.loc_code, m.model_code, m.lot_code, m.serial_no)
            stock = self.stock.setdefault(key, _Stock(ZERO, m.expiry_date, date.today()))
            stock.qty += m.qty * request.direction
            if m.expiry_date:
                stock.expiry_date = m.expiry_date

        self.release(request.doc_no)
        self.committed.append(request)
        return CommitResult(True, request.doc_no)
