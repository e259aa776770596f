"""
Quant ledger — StockLedger backed by the Quant/Move/Allocation tables.

    available = sum(Quant._quantity) - sum(active Allocation.quantity)

Reads use no locking. ``reserve`` and ``commit`` run in a savepoint,
lock the quants they touch with select_for_update() and either apply
every movement or none.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Sequence

from django.db import transaction
from django.db.models import Min, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from wmsflow.exceptions import LedgerCommitFailure, WmsError
from wmsflow.models.allocation import Allocation
from wmsflow.models.enums import AllocationStatus
from wmsflow.models.masterdata import Location, ModelGoods
from wmsflow.models.move import Move
from wmsflow.models.quant import Quant
from wmsflow.protocols.ledger import (
    CommitRequest,
    CommitResult,
    LotRecord,
    OnhandRecord,
    ReservationRequest,
    SerialRecord,
    StockMovement,
)

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def _active_allocations(exclude_doc_no: str | None = None):
    qs = Allocation.objects.active()
    if exclude_doc_no:
        qs = qs.exclude(doc_no=exclude_doc_no)
    return qs


def _total(allocations) -> Decimal:
    return allocations.aggregate(t=Coalesce(Sum('quantity'), ZERO))['t']


class QuantLedger:
    """Default StockLedger implementation."""

    # ══════════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════════

    def onhand(
        self,
        wh_code: str,
        loc_codes: Sequence[str] | None = None,
        model_codes: Sequence[str] | None = None,
        exclude_doc_no: str | None = None,
    ) -> list[OnhandRecord]:
        quants = Quant.objects.in_warehouse(wh_code)
        allocations = _active_allocations(exclude_doc_no).filter(
            location__warehouse__code=wh_code
        )
        if loc_codes is not None:
            quants = quants.filter(location__code__in=loc_codes)
            allocations = allocations.filter(location__code__in=loc_codes)
        if model_codes is not None:
            quants = quants.filter(model__code__in=model_codes)
            allocations = allocations.filter(model__code__in=model_codes)

        onhand: dict[tuple[str, str], Decimal] = defaultdict(lambda: ZERO)
        for row in quants.values('location__code', 'model__code').annotate(
            total=Coalesce(Sum('_quantity'), ZERO)
        ):
            onhand[(row['location__code'], row['model__code'])] += row['total']

        allocated: dict[tuple[str, str], Decimal] = defaultdict(lambda: ZERO)
        for row in allocations.values('location__code', 'model__code').annotate(
            total=Coalesce(Sum('quantity'), ZERO)
        ):
            allocated[(row['location__code'], row['model__code'])] += row['total']

        return [
            OnhandRecord(
                wh_code=wh_code,
                loc_code=loc_code,
                model_code=model_code,
                onhand_qty=onhand[(loc_code, model_code)],
                allocated_qty=allocated[(loc_code, model_code)],
            )
            for loc_code, model_code in sorted(set(onhand) | set(allocated))
            if onhand[(loc_code, model_code)] or allocated[(loc_code, model_code)]
        ]

    def lots(self, wh_code: str, loc_code: str, model_code: str) -> list[LotRecord]:
        rows = (
            Quant.objects.at(wh_code, loc_code, model_code)
            .exclude(lot_code='')
            .values('lot_code')
            .annotate(
                total=Coalesce(Sum('_quantity'), ZERO),
                expiry=Min('expiry_date'),
                received=Min('receipt_date'),
            )
            .filter(total__gt=0)
        )
        records = [
            LotRecord(
                lot_code=row['lot_code'],
                onhand_qty=row['total'],
                expiry_date=row['expiry'],
                receipt_date=row['received'],
            )
            for row in rows
        ]
        # FEFO: earliest expiry first, undated lots last
        return sorted(records, key=lambda r: (
            r.expiry_date or date.max,
            r.receipt_date or date.max,
            r.lot_code,
        ))

    def serials(self, wh_code: str, loc_code: str, model_code: str,
                exclude_doc_no: str | None = None) -> list[SerialRecord]:
        reserved = _active_allocations(exclude_doc_no).filter(
            location__warehouse__code=wh_code,
            location__code=loc_code,
            model__code=model_code,
        ).exclude(serial_no='').values_list('serial_no', flat=True)

        quants = (
            Quant.objects.at(wh_code, loc_code, model_code)
            .on_hand()
            .exclude(serial_no='')
            .exclude(serial_no__in=list(reserved))
            .order_by('receipt_date', 'serial_no')
        )
        return [
            SerialRecord(
                serial_no=q.serial_no,
                receipt_date=q.receipt_date,
                expiry_date=q.expiry_date,
            )
            for q in quants
        ]

    # ══════════════════════════════════════════════════════════════
    # WRITES
    # ══════════════════════════════════════════════════════════════

    def reserve(self, request: ReservationRequest) -> CommitResult:
        try:
            with transaction.atomic():
                for movement in request.movements:
                    location, model = self._resolve(request.wh_code, movement)
                    quants = self._lock_quants(location, model, movement)
                    onhand = sum((q._quantity for q in quants), ZERO)
                    free = self._free(location, model, movement, onhand)
                    if free < movement.qty:
                        raise LedgerCommitFailure(
                            'RESERVE_FAILED',
                            f"{movement.model_code} at {movement.loc_code}: "
                            f"only {free} available",
                            requested=movement.qty,
                        )
                    Allocation.objects.create(
                        location=location,
                        model=model,
                        lot_code=movement.lot_code,
                        serial_no=movement.serial_no,
                        quantity=movement.qty,
                        doc_no=request.doc_no,
                        line_id=movement.line_id,
                    )
        except WmsError as e:
            logger.warning(
                "ledger.reserve_failed",
                extra={"doc_no": request.doc_no, "reason": e.message},
            )
            return CommitResult(ok=False, doc_no=request.doc_no, message=e.message)

        logger.info(
            "ledger.reserve",
            extra={"doc_no": request.doc_no, "movements": len(request.movements)},
        )
        return CommitResult(ok=True, doc_no=request.doc_no)

    def release(self, doc_no: str, line_id: int | None = None) -> int:
        allocations = Allocation.objects.active().for_document(doc_no)
        if line_id is not None:
            allocations = allocations.filter(line_id=line_id)
        released = allocations.update(
            status=AllocationStatus.RELEASED,
            resolved_at=timezone.now(),
        )
        if released:
            logger.info(
                "ledger.release",
                extra={"doc_no": doc_no, "line_id": line_id, "count": released},
            )
        return released

    def commit(self, request: CommitRequest) -> CommitResult:
        reason = f"{request.doc_kind} {request.doc_no}"
        try:
            with transaction.atomic():
                for movement in request.movements:
                    location, model = self._resolve(request.wh_code, movement)
                    if request.direction > 0:
                        self._put(location, model, movement, request, reason)
                    else:
                        self._take(location, model, movement, request, reason)

                Allocation.objects.active().for_document(request.doc_no).update(
                    status=AllocationStatus.CONSUMED,
                    resolved_at=timezone.now(),
                )
        except WmsError as e:
            logger.warning(
                "ledger.commit_failed",
                extra={"doc_no": request.doc_no, "reason": e.message},
            )
            return CommitResult(ok=False, doc_no=request.doc_no, message=e.message)

        logger.info(
            "ledger.commit",
            extra={
                "doc_no": request.doc_no,
                "direction": request.direction,
                "movements": len(request.movements),
            },
        )
        return CommitResult(ok=True, doc_no=request.doc_no)

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    def _resolve(self, wh_code: str, movement: StockMovement) -> tuple[Location, ModelGoods]:
        try:
            location = Location.objects.get(warehouse__code=wh_code, code=movement.loc_code)
        except Location.DoesNotExist:
            raise LedgerCommitFailure(
                'COMMIT_FAILED', f"Unknown location {wh_code}/{movement.loc_code}"
            ) from None
        try:
            model = ModelGoods.objects.get(code=movement.model_code)
        except ModelGoods.DoesNotExist:
            raise LedgerCommitFailure(
                'COMMIT_FAILED', f"Unknown model {movement.model_code}"
            ) from None
        return location, model

    def _lock_quants(self, location, model, movement: StockMovement) -> list[Quant]:
        qs = Quant.objects.select_for_update().filter(location=location, model=model)
        if movement.serial_no:
            qs = qs.filter(serial_no=movement.serial_no)
        elif movement.lot_code:
            qs = qs.filter(lot_code=movement.lot_code)
        return list(qs)

    def _free(self, location, model, movement: StockMovement, coordinate_onhand: Decimal,
              exclude_doc_no: str | None = None) -> Decimal:
        """
        Quantity of the movement's coordinate not held by reservations.

        Lot and serial stock is bounded twice: by reservations on that lot
        or serial, and by every reservation at the location (untracked
        Summary reservations included).
        """
        others = _active_allocations(exclude_doc_no).filter(location=location, model=model)
        location_free = (
            Quant.objects.filter(location=location, model=model)
            .aggregate(t=Coalesce(Sum('_quantity'), ZERO))['t']
            - _total(others)
        )
        if movement.serial_no:
            coordinate = others.filter(serial_no=movement.serial_no)
        elif movement.lot_code:
            coordinate = others.filter(lot_code=movement.lot_code)
        else:
            return location_free
        return min(coordinate_onhand - _total(coordinate), location_free)

    def _put(self, location, model, movement: StockMovement, request: CommitRequest, reason: str):
        quant, _ = Quant.objects.select_for_update().get_or_create(
            location=location,
            model=model,
            lot_code=movement.lot_code,
            serial_no=movement.serial_no,
            defaults={
                'expiry_date': movement.expiry_date,
                'receipt_date': timezone.localdate(),
            },
        )
        if movement.serial_no and (quant._quantity > 0 or movement.qty != 1):
            raise LedgerCommitFailure(
                'COMMIT_FAILED',
                f"Serial {movement.serial_no} is already on hand",
                serial_no=movement.serial_no,
            )
        if movement.expiry_date and quant.expiry_date != movement.expiry_date:
            quant.expiry_date = movement.expiry_date
            quant.save(update_fields=['expiry_date', 'updated_at'])

        Move.objects.create(
            quant=quant,
            delta=movement.qty,
            doc_no=request.doc_no,
            line_id=movement.line_id,
            reason=reason,
            actor=request.actor,
        )

    def _take(self, location, model, movement: StockMovement, request: CommitRequest, reason: str):
        try:
            quant = Quant.objects.select_for_update().get(
                location=location,
                model=model,
                lot_code=movement.lot_code,
                serial_no=movement.serial_no,
            )
        except Quant.DoesNotExist:
            raise LedgerCommitFailure(
                'COMMIT_FAILED',
                f"{movement.model_code} {movement.lot_code or movement.serial_no} "
                f"is not on hand at {movement.loc_code}",
            ) from None

        available = self._free(
            location, model, movement, quant._quantity, exclude_doc_no=request.doc_no,
        )
        if available < movement.qty:
            raise LedgerCommitFailure(
                'COMMIT_FAILED',
                f"{movement.model_code} at {movement.loc_code}: "
                f"only {available} available, {movement.qty} requested",
                available=available,
                requested=movement.qty,
            )

        Move.objects.create(
            quant=quant,
            delta=-movement.qty,
            doc_no=request.doc_no,
            line_id=movement.line_id,
            reason=reason,
            actor=request.actor,
        )
