"""
Allocation engine — turns user input into line details against on-hand.

    None:   qty clamped to [0, available at location]
    Lot:    qty per lot clamped to the lot's on-hand, qty <= 0 drops the lot
    Serial: toggle membership, only serials on hand can be added

Clamps are not errors: they come back as CapacityExceeded warnings next to
the corrected details. Unknown lots/serials are ValidationErrors.

The arithmetic lives in plain classmethods that take on-hand records, so it
can be exercised without a database; ``allocate_issue_line`` and
``record_receipt`` wire it to document lines and the ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping

from django.db import transaction

from wmsflow.details import (
    ZERO,
    LineDetails,
    LotDetails,
    LotItem,
    NoneDetails,
    SerialDetails,
    SerialItem,
    empty_details,
    parse_date,
    to_decimal,
)
from wmsflow.exceptions import CapacityExceeded, LedgerCommitFailure, ValidationError
from wmsflow.models.enums import IssueMode, TrackingType
from wmsflow.protocols.ledger import LotRecord, ReservationRequest, SerialRecord

logger = logging.getLogger('wmsflow')


@dataclass(frozen=True)
class AllocationResult:
    """Details produced by one allocation step, plus any clamp warnings."""

    details: LineDetails
    warnings: tuple[CapacityExceeded, ...] = field(default_factory=tuple)

    @property
    def total(self) -> Decimal:
        return self.details.total


class AllocationEngine:
    """Per-tracking-type allocation rules."""

    # ══════════════════════════════════════════════════════════════
    # ARITHMETIC (no I/O)
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def allocate_none(cls, available: Decimal, qty, location_code: str = '') -> AllocationResult:
        requested = to_decimal(qty)
        clamped = min(max(requested, ZERO), max(available, ZERO))
        warnings = ()
        if clamped != requested and requested > 0:
            warnings = (CapacityExceeded('qty', requested, clamped),)
        return AllocationResult(NoneDetails(clamped, location_code), warnings)

    @classmethod
    def allocate_lots(cls, current: LotDetails, lots: Iterable[LotRecord],
                      entries: Mapping[str, Any], location_code: str = '') -> AllocationResult:
        """
        Apply ``{lot_code: qty}`` entries to the current lot details.

        Lots not named in ``entries`` keep their current quantity.
        """
        on_hand = {lot.lot_code: lot for lot in lots}
        items = {item.lot_code: item for item in current.items}
        warnings = []

        for lot_code, raw_qty in entries.items():
            requested = to_decimal(raw_qty, f'lots[{lot_code}]')
            if requested <= 0:
                items.pop(lot_code, None)
                continue

            lot = on_hand.get(lot_code)
            if lot is None:
                raise ValidationError(
                    'UNKNOWN_LOT',
                    f"Lot {lot_code} is not on hand at {location_code or 'this location'}",
                    field_errors={f'lots[{lot_code}]': 'Unknown lot'},
                    lot_code=lot_code,
                )

            qty = requested
            if requested > lot.onhand_qty:
                qty = lot.onhand_qty
                warnings.append(CapacityExceeded(f'lots[{lot_code}]', requested, qty))

            items[lot_code] = LotItem(lot_code, qty, location_code, lot.expiry_date)

        ordered = tuple(
            items[lot.lot_code] for lot in on_hand.values() if lot.lot_code in items
        ) + tuple(item for code, item in items.items() if code not in on_hand)
        return AllocationResult(LotDetails(ordered), tuple(warnings))

    @classmethod
    def toggle_serials(cls, current: SerialDetails, serials: Iterable[SerialRecord],
                       toggles: Iterable[str], location_code: str = '') -> AllocationResult:
        """Flip membership of each serial in ``toggles``."""
        on_hand = {record.serial_no for record in serials}
        items = {item.serial_no: item for item in current.items}

        for serial_no in toggles:
            if serial_no in items:
                del items[serial_no]
            elif serial_no in on_hand:
                items[serial_no] = SerialItem(serial_no, location_code)
            else:
                raise ValidationError(
                    'UNKNOWN_SERIAL',
                    f"Serial {serial_no} is not available at {location_code or 'this location'}",
                    field_errors={f'serials[{serial_no}]': 'Unknown serial'},
                    serial_no=serial_no,
                )

        return AllocationResult(SerialDetails(tuple(items.values())))

    # ══════════════════════════════════════════════════════════════
    # ISSUE LINES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def allocate_issue_line(cls, line, location_code: str, user_input, ledger) -> AllocationResult:
        """
        Allocate an issue line at ``location_code`` and store the details.

        user_input by tracking type:
            None:   quantity
            Lot:    mapping lot_code -> quantity
            Serial: serial number, or iterable of serial numbers, to toggle

        Selecting a different location than the line's current one discards
        the line's details first, and moves any reservation the line holds
        to what is picked at the new location.

        Raises:
            ValidationError('NOT_EDITABLE'): Issue not in a fulfilment status
            ValidationError('NO_LOCATION'): location_code is blank
        """
        issue = line.issue
        if issue.status not in issue.lifecycle.fulfilment:
            raise ValidationError(
                'NOT_EDITABLE',
                f"{issue.doc_no} is {issue.status}; picking cannot be changed",
                status=issue.status,
            )
        if not location_code:
            raise ValidationError('NO_LOCATION', field_errors={'location_code': 'Select a location'})

        current = line.details
        location_changed = location_code != line.location_code
        if location_changed:
            if not current.is_empty():
                logger.info(
                    "allocation.location_changed",
                    extra={"doc_no": issue.doc_no, "line_id": line.pk,
                           "old": line.location_code, "new": location_code},
                )
            current = empty_details(line.tracking_type)
            line.location_code = location_code

        wh_code = issue.source_wh_code
        tt = line.tracking_type

        if tt == TrackingType.NONE:
            records = ledger.onhand(
                wh_code, loc_codes=[location_code], model_codes=[line.model_code],
                exclude_doc_no=issue.doc_no,
            )
            available = sum((r.available_qty for r in records), ZERO)
            result = cls.allocate_none(available, user_input, location_code)
        elif tt == TrackingType.LOT:
            lots = ledger.lots(wh_code, location_code, line.model_code)
            result = cls.allocate_lots(current, lots, user_input, location_code)
        else:
            toggles = [user_input] if isinstance(user_input, str) else list(user_input)
            serials = ledger.serials(
                wh_code, location_code, line.model_code, exclude_doc_no=issue.doc_no,
            )
            result = cls.allocate_serials_for_line(current, serials, toggles, location_code)

        for warning in result.warnings:
            logger.warning(
                "allocation.clamped",
                extra={"doc_no": issue.doc_no, "line_id": line.pk, "field": warning.field,
                       "requested": str(warning.requested), "max": str(warning.max_usable)},
            )

        line.set_details(result.details)
        update_fields = ['details_data', 'qty_picked', 'location_code']
        if issue.status in issue.lifecycle.editable and issue.issue_mode == IssueMode.DETAIL:
            line.qty_planned = result.total
            update_fields.append('qty_planned')
        with transaction.atomic():
            line.save(update_fields=update_fields)
            if location_changed:
                cls._move_reservation(issue, line, ledger)
        return result

    @classmethod
    def _move_reservation(cls, issue, line, ledger) -> None:
        """Release the line's reservation and reserve its new picking instead."""
        from wmsflow.services.lifecycle import DocumentLifecycle

        if not ledger.release(issue.doc_no, line_id=line.pk):
            return

        movements = DocumentLifecycle.detail_movements(line, line.location_code)
        if movements:
            result = ledger.reserve(ReservationRequest(
                doc_no=issue.doc_no,
                wh_code=issue.source_wh_code,
                movements=tuple(movements),
            ))
            if not result.ok:
                raise LedgerCommitFailure('RESERVE_FAILED', result.message, doc_no=issue.doc_no)

        logger.info(
            "allocation.reservation_moved",
            extra={"doc_no": issue.doc_no, "line_id": line.pk, "location": line.location_code},
        )

    @classmethod
    def allocate_serials_for_line(cls, current, serials, toggles, location_code) -> AllocationResult:
        # Serials already on the line stay selectable even when reserved
        known = list(serials) + [SerialRecord(s) for s in current.serial_nos]
        return cls.toggle_serials(current, known, toggles, location_code)

    # ══════════════════════════════════════════════════════════════
    # RECEIPT LINES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def build_receipt_details(cls, tracking_type: str, user_input,
                              location_code: str = '') -> LineDetails:
        """
        Build receipt details from entered data.

        user_input by tracking type:
            None:   quantity (>= 0)
            Lot:    iterable of {lot_code, qty, expiry_date?}, qty > 0
            Serial: iterable of serial numbers
        """
        if tracking_type == TrackingType.NONE:
            qty = to_decimal(user_input)
            if qty < 0:
                raise ValidationError('INVALID_QUANTITY', field_errors={'qty': 'Must be 0 or more'})
            return NoneDetails(qty, location_code)

        if tracking_type == TrackingType.LOT:
            items = []
            for i, row in enumerate(user_input):
                lot_code = (row.get('lot_code') or '').strip()
                qty = to_decimal(row.get('qty'), f'lots[{i}].qty')
                if not lot_code:
                    raise ValidationError('REQUIRED', field_errors={f'lots[{i}].lot_code': 'Required'})
                if qty <= 0:
                    raise ValidationError(
                        'INVALID_QUANTITY',
                        field_errors={f'lots[{i}].qty': 'Must be greater than 0'},
                    )
                items.append(LotItem(lot_code, qty, location_code, parse_date(row.get('expiry_date'))))
            return LotDetails(tuple(items))

        serials = [str(s).strip() for s in user_input]
        if any(not s for s in serials):
            raise ValidationError('REQUIRED', field_errors={'serials': 'Serial number cannot be blank'})
        return SerialDetails(tuple(SerialItem(s, location_code) for s in serials))

    @classmethod
    def record_receipt(cls, line, user_input, location_code: str | None = None):
        """
        Store received details on a receipt line.

        Derives qty_received; diff_qty follows as qty_received - qty_planned.
        """
        receipt = line.receipt
        if receipt.status not in receipt.lifecycle.fulfilment:
            raise ValidationError(
                'NOT_EDITABLE',
                f"{receipt.doc_no} is {receipt.status}; reception cannot be changed",
                status=receipt.status,
            )
        if location_code is not None:
            line.location_code = location_code

        details = cls.build_receipt_details(line.tracking_type, user_input, line.location_code)
        line.set_details(details)
        line.save(update_fields=['details_data', 'qty_received', 'location_code'])

        logger.info(
            "receipt.recorded",
            extra={"doc_no": receipt.doc_no, "line_id": line.pk,
                   "qty_received": str(line.qty_received), "diff_qty": str(line.diff_qty)},
        )
        return line

