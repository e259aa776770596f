"""
Inventory counts — plan, snapshot, count, variance.

    generate_plan()  Draft only: one line per (location, model) on hand
    snapshot()       leaving Draft: system_qty := on-hand, fixed from then on
    record_count()   Counting: counted_qty entered (again = recount)

variance = counted_qty - system_qty (InventoryCountLine.variance).
Completing a count does not move stock.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from wmsflow.adapters.ledger import get_ledger
from wmsflow.details import to_decimal
from wmsflow.exceptions import GuardViolation, ValidationError
from wmsflow.models.documents import InventoryCount, InventoryCountLine
from wmsflow.models.enums import CountScope, TrackingType
from wmsflow.models.masterdata import ModelGoods

logger = logging.getLogger('wmsflow')

ZERO = Decimal('0')


class InventoryCountPlanner:

    @classmethod
    def scope_filters(cls, scope: str, locations=None, models=None) -> tuple[list | None, list | None]:
        """
        (loc_codes, model_codes) filters for a scope.

        Raises:
            ValidationError('INVALID_SCOPE'): selection missing for the scope
        """
        locations = list(locations or [])
        models = list(models or [])

        if scope == CountScope.FULL:
            return None, None
        if scope == CountScope.BY_LOCATION:
            if not locations:
                raise ValidationError(
                    'INVALID_SCOPE',
                    'Select at least one location',
                    field_errors={'selected_locations': 'Select at least one location'},
                )
            return locations, None
        if scope == CountScope.BY_ITEM:
            if not models:
                raise ValidationError(
                    'INVALID_SCOPE',
                    'Select at least one model',
                    field_errors={'selected_models': 'Select at least one model'},
                )
            return None, models
        raise ValidationError('INVALID_SCOPE', f"Unknown count type {scope!r}")

    @classmethod
    def generate_plan(cls, count: InventoryCount, scope: str | None = None,
                      locations=None, models=None, confirmed: bool = False,
                      ledger=None) -> list[InventoryCountLine]:
        """
        Replace the count's lines with one line per on-hand (location, model).

        system_qty stays 0 until the count leaves Draft.

        Raises:
            ValidationError('NOT_EDITABLE'): count is not Draft
            ValidationError('INVALID_SCOPE'): empty selection
            GuardViolation('LINES_EXIST'): lines exist and not confirmed
        """
        if not count.lifecycle.is_editable(count.status):
            raise ValidationError('NOT_EDITABLE', doc_no=count.doc_no, status=count.status)
        if not count.wh_code:
            raise ValidationError('REQUIRED', field_errors={'wh_code': 'Required'})

        scope = scope or count.count_type
        if locations is None:
            locations = count.selected_locations
        if models is None:
            models = count.selected_models
        loc_codes, model_codes = cls.scope_filters(scope, locations, models)

        existing = count.lines.count()
        if existing and not confirmed:
            raise GuardViolation(
                'LINES_EXIST',
                f"Regenerating the plan discards {existing} existing lines",
                doc_no=count.doc_no,
                lines=existing,
            )

        ledger = ledger or get_ledger()
        records = [
            r for r in ledger.onhand(count.wh_code, loc_codes=loc_codes, model_codes=model_codes)
            if r.onhand_qty > 0
        ]
        models_by_code = {
            code: (tracking_type, uom)
            for code, tracking_type, uom in ModelGoods.objects.filter(
                code__in={r.model_code for r in records}
            ).values_list('code', 'tracking_type', 'base_uom__code')
        }

        with transaction.atomic():
            count.lines.all().delete()
            count.count_type = scope
            count.selected_locations = list(locations or []) if scope == CountScope.BY_LOCATION else []
            count.selected_models = list(models or []) if scope == CountScope.BY_ITEM else []
            count.save(update_fields=['count_type', 'selected_locations', 'selected_models', 'updated_at'])

            lines = InventoryCountLine.objects.bulk_create([
                InventoryCountLine(
                    count=count,
                    line_no=i + 1,
                    location_code=r.loc_code,
                    model_code=r.model_code,
                    tracking_type=models_by_code.get(r.model_code, (TrackingType.NONE, ''))[0],
                    uom=models_by_code.get(r.model_code, (TrackingType.NONE, ''))[1] or '',
                    system_qty=ZERO,
                )
                for i, r in enumerate(records)
            ])

        logger.info(
            "count.plan_generated",
            extra={"doc_no": count.doc_no, "scope": scope, "lines": len(lines)},
        )
        return lines

    @classmethod
    def snapshot(cls, count: InventoryCount, ledger=None) -> None:
        """Freeze system_qty of every line at the current on-hand."""
        ledger = ledger or get_ledger()
        lines = list(count.lines.all())
        records = ledger.onhand(
            count.wh_code,
            loc_codes=sorted({line.location_code for line in lines}),
            model_codes=sorted({line.model_code for line in lines}),
        )
        onhand = {(r.loc_code, r.model_code): r.onhand_qty for r in records}

        now = timezone.now()
        for line in lines:
            line.system_qty = onhand.get((line.location_code, line.model_code), ZERO)
        InventoryCountLine.objects.bulk_update(lines, ['system_qty'])

        count.snapshot_at = now
        count.save(update_fields=['snapshot_at', 'updated_at'])

        logger.info(
            "count.snapshot",
            extra={"doc_no": count.doc_no, "lines": len(lines), "at": now.isoformat()},
        )

    @classmethod
    def record_count(cls, line: InventoryCountLine, counted_qty) -> InventoryCountLine:
        """
        Enter the counted quantity. Entering it again marks the line recounted.

        Raises:
            ValidationError('NOT_EDITABLE'): count is not Counting
            ValidationError('INVALID_QUANTITY'): negative quantity
        """
        count = line.count
        if count.status not in count.lifecycle.fulfilment:
            raise ValidationError(
                'NOT_EDITABLE',
                f"{count.doc_no} is {count.status}; counts cannot be entered",
                status=count.status,
            )
        qty = to_decimal(counted_qty, 'counted_qty')
        if qty < 0:
            raise ValidationError('INVALID_QUANTITY', field_errors={'counted_qty': 'Must be 0 or more'})

        if line.counted_qty is not None:
            line.is_recounted = True
        line.counted_qty = qty
        line.save(update_fields=['counted_qty', 'is_recounted'])
        return line
