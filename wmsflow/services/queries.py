"""
Stock queries — read-only operations.

All reads go through the configured ledger and use no locking.
"""

from decimal import Decimal

from wmsflow.adapters.ledger import get_ledger
from wmsflow.models.enums import RecordStatus
from wmsflow.models.masterdata import Location, Warehouse

ZERO = Decimal('0')


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def available(cls, wh_code: str, model_code: str, loc_code: str | None = None,
                  exclude_doc_no: str | None = None, ledger=None) -> Decimal:
        """
        Available quantity of a model.

        available = onhand - allocated

        Args:
            wh_code: Warehouse
            model_code: Model
            loc_code: Specific location (None = whole warehouse)
            exclude_doc_no: Do not count this document's own reservations
        """
        ledger = ledger or get_ledger()
        records = ledger.onhand(
            wh_code,
            loc_codes=[loc_code] if loc_code else None,
            model_codes=[model_code],
            exclude_doc_no=exclude_doc_no,
        )
        return sum((r.available_qty for r in records), ZERO)

    @classmethod
    def default_location(cls, wh_code: str) -> str | None:
        """Code of the warehouse's active default put-away location."""
        return (
            Location.objects.filter(
                warehouse__code=wh_code,
                is_default=True,
                status=RecordStatus.ACTIVE,
            )
            .values_list('code', flat=True)
            .first()
        )

    @classmethod
    def location_onhand(cls, location: Location, ledger=None) -> Decimal:
        ledger = ledger or get_ledger()
        records = ledger.onhand(location.warehouse.code, loc_codes=[location.code])
        return sum((r.onhand_qty for r in records), ZERO)

    @classmethod
    def warehouse_onhand(cls, wh_code: str, ledger=None) -> Decimal:
        ledger = ledger or get_ledger()
        return sum((r.onhand_qty for r in ledger.onhand(wh_code)), ZERO)

    @classmethod
    def model_onhand(cls, model_code: str, ledger=None) -> Decimal:
        """Total on-hand of a model across every warehouse."""
        ledger = ledger or get_ledger()
        total = ZERO
        for wh_code in Warehouse.objects.values_list('code', flat=True):
            records = ledger.onhand(wh_code, model_codes=[model_code])
            total += sum((r.onhand_qty for r in records), ZERO)
        return total
