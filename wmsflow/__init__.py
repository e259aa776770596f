"""
Django WMS Flow — warehouse document lifecycle and stock allocation.

Goods receipts, goods issues, transfers between warehouses and inventory
counts, each moving through a fixed status lifecycle on top of a stock
ledger.

Usage:
    from wmsflow import wms, WmsError

    result = wms.create('Issue', {'source_wh_code': 'WH1'}, lines, actor='alex')
    wms.transition(result.document, 'New', actor='alex')
    wms.available('WH1', 'TSHIRT-RED')  # Decimal('10')
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'wms':
        from wmsflow.service import Wms
        return Wms
    elif name == 'WmsError':
        from wmsflow.exceptions import WmsError
        return WmsError
    elif name == 'GoodsReceipt':
        from wmsflow.models.documents import GoodsReceipt
        return GoodsReceipt
    elif name == 'GoodsIssue':
        from wmsflow.models.documents import GoodsIssue
        return GoodsIssue
    elif name == 'GoodsTransfer':
        from wmsflow.models.documents import GoodsTransfer
        return GoodsTransfer
    elif name == 'InventoryCount':
        from wmsflow.models.documents import InventoryCount
        return InventoryCount
    elif name == 'Quant':
        from wmsflow.models.quant import Quant
        return Quant
    elif name == 'Move':
        from wmsflow.models.move import Move
        return Move
    elif name == 'Allocation':
        from wmsflow.models.allocation import Allocation
        return Allocation
    elif name == 'TrackingType':
        from wmsflow.models.enums import TrackingType
        return TrackingType
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'wms',
    'WmsError',
    'GoodsReceipt',
    'GoodsIssue',
    'GoodsTransfer',
    'InventoryCount',
    'Quant',
    'Move',
    'Allocation',
    'TrackingType',
]

__version__ = '0.1.0'
