"""
wmsflow Models.

- Master data: Organization, Branch, Warehouse, Location, Partner,
  GoodsType, Uom, ModelGoods
- Stock ledger: Quant (on-hand cache), Move (immutable), Allocation
- Documents: GoodsReceipt, GoodsIssue, GoodsTransfer, InventoryCount
  and their lines
- StatusEvent: append-only status history
- DocumentSequence: per-period document numbering
"""

from wmsflow.models.allocation import Allocation
from wmsflow.models.documents import (
    DOCUMENT_MODELS,
    PREFIXES,
    GoodsIssue,
    GoodsIssueLine,
    GoodsReceipt,
    GoodsReceiptLine,
    GoodsTransfer,
    GoodsTransferLine,
    InventoryCount,
    InventoryCountLine,
)
from wmsflow.models.enums import (
    AllocationStatus,
    CountScope,
    CountStatus,
    DocumentKind,
    EditMode,
    IssueMode,
    IssueStatus,
    IssueType,
    ReceiptStatus,
    ReceiptType,
    RecordStatus,
    TrackingType,
    TransferStatus,
)
from wmsflow.models.history import DocumentSequence, StatusEvent
from wmsflow.models.masterdata import (
    Branch,
    GoodsType,
    Location,
    ModelGoods,
    Organization,
    Partner,
    Uom,
    Warehouse,
)
from wmsflow.models.move import Move
from wmsflow.models.quant import Quant

__all__ = [
    'AllocationStatus',
    'CountScope',
    'CountStatus',
    'DocumentKind',
    'EditMode',
    'IssueMode',
    'IssueStatus',
    'IssueType',
    'ReceiptStatus',
    'ReceiptType',
    'RecordStatus',
    'TrackingType',
    'TransferStatus',
    'Organization',
    'Branch',
    'Warehouse',
    'Location',
    'Partner',
    'GoodsType',
    'Uom',
    'ModelGoods',
    'Quant',
    'Move',
    'Allocation',
    'GoodsReceipt',
    'GoodsReceiptLine',
    'GoodsIssue',
    'GoodsIssueLine',
    'GoodsTransfer',
    'GoodsTransferLine',
    'InventoryCount',
    'InventoryCountLine',
    'DOCUMENT_MODELS',
    'PREFIXES',
    'StatusEvent',
    'DocumentSequence',
]
