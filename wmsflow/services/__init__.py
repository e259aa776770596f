"""
wmsflow services — one module per component.

    from wmsflow.services import DocumentLifecycle, AllocationEngine, ...
"""

from wmsflow.services.allocation import AllocationEngine, AllocationResult
from wmsflow.services.counting import InventoryCountPlanner
from wmsflow.services.documents import DocumentEditor, SaveResult, find_document
from wmsflow.services.guards import GuardOutcome, Guards
from wmsflow.services.history import StatusHistory
from wmsflow.services.lifecycle import DocumentLifecycle
from wmsflow.services.numbering import DocumentNumbers
from wmsflow.services.queries import StockQueries
from wmsflow.services.transfers import TransferOrchestrator, derive_transfer_status

__all__ = [
    'AllocationEngine',
    'AllocationResult',
    'DocumentEditor',
    'DocumentLifecycle',
    'DocumentNumbers',
    'GuardOutcome',
    'Guards',
    'InventoryCountPlanner',
    'SaveResult',
    'StatusHistory',
    'StockQueries',
    'TransferOrchestrator',
    'derive_transfer_status',
    'find_document',
]
