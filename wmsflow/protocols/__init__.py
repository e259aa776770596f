"""
wmsflow Protocols.

Defines interfaces for external system integration.
"""

from wmsflow.protocols.ledger import (
    CommitRequest,
    CommitResult,
    LotRecord,
    OnhandRecord,
    ReservationRequest,
    SerialRecord,
    StockLedger,
    StockMovement,
)

__all__ = [
    "CommitRequest",
    "CommitResult",
    "LotRecord",
    "OnhandRecord",
    "ReservationRequest",
    "SerialRecord",
    "StockLedger",
    "StockMovement",
]
