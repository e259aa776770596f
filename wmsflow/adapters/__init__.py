"""
wmsflow Adapters.

Implementations of the StockLedger protocol and the loader that picks one.
"""

from wmsflow.adapters.ledger import get_ledger, reset_ledger, set_ledger

__all__ = [
    "get_ledger",
    "reset_ledger",
    "set_ledger",
]
