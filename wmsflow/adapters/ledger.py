"""
Ledger loader — returns the configured StockLedger backend.

Usage:
    from wmsflow.adapters import get_ledger

    ledger = get_ledger()
    ledger.onhand("WH01")

Settings:
    WMSFLOW = {
        "LEDGER_BACKEND": "wmsflow.adapters.quant_ledger.QuantLedger",
    }

Tests may install an instance directly with ``set_ledger()``.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from wmsflow.conf import wmsflow_settings
from wmsflow.protocols.ledger import StockLedger

logger = logging.getLogger(__name__)


# Cached backend instance
_lock = threading.Lock()
_ledger: StockLedger | None = None


def get_ledger() -> StockLedger:
    """
    Return the configured ledger backend.

    Raises:
        ImproperlyConfigured: If the backend cannot be imported or does not
            implement StockLedger
    """
    global _ledger

    if _ledger is None:
        with _lock:
            if _ledger is None:  # double-checked
                backend_path = wmsflow_settings.LEDGER_BACKEND
                try:
                    backend_class = import_string(backend_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import ledger backend '{backend_path}': {e}"
                    ) from e

                backend = backend_class()
                if not isinstance(backend, StockLedger):
                    raise ImproperlyConfigured(
                        f"'{backend_path}' does not implement the StockLedger protocol"
                    )
                _ledger = backend
                logger.debug("Loaded ledger backend: %s", backend_path)

    return _ledger


def set_ledger(ledger: StockLedger | None) -> None:
    """Install a ledger instance (or None to reload from settings)."""
    global _ledger
    with _lock:
        _ledger = ledger


def reset_ledger() -> None:
    """Reset the cached backend. Useful for testing."""
    set_ledger(None)
