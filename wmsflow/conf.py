"""
wmsflow configuration.

Usage in settings.py:
    WMSFLOW = {
        "LEDGER_BACKEND": "wmsflow.adapters.quant_ledger.QuantLedger",
        "DOC_SEQ_WIDTH": 3,
        "RESERVE_ON_SUBMIT": True,
        "SYSTEM_ACTOR": "System",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class WmsflowSettings:
    """wmsflow configuration settings."""

    # Stock ledger backend (dotted path)
    LEDGER_BACKEND: str = "wmsflow.adapters.quant_ledger.QuantLedger"

    # Zero padding of the sequence part of document numbers
    DOC_SEQ_WIDTH: int = 3

    # Reserve issue quantities when an issue leaves Draft
    RESERVE_ON_SUBMIT: bool = True

    # Actor recorded on automated transitions
    SYSTEM_ACTOR: str = "System"


def get_wmsflow_settings() -> WmsflowSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "WMSFLOW", {})
    return WmsflowSettings(**{
        k: v for k, v in user_settings.items()
        if k in WmsflowSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_wmsflow_settings(), name)


wmsflow_settings = _LazySettings()
