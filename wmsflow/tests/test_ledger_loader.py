"""
Tests for the settings-driven ledger loader.
"""

import pytest
from django.core.exceptions import ImproperlyConfigured

from wmsflow.adapters import get_ledger, reset_ledger, set_ledger
from wmsflow.adapters.memory import InMemoryLedger
from wmsflow.adapters.quant_ledger import QuantLedger


class NotALedger:
    pass


class TestGetLedger:

    def test_default_backend(self):
        assert isinstance(get_ledger(), QuantLedger)

    def test_cached(self):
        assert get_ledger() is get_ledger()

    def test_installed_instance(self):
        ledger = InMemoryLedger()
        set_ledger(ledger)

        assert get_ledger() is ledger

    def test_unimportable_backend(self, settings):
        settings.WMSFLOW = {'LEDGER_BACKEND': 'wmsflow.adapters.nope.Ledger'}
        reset_ledger()

        with pytest.raises(ImproperlyConfigured, match='Failed to import'):
            get_ledger()

    def test_backend_without_protocol(self, settings):
        settings.WMSFLOW = {'LEDGER_BACKEND': f'{__name__}.NotALedger'}
        reset_ledger()

        with pytest.raises(ImproperlyConfigured, match='StockLedger'):
            get_ledger()
