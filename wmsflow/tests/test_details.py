"""
Tests for line details variants.
"""

from datetime import date
from decimal import Decimal

import pytest

from wmsflow.details import (
    LotDetails,
    LotItem,
    NoneDetails,
    SerialDetails,
    SerialItem,
    check_variant,
    details_from_json,
    empty_details,
    to_decimal,
)
from wmsflow.exceptions import ValidationError
from wmsflow.models.enums import TrackingType


class TestTotals:
    """total is the fulfilled quantity of the line."""

    def test_none_total_is_qty(self):
        assert NoneDetails(Decimal('7')).total == Decimal('7')

    def test_lot_total_is_sum(self):
        details = LotDetails((LotItem('L1', Decimal('2')), LotItem('L2', Decimal('3.5'))))
        assert details.total == Decimal('5.5')

    def test_serial_total_is_count(self):
        details = SerialDetails((SerialItem('S1'), SerialItem('S2')))
        assert details.total == Decimal('2')

    @pytest.mark.parametrize('tracking_type', [TrackingType.NONE, TrackingType.LOT, TrackingType.SERIAL])
    def test_empty_details_total_zero(self, tracking_type):
        details = empty_details(tracking_type)
        assert details.is_empty()
        assert details.total == 0


class TestUniqueness:
    """Lot codes and serial numbers are unique within a line."""

    def test_duplicate_lot_rejected(self):
        with pytest.raises(ValidationError) as exc:
            LotDetails((LotItem('L1', Decimal('1')), LotItem('L1', Decimal('2'))))

        assert exc.value.code == 'DUPLICATE_LOT'

    def test_duplicate_serial_rejected(self):
        with pytest.raises(ValidationError) as exc:
            SerialDetails((SerialItem('S1'), SerialItem('S1')))

        assert exc.value.code == 'DUPLICATE_SERIAL'


class TestJson:
    """Stored JSON shape."""

    def test_lot_json_keeps_expiry(self):
        details = LotDetails((LotItem('L1', Decimal('2'), 'A-01', date(2026, 12, 1)),))
        data = details.to_json()

        assert data == [{'lot_code': 'L1', 'qty': '2', 'location_code': 'A-01',
                         'expiry_date': '2026-12-01'}]
        assert details_from_json(TrackingType.LOT, data) == details

    def test_zero_none_details_store_nothing(self):
        assert NoneDetails().to_json() == []
        assert details_from_json(TrackingType.NONE, []) == NoneDetails()

    def test_unknown_tracking_type(self):
        with pytest.raises(ValueError):
            details_from_json('Batch', [])


class TestVariantCheck:

    def test_mismatched_variant_rejected(self):
        with pytest.raises(ValidationError) as exc:
            check_variant(TrackingType.SERIAL, NoneDetails(Decimal('1')))

        assert exc.value.code == 'INVALID_LINE'

    def test_matching_variant_accepted(self):
        check_variant(TrackingType.LOT, LotDetails())


class TestToDecimal:

    def test_blank_is_zero(self):
        assert to_decimal('') == Decimal('0')
        assert to_decimal(None) == Decimal('0')

    def test_text_number(self):
        assert to_decimal(' 2.5 ') == Decimal('2.5')

    @pytest.mark.parametrize('value', ['abc', 'NaN', 'Infinity', '1,5'])
    def test_not_a_number(self, value):
        with pytest.raises(ValidationError) as exc:
            to_decimal(value, 'lines[0].qty_planned')

        assert exc.value.code == 'INVALID_QUANTITY'
        assert exc.value.field_errors == {'lines[0].qty_planned': 'Enter a number'}
