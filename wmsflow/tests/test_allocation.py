"""
Tests for the allocation engine.
"""

from datetime import date
from decimal import Decimal

import pytest

from wmsflow import wms
from wmsflow.details import LotDetails, LotItem, NoneDetails, SerialDetails
from wmsflow.exceptions import ValidationError
from wmsflow.models.enums import TrackingType
from wmsflow.protocols.ledger import LotRecord, SerialRecord
from wmsflow.services.allocation import AllocationEngine


class TestAllocateNone:
    """Untracked quantity clamped to what the location has available."""

    def test_within_available(self):
        result = AllocationEngine.allocate_none(Decimal('10'), 4, 'A-01')

        assert result.details == NoneDetails(Decimal('4'), 'A-01')
        assert result.warnings == ()

    def test_clamped_with_warning(self):
        result = AllocationEngine.allocate_none(Decimal('10'), 15, 'A-01')

        assert result.total == Decimal('10')
        [warning] = result.warnings
        assert warning.field == 'qty'
        assert warning.requested == Decimal('15')
        assert warning.max_usable == Decimal('10')

    def test_negative_becomes_zero_silently(self):
        result = AllocationEngine.allocate_none(Decimal('10'), -3)

        assert result.total == Decimal('0')
        assert result.warnings == ()


class TestAllocateLots:
    """Per-lot quantities clamped to lot on-hand, in FEFO order."""

    LOTS = [
        LotRecord('L2', Decimal('5'), date(2026, 11, 1)),
        LotRecord('L1', Decimal('3'), date(2026, 12, 1)),
    ]

    def test_clamps_and_orders_fefo(self):
        result = AllocationEngine.allocate_lots(LotDetails(), self.LOTS, {'L1': 5, 'L2': 2}, 'A-01')

        assert [item.lot_code for item in result.details.items] == ['L2', 'L1']
        assert result.details.get('L1').qty == Decimal('3')
        assert result.total == Decimal('5')
        [warning] = result.warnings
        assert warning.field == 'lots[L1]'

    def test_zero_removes_lot(self):
        current = LotDetails((LotItem('L1', Decimal('2'), 'A-01'),))

        result = AllocationEngine.allocate_lots(current, self.LOTS, {'L1': 0})

        assert result.details.is_empty()

    def test_untouched_lots_are_kept(self):
        current = LotDetails((LotItem('L1', Decimal('2'), 'A-01'),))

        result = AllocationEngine.allocate_lots(current, self.LOTS, {'L2': 1}, 'A-01')

        assert result.total == Decimal('3')

    def test_unknown_lot(self):
        with pytest.raises(ValidationError) as exc:
            AllocationEngine.allocate_lots(LotDetails(), self.LOTS, {'L9': 1}, 'A-01')

        assert exc.value.code == 'UNKNOWN_LOT'


class TestToggleSerials:
    """Serial membership flips; only serials on hand can be added."""

    SERIALS = [SerialRecord('S1'), SerialRecord('S2')]

    def test_toggle_adds_then_removes(self):
        added = AllocationEngine.toggle_serials(SerialDetails(), self.SERIALS, ['S1', 'S2'])
        assert added.details.serial_nos == {'S1', 'S2'}

        removed = AllocationEngine.toggle_serials(added.details, self.SERIALS, ['S1'])
        assert removed.details.serial_nos == {'S2'}
        assert removed.total == Decimal('1')

    def test_unknown_serial(self):
        with pytest.raises(ValidationError) as exc:
            AllocationEngine.toggle_serials(SerialDetails(), self.SERIALS, ['S9'])

        assert exc.value.code == 'UNKNOWN_SERIAL'


class TestReceiptDetails:
    """Entered reception data."""

    def test_lot_requires_code(self):
        with pytest.raises(ValidationError) as exc:
            AllocationEngine.build_receipt_details(TrackingType.LOT, [{'lot_code': ' ', 'qty': 1}])

        assert exc.value.code == 'REQUIRED'

    def test_lot_requires_positive_qty(self):
        with pytest.raises(ValidationError) as exc:
            AllocationEngine.build_receipt_details(TrackingType.LOT, [{'lot_code': 'L1', 'qty': 0}])

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_lot_with_expiry(self):
        details = AllocationEngine.build_receipt_details(
            TrackingType.LOT, [{'lot_code': 'L1', 'qty': '2', 'expiry_date': '2026-12-01'}], 'A-02',
        )

        assert details.items[0].expiry_date == date(2026, 12, 1)
        assert details.items[0].location_code == 'A-02'

    def test_blank_serial(self):
        with pytest.raises(ValidationError) as exc:
            AllocationEngine.build_receipt_details(TrackingType.SERIAL, ['S1', ''])

        assert exc.value.code == 'REQUIRED'

    def test_negative_none_quantity(self):
        with pytest.raises(ValidationError) as exc:
            AllocationEngine.build_receipt_details(TrackingType.NONE, -1)

        assert exc.value.code == 'INVALID_QUANTITY'


@pytest.mark.django_db
class TestAllocateIssueLine:
    """allocate() on issue lines against an in-memory ledger."""

    @pytest.fixture
    def detail_issue(self, master):
        def _create(model_code):
            result = wms.create(
                'Issue',
                {'source_wh_code': 'WH1', 'issue_type': 'Other', 'issue_mode': 'Detail'},
                [{'model_code': model_code}],
                actor='alex',
            )
            return result.document

        return _create

    def test_clamped_to_location_available(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'TSHIRT', 10)
        issue = detail_issue('TSHIRT')
        line = issue.lines.get()

        result = wms.allocate(line, 'A-01', 12)

        line.refresh_from_db()
        assert result.total == Decimal('10')
        assert len(result.warnings) == 1
        assert line.qty_picked == Decimal('10')
        # Draft + Detail: planned follows the allocation
        assert line.qty_planned == Decimal('10')

    def test_changing_location_discards_details(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'TSHIRT', 10)
        memory_ledger.seed('WH1', 'A-02', 'TSHIRT', 5)
        issue = detail_issue('TSHIRT')
        line = issue.lines.get()
        wms.allocate(line, 'A-01', 4)

        wms.allocate(line, 'A-02', 3)

        line.refresh_from_db()
        assert line.location_code == 'A-02'
        assert line.details == NoneDetails(Decimal('3'), 'A-02')

    def test_own_reservation_does_not_reduce_available(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'TSHIRT', 5)
        issue = detail_issue('TSHIRT')
        line = issue.lines.get()
        wms.allocate(line, 'A-01', 3)
        wms.transition(issue, 'New', actor='alex')
        wms.transition(issue, 'Picking', actor='alex')

        result = wms.allocate(line, 'A-01', 5)

        assert result.total == Decimal('5')
        assert result.warnings == ()

    def test_non_numeric_quantity(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'TSHIRT', 5)
        line = detail_issue('TSHIRT').lines.get()

        with pytest.raises(ValidationError) as exc:
            wms.allocate(line, 'A-01', 'abc')

        assert exc.value.code == 'INVALID_QUANTITY'
        line.refresh_from_db()
        assert line.qty_picked == Decimal('0')

    def test_non_numeric_lot_quantity(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'MILK', 5, lot_code='L1')
        line = detail_issue('MILK').lines.get()

        with pytest.raises(ValidationError) as exc:
            wms.allocate(line, 'A-01', {'L1': 'five'})

        assert 'lots[L1]' in exc.value.field_errors

    def test_location_switch_moves_reservation(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'TSHIRT', 5)
        memory_ledger.seed('WH1', 'A-02', 'TSHIRT', 5)
        issue = detail_issue('TSHIRT')
        line = issue.lines.get()
        wms.allocate(line, 'A-01', 4)
        wms.transition(issue, 'New', actor='alex')
        wms.transition(issue, 'Picking', actor='alex')

        wms.allocate(line, 'A-02', 3)

        [reservation] = memory_ledger.reservations
        assert reservation.coordinate[1] == 'A-02'
        assert reservation.qty == Decimal('3')

    def test_not_in_fulfilment_status(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'TSHIRT', 5)
        issue = detail_issue('TSHIRT')
        line = issue.lines.get()
        wms.allocate(line, 'A-01', 1)
        wms.transition(issue, 'New', actor='alex')
        line.refresh_from_db()

        with pytest.raises(ValidationError) as exc:
            wms.allocate(line, 'A-01', 2)

        assert exc.value.code == 'NOT_EDITABLE'

    def test_location_required(self, detail_issue, memory_ledger):
        line = detail_issue('TSHIRT').lines.get()

        with pytest.raises(ValidationError) as exc:
            wms.allocate(line, '', 1)

        assert exc.value.code == 'NO_LOCATION'

    def test_lots_fefo(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'MILK', 4, lot_code='L1', expiry_date=date(2026, 11, 1))
        memory_ledger.seed('WH1', 'A-01', 'MILK', 6, lot_code='L2', expiry_date=date(2026, 10, 25))
        line = detail_issue('MILK').lines.get()

        result = wms.allocate(line, 'A-01', {'L1': 2, 'L2': 10})

        assert [item.lot_code for item in result.details.items] == ['L2', 'L1']
        assert result.total == Decimal('8')
        assert result.warnings[0].field == 'lots[L2]'

    def test_serial_toggle(self, detail_issue, memory_ledger):
        memory_ledger.seed('WH1', 'A-01', 'PHONE', 1, serial_no='S1')
        memory_ledger.seed('WH1', 'A-01', 'PHONE', 1, serial_no='S2')
        line = detail_issue('PHONE').lines.get()

        wms.allocate(line, 'A-01', ['S1', 'S2'])
        result = wms.allocate(line, 'A-01', 'S1')

        line.refresh_from_db()
        assert result.details.serial_nos == {'S2'}
        assert line.qty_picked == Decimal('1')


@pytest.mark.django_db
class TestRecordReceipt:

    def test_received_and_diff(self, master, today):
        receipt = wms.create(
            'Receipt',
            {'receipt_type': 'Other', 'dest_wh_code': 'WH1', 'doc_date': today},
            [{'model_code': 'TSHIRT', 'qty_planned': 5}],
        ).document
        line = receipt.lines.get()

        wms.record_receipt(line, 7)

        line.refresh_from_db()
        assert line.qty_received == Decimal('7')
        assert line.diff_qty == Decimal('2')
