"""
Tests for inventory counts: plan, snapshot, count entry and variance.
"""

from decimal import Decimal

import pytest

from wmsflow import wms
from wmsflow.exceptions import GuardViolation, ValidationError
from wmsflow.models import Move
from wmsflow.services.queries import StockQueries


pytestmark = pytest.mark.django_db


@pytest.fixture
def stocked(master, put_stock, today):
    put_stock('WH1', 'A-01', 'TSHIRT', 10)
    put_stock('WH1', 'A-02', 'MILK', 5, lot_code='L1', expiry_date=today)
    put_stock('WH2', 'B-01', 'TSHIRT', 3)


def new_count(**header):
    return wms.create('Count', {'wh_code': 'WH1', **header}, actor='alex').document


class TestGeneratePlan:

    def test_full_scope(self, stocked):
        count = new_count()

        lines = wms.generate_count_plan(count)

        assert [(ln.location_code, ln.model_code) for ln in lines] == [
            ('A-01', 'TSHIRT'), ('A-02', 'MILK'),
        ]
        assert lines[1].tracking_type == 'Lot'
        assert all(ln.system_qty == 0 for ln in lines)

    def test_by_location(self, stocked):
        count = new_count()

        lines = wms.generate_count_plan(count, 'By Location', locations=['A-02'])

        assert [ln.model_code for ln in lines] == ['MILK']
        count.refresh_from_db()
        assert count.count_type == 'By Location'
        assert count.selected_locations == ['A-02']

    def test_by_item(self, stocked):
        count = new_count()

        lines = wms.generate_count_plan(count, 'By Item', models=['TSHIRT'])

        assert [ln.location_code for ln in lines] == ['A-01']

    def test_empty_selection(self, stocked):
        with pytest.raises(ValidationError) as exc:
            wms.generate_count_plan(new_count(), 'By Location', locations=[])

        assert exc.value.code == 'INVALID_SCOPE'

    def test_regenerate_requires_confirmation(self, stocked):
        count = new_count()
        wms.generate_count_plan(count)

        with pytest.raises(GuardViolation) as exc:
            wms.generate_count_plan(count, 'By Item', models=['MILK'])

        assert exc.value.code == 'LINES_EXIST'
        assert count.lines.count() == 2

        wms.generate_count_plan(count, 'By Item', models=['MILK'], confirmed=True)

        assert count.lines.count() == 1

    def test_plan_fixed_after_draft(self, stocked):
        count = new_count()
        wms.generate_count_plan(count)
        wms.transition(count, 'New', actor='alex')

        with pytest.raises(ValidationError) as exc:
            wms.generate_count_plan(count, confirmed=True)

        assert exc.value.code == 'NOT_EDITABLE'


class TestSnapshotAndCount:

    @pytest.fixture
    def counting(self, stocked):
        count = new_count()
        wms.generate_count_plan(count)
        wms.transition(count, 'New', actor='alex')
        wms.transition(count, 'Counting', actor='alex')
        return count

    def test_snapshot_on_leaving_draft(self, counting):
        assert counting.snapshot_at is not None
        assert [ln.system_qty for ln in counting.lines.all()] == [Decimal('10'), Decimal('5')]

    def test_snapshot_is_frozen(self, counting, put_stock):
        put_stock('WH1', 'A-01', 'TSHIRT', 4)

        line = counting.lines.get(location_code='A-01')

        assert line.system_qty == Decimal('10')
        assert StockQueries.available('WH1', 'TSHIRT', 'A-01') == Decimal('14')

    def test_variance(self, counting):
        line = counting.lines.get(location_code='A-01')
        assert line.variance is None

        wms.record_count(line, 8)

        line.refresh_from_db()
        assert line.variance == Decimal('-2')
        assert not line.is_recounted

    def test_recount(self, counting):
        line = counting.lines.get(location_code='A-01')
        wms.record_count(line, 8)

        wms.record_count(line, 11)

        line.refresh_from_db()
        assert line.counted_qty == Decimal('11')
        assert line.is_recounted
        assert line.variance == Decimal('1')

    def test_negative_count(self, counting):
        line = counting.lines.get(location_code='A-01')

        with pytest.raises(ValidationError) as exc:
            wms.record_count(line, -1)

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_count_outside_counting(self, stocked):
        count = new_count()
        wms.generate_count_plan(count)
        wms.transition(count, 'New', actor='alex')

        with pytest.raises(ValidationError) as exc:
            wms.record_count(count.lines.first(), 3)

        assert exc.value.code == 'NOT_EDITABLE'

    def test_completion_does_not_move_stock(self, counting):
        line = counting.lines.get(location_code='A-01')
        wms.record_count(line, 8)
        moves = Move.objects.count()

        wms.transition(counting, 'Submitted', actor='alex')
        wms.transition(counting, 'Completed', actor='boss')

        assert Move.objects.count() == moves
        assert StockQueries.available('WH1', 'TSHIRT', 'A-01') == Decimal('10')
