"""
Tests for two-phase guarded actions.
"""

import pytest

from wmsflow import wms
from wmsflow.exceptions import ConfirmationDeclined, GuardViolation
from wmsflow.models import GoodsType, Location, ModelGoods, Partner, Uom, Warehouse
from wmsflow.models.enums import RecordStatus


pytestmark = pytest.mark.django_db


class TestDeactivate:
    """Master records refuse deactivation while stock or documents depend on them."""

    def test_location_with_onhand_refused(self, master, put_stock):
        put_stock('WH1', 'A-01', 'TSHIRT', 2)
        location = Location.objects.get(code='A-01')

        outcome = wms.dry_run_guard('deactivate', location)

        assert not outcome.allowed
        assert outcome.code == 'HAS_ONHAND'
        with pytest.raises(GuardViolation) as exc:
            wms.confirm('deactivate', location)
        assert exc.value.code == 'HAS_ONHAND'
        location.refresh_from_db()
        assert location.status == RecordStatus.ACTIVE

    def test_empty_location(self, master):
        location = Location.objects.get(code='A-02')

        outcome = wms.dry_run_guard('deactivate', location)
        wms.confirm('deactivate', location, actor='alex')

        assert outcome.allowed
        assert not outcome.requires_confirmation
        location.refresh_from_db()
        assert location.status == RecordStatus.INACTIVE

    def test_warehouse_cascades_to_locations(self, master):
        warehouse = Warehouse.objects.get(code='WH2')

        outcome = wms.dry_run_guard('deactivate', warehouse)

        assert outcome.requires_confirmation
        assert outcome.consequences == ('1 locations will also be deactivated',)

        wms.confirm('deactivate', warehouse, confirmed=True, actor='alex')

        warehouse.refresh_from_db()
        assert warehouse.status == RecordStatus.INACTIVE
        assert not warehouse.locations.filter(status=RecordStatus.ACTIVE).exists()

    def test_declined(self, master):
        warehouse = Warehouse.objects.get(code='WH2')

        with pytest.raises(ConfirmationDeclined) as exc:
            wms.confirm('deactivate', warehouse, confirmed=False)

        assert exc.value.code == 'CONFIRMATION_DECLINED'
        warehouse.refresh_from_db()
        assert warehouse.status == RecordStatus.ACTIVE

    def test_model_with_onhand_refused(self, master, put_stock):
        put_stock('WH2', 'B-01', 'TSHIRT', 1)

        outcome = wms.dry_run_guard('deactivate', ModelGoods.objects.get(code='TSHIRT'))

        assert outcome.code == 'HAS_ONHAND'

    def test_model_without_stock_asks(self, master):
        outcome = wms.dry_run_guard('deactivate', ModelGoods.objects.get(code='PHONE'))

        assert outcome.allowed
        assert outcome.requires_confirmation

    def test_partner_with_open_document(self, master, today):
        wms.create('Receipt', {
            'receipt_type': 'PO', 'partner_code': 'SUP', 'dest_wh_code': 'WH1', 'doc_date': today,
        })

        outcome = wms.dry_run_guard('deactivate', Partner.objects.get(code='SUP'))

        assert outcome.code == 'HAS_ACTIVE_DOCUMENTS'

    def test_branch_with_open_document(self, master, today):
        wms.create('Receipt', {'receipt_type': 'Other', 'dest_wh_code': 'WH2', 'doc_date': today})

        outcome = wms.dry_run_guard('deactivate', master['wh1'].branch)

        assert outcome.code == 'HAS_ACTIVE_DOCUMENTS'

    def test_closed_documents_do_not_count(self, master, today):
        receipt = wms.create(
            'Receipt', {'receipt_type': 'PO', 'partner_code': 'SUP', 'dest_wh_code': 'WH1', 'doc_date': today},
        ).document
        wms.cancel(receipt)

        assert wms.dry_run_guard('deactivate', Partner.objects.get(code='SUP')).allowed

    @pytest.mark.parametrize('model, code', [(GoodsType, 'GEN'), (Uom, 'PCS')])
    def test_in_use(self, master, model, code):
        outcome = wms.dry_run_guard('deactivate', model.objects.get(code=code))

        assert outcome.code == 'IN_USE'

    def test_already_inactive(self, master):
        location = Location.objects.get(code='A-02')
        location.status = RecordStatus.INACTIVE
        location.save()

        outcome = wms.dry_run_guard('deactivate', location)

        assert outcome.allowed
        assert outcome.reason == 'Already inactive'


class TestDocumentGuards:

    @pytest.fixture
    def issue(self, master, put_stock):
        put_stock('WH1', 'A-01', 'TSHIRT', 10)
        return wms.create(
            'Issue',
            {'source_wh_code': 'WH1', 'issue_type': 'Other'},
            [{'model_code': 'TSHIRT', 'qty_planned': 3, 'location_code': 'A-01'}],
            actor='alex',
        ).document

    def test_cancel_outcome(self, issue):
        wms.transition(issue, 'New', actor='alex')

        outcome = wms.dry_run_guard('cancel', issue)

        assert outcome.requires_confirmation
        assert outcome.consequences == ('Reserved stock will be released',)
        assert issue.status == 'New'

    def test_cancel_declined(self, issue):
        with pytest.raises(ConfirmationDeclined):
            wms.confirm('cancel', issue, confirmed=False)

        issue.refresh_from_db()
        assert issue.status == 'Draft'

    def test_cancel_confirmed(self, issue):
        wms.confirm('cancel', issue, actor='alex', note='Duplicate order')

        assert issue.status == 'Cancelled'
        assert wms.history(issue)[-1].note == 'Duplicate order'

    def test_transition_refused_in_dry_run(self, issue):
        outcome = wms.dry_run_guard('transition', issue, status='Completed')

        assert not outcome.allowed
        assert outcome.code == 'INVALID_TRANSITION'

    def test_change_header_discards_lines(self, issue):
        outcome = wms.dry_run_guard('change_header', issue, header={'issue_mode': 'Detail'})

        assert outcome.requires_confirmation
        assert outcome.consequences == ('1 lines will be removed',)

        with pytest.raises(GuardViolation) as exc:
            wms.save(issue, header={'issue_mode': 'Detail'})
        assert exc.value.code == 'LINES_EXIST'

        wms.confirm('change_header', issue, header={'issue_mode': 'Detail'}, actor='alex')

        issue.refresh_from_db()
        assert issue.issue_mode == 'Detail'
        assert not issue.lines.exists()

    def test_change_header_without_line_impact(self, issue):
        outcome = wms.dry_run_guard('change_header', issue, header={'note': 'Rush'})

        assert outcome.allowed
        assert not outcome.requires_confirmation

    def test_regenerate_plan(self, master, put_stock):
        put_stock('WH1', 'A-01', 'TSHIRT', 10)
        count = wms.create('Count', {'wh_code': 'WH1'}).document
        wms.generate_count_plan(count)

        outcome = wms.dry_run_guard('regenerate_plan', count, scope='By Item', models=['TSHIRT'])

        assert outcome.requires_confirmation
        assert outcome.consequences == ('1 lines will be replaced',)

    def test_unknown_action(self, master):
        with pytest.raises(ValueError):
            wms.dry_run_guard('delete', Location.objects.first())
