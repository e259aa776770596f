"""
Tests for document numbering, lookup, editing and history.
"""

import re
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from wmsflow import wms
from wmsflow.exceptions import DocumentNotFound, GuardViolation, ValidationError
from wmsflow.models import GoodsIssue
from wmsflow.services.history import StatusHistory
from wmsflow.services.numbering import DocumentNumbers


pytestmark = pytest.mark.django_db


def at(year, month, day=5):
    return datetime(year, month, day, 12, tzinfo=dt_timezone.utc)


class TestNumbering:

    def test_sequence_per_month(self):
        assert DocumentNumbers.next('GR', at(2026, 10)) == 'GR-202610-001'
        assert DocumentNumbers.next('GR', at(2026, 10, 20)) == 'GR-202610-002'
        assert DocumentNumbers.next('GR', at(2026, 11)) == 'GR-202611-001'

    def test_prefixes_are_independent(self):
        DocumentNumbers.next('GR', at(2026, 10))

        assert DocumentNumbers.next('GI', at(2026, 10)) == 'GI-202610-001'

    def test_width_setting(self, settings):
        settings.WMSFLOW = {'DOC_SEQ_WIDTH': 5}

        assert DocumentNumbers.next('IC', at(2026, 10)) == 'IC-202610-00001'

    def test_created_documents_are_numbered(self, master, today):
        receipt = wms.create('Receipt', {'receipt_type': 'Other', 'dest_wh_code': 'WH1',
                                         'doc_date': today}).document

        assert re.fullmatch(r'GR-\d{6}-001', receipt.doc_no)


class TestFind:

    def test_get_by_number(self, master):
        issue = wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'}).document

        assert wms.get(issue.doc_no) == issue

    @pytest.mark.parametrize('doc_no', ['GI-209901-001', 'XX-202610-001', ''])
    def test_not_found(self, db, doc_no):
        with pytest.raises(DocumentNotFound) as exc:
            wms.get(doc_no)

        assert exc.value.code == 'NOT_FOUND'


class TestCreate:

    def test_unknown_field(self, master):
        with pytest.raises(ValidationError) as exc:
            wms.create('Issue', {'source_wh_code': 'WH1', 'status': 'Completed'})

        assert exc.value.code == 'UNKNOWN_FIELD'
        assert 'status' in exc.value.field_errors

    def test_unknown_warehouse(self, master):
        with pytest.raises(ValidationError) as exc:
            wms.create('Issue', {'source_wh_code': 'WH9', 'issue_type': 'Other'})

        assert exc.value.code == 'UNKNOWN_REFERENCE'
        assert not GoodsIssue.objects.exists()

    def test_inactive_model(self, master):
        master['tshirt'].status = 'Inactive'
        master['tshirt'].save()

        with pytest.raises(ValidationError) as exc:
            wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'},
                       [{'model_code': 'TSHIRT', 'qty_planned': 1}])

        assert exc.value.code == 'INVALID_LINE'
        assert 'lines[0].model_code' in exc.value.field_errors

    def test_location_outside_warehouse(self, master):
        with pytest.raises(ValidationError) as exc:
            wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'},
                       [{'model_code': 'TSHIRT', 'qty_planned': 1, 'location_code': 'B-01'}])

        assert exc.value.field_errors == {'lines[0].location_code': 'Location B-01 is not in WH1'}

    def test_lines_take_model_defaults(self, master):
        issue = wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'},
                           [{'model_code': 'MILK', 'qty_planned': '2.5'}]).document

        line = issue.lines.get()
        assert line.line_no == 1
        assert line.uom == 'PCS'
        assert line.tracking_type == 'Lot'
        assert line.qty_planned == Decimal('2.5')

    def test_create_with_target_status(self, master, put_stock):
        put_stock('WH1', 'A-01', 'TSHIRT', 5)

        result = wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'},
                            [{'model_code': 'TSHIRT', 'qty_planned': 2, 'location_code': 'A-01'}],
                            target_status='New', actor='alex')

        assert result.document.status == 'New'
        assert [e.status for e in wms.history(result.document)] == ['Draft', 'New']


class TestSave:

    @pytest.fixture
    def issue(self, master, put_stock):
        put_stock('WH1', 'A-01', 'TSHIRT', 5)
        return wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'},
                          [{'model_code': 'TSHIRT', 'qty_planned': 2, 'location_code': 'A-01'}],
                          actor='alex').document

    def test_replace_lines(self, issue):
        wms.save(issue, lines=[
            {'model_code': 'TSHIRT', 'qty_planned': 1, 'location_code': 'A-01'},
            {'model_code': 'PHONE', 'qty_planned': 1, 'location_code': 'A-02'},
        ])

        assert [ln.model_code for ln in issue.lines.all()] == ['TSHIRT', 'PHONE']

    def test_failed_target_status_rolls_back_save(self, issue):
        with pytest.raises(ValidationError) as exc:
            wms.save(issue, header={'note': 'Rush'},
                     lines=[{'model_code': 'TSHIRT', 'qty_planned': 50, 'location_code': 'A-01'}],
                     target_status='New')

        assert exc.value.code == 'INSUFFICIENT_AVAILABLE'
        assert issue.note == ''
        issue.refresh_from_db()
        assert issue.status == 'Draft'
        assert issue.lines.get().qty_planned == Decimal('2')

    def test_not_editable_after_draft(self, issue):
        wms.transition(issue, 'New', actor='alex')

        with pytest.raises(ValidationError) as exc:
            wms.save(issue, header={'note': 'late'})

        assert exc.value.code == 'NOT_EDITABLE'

    def test_status_only_save_after_draft(self, issue):
        wms.transition(issue, 'New', actor='alex')

        wms.save(issue, target_status='Picking', actor='alex')

        assert issue.status == 'Picking'

    def test_source_warehouse_change_needs_confirmation(self, issue):
        with pytest.raises(GuardViolation) as exc:
            wms.save(issue, header={'source_wh_code': 'WH2'})

        assert exc.value.code == 'LINES_EXIST'
        assert issue.source_wh_code == 'WH1'
        assert issue.lines.exists()

    def test_editability(self, issue):
        assert wms.is_editable(issue.doc_no)
        assert not wms.is_editable(issue, 'view')


class TestHistory:

    def test_repeated_status_and_actor_suppressed(self, master):
        issue = wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'},
                           actor='alex').document

        assert StatusHistory.append(issue, 'Draft', 'alex', 'again') is None
        assert StatusHistory.append(issue, 'Draft', 'bob', 'reviewed') is not None
        assert [e.actor for e in wms.history(issue)] == ['alex', 'bob']

    def test_history_by_number(self, master):
        issue = wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'},
                           actor='alex').document

        [event] = wms.history(issue.doc_no)

        assert event.note == 'Document created with status Draft.'
        assert event.doc_kind == 'Issue'
