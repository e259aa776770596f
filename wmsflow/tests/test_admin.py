"""
Tests for the admin actions and transfer progress column.
"""

import pytest
from django.contrib.admin.sites import site
from django.contrib.auth.models import User
from django.test import RequestFactory

from wmsflow import wms
from wmsflow.models import GoodsIssue, GoodsTransfer, Location, Partner, Warehouse


pytestmark = pytest.mark.django_db


@pytest.fixture
def admin_request():
    request = RequestFactory().post('/admin/')
    request.user = User(username='admin')
    return request


def test_cancel_action_skips_closed_documents(master, admin_request, monkeypatch):
    open_issue = wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'}).document
    closed = wms.create('Issue', {'source_wh_code': 'WH1', 'issue_type': 'Other'}).document
    wms.cancel(closed)
    model_admin = site._registry[GoodsIssue]
    messages = []
    monkeypatch.setattr(model_admin, 'message_user', lambda request, message: messages.append(message))

    model_admin.cancel_documents(admin_request, GoodsIssue.objects.all())

    open_issue.refresh_from_db()
    assert open_issue.status == 'Cancelled'
    assert wms.history(open_issue)[-1].actor == 'admin'
    assert messages == ['1 document(s) cancelled.']


def test_documents_are_read_only(admin_request):
    model_admin = site._registry[GoodsIssue]

    assert not model_admin.has_add_permission(admin_request)
    assert not model_admin.has_change_permission(admin_request)


def test_transfer_progress_column(master, put_stock):
    put_stock('WH1', 'A-01', 'TSHIRT', 5)
    transfer = wms.create(
        'Transfer',
        {'source_wh_code': 'WH1', 'dest_wh_code': 'WH2'},
        [{'model_code': 'TSHIRT', 'qty_transfer': 2}],
    ).document
    wms.transition(transfer, 'Created')
    model_admin = site._registry[GoodsTransfer]

    assert model_admin.derived_status_display(transfer) == 'Created'

    transfer.linked_gi_no = 'GI-209901-001'
    assert model_admin.derived_status_display(transfer) == '?'


class TestDeactivateAction:
    """Master data status only changes through the guarded action."""

    @pytest.fixture
    def messages(self, monkeypatch):
        sent = []
        for model in (Location, Partner, Warehouse):
            monkeypatch.setattr(
                site._registry[model], 'message_user',
                lambda request, message: sent.append(message),
            )
        return sent

    def test_status_is_read_only(self, admin_request):
        for model in (Location, Partner, Warehouse):
            assert 'status' in site._registry[model].get_readonly_fields(admin_request)

    def test_location_with_stock_is_kept(self, master, put_stock, admin_request, messages):
        put_stock('WH1', 'A-01', 'TSHIRT', 5)

        site._registry[Location].deactivate_records(
            admin_request, Location.objects.filter(code__in=['A-01', 'A-02']),
        )

        statuses = dict(Location.objects.filter(warehouse__code='WH1').values_list('code', 'status'))
        assert statuses == {'A-01': 'Active', 'A-02': 'Inactive'}
        assert messages == ['1 record(s) deactivated.']

    def test_partner_with_open_document_is_kept(self, master, today, admin_request, messages):
        wms.create(
            'Receipt',
            {'receipt_type': 'PO', 'partner_code': 'SUP', 'dest_wh_code': 'WH1', 'doc_date': today},
        )

        site._registry[Partner].deactivate_records(admin_request, Partner.objects.filter(code='SUP'))

        assert Partner.objects.get(code='SUP').status == 'Active'
        assert messages == ['0 record(s) deactivated.']

    def test_warehouse_cascades_to_locations(self, master, admin_request, messages):
        site._registry[Warehouse].deactivate_records(admin_request, Warehouse.objects.filter(code='WH2'))

        assert Warehouse.objects.get(code='WH2').status == 'Inactive'
        assert Location.objects.get(code='B-01').status == 'Inactive'
