"""
Pytest fixtures for wmsflow tests.

Master data:
    WH1 (A-01 default, A-02)  WH2 (B-01 default)
    TSHIRT (untracked), MILK (lot), PHONE (serial)
    SUP (supplier), CUS (customer)
"""

from datetime import date
from decimal import Decimal

import pytest

from wmsflow.adapters.ledger import get_ledger, reset_ledger, set_ledger
from wmsflow.adapters.memory import InMemoryLedger
from wmsflow.models import (
    Branch,
    GoodsType,
    Location,
    ModelGoods,
    Organization,
    Partner,
    TrackingType,
    Uom,
    Warehouse,
)
from wmsflow.protocols.ledger import CommitRequest, StockMovement


@pytest.fixture(autouse=True)
def fresh_ledger():
    """Every test starts with the ledger configured in settings."""
    reset_ledger()
    yield
    reset_ledger()


@pytest.fixture
def memory_ledger():
    """Install an InMemoryLedger for the duration of the test."""
    ledger = InMemoryLedger()
    set_ledger(ledger)
    return ledger


@pytest.fixture
def organization(db):
    return Organization.objects.create(code='ORG', name='Acme Retail')


@pytest.fixture
def branch(organization):
    return Branch.objects.create(code='BR1', name='North', organization=organization)


@pytest.fixture
def wh1(branch):
    warehouse = Warehouse.objects.create(code='WH1', name='Central', branch=branch)
    Location.objects.create(warehouse=warehouse, code='A-01', name='Aisle 1', is_default=True)
    Location.objects.create(warehouse=warehouse, code='A-02', name='Aisle 2')
    return warehouse


@pytest.fixture
def wh2(branch):
    warehouse = Warehouse.objects.create(code='WH2', name='Store', branch=branch)
    Location.objects.create(warehouse=warehouse, code='B-01', name='Backroom', is_default=True)
    return warehouse


@pytest.fixture
def goods_type(db):
    return GoodsType.objects.create(code='GEN', name='General')


@pytest.fixture
def pcs(db):
    return Uom.objects.create(code='PCS', name='Pieces')


@pytest.fixture
def tshirt(goods_type, pcs):
    return ModelGoods.objects.create(
        code='TSHIRT', name='T-shirt', goods_type=goods_type, base_uom=pcs,
        tracking_type=TrackingType.NONE,
    )


@pytest.fixture
def milk(goods_type, pcs):
    return ModelGoods.objects.create(
        code='MILK', name='Milk 1L', goods_type=goods_type, base_uom=pcs,
        tracking_type=TrackingType.LOT,
    )


@pytest.fixture
def phone(goods_type, pcs):
    return ModelGoods.objects.create(
        code='PHONE', name='Phone', goods_type=goods_type, base_uom=pcs,
        tracking_type=TrackingType.SERIAL,
    )


@pytest.fixture
def supplier(db):
    return Partner.objects.create(code='SUP', name='Supplier Co', partner_types=['Supplier'])


@pytest.fixture
def customer(db):
    return Partner.objects.create(code='CUS', name='Customer Co', partner_types=['Customer'])


@pytest.fixture
def master(wh1, wh2, tshirt, milk, phone, supplier, customer):
    """Everything above in one fixture."""
    return {
        'wh1': wh1, 'wh2': wh2,
        'tshirt': tshirt, 'milk': milk, 'phone': phone,
        'supplier': supplier, 'customer': customer,
    }


@pytest.fixture
def put_stock(db):
    """Put stock on hand through the configured ledger."""

    def _put(wh_code, loc_code, model_code, qty=1, lot_code='', serial_no='',
             expiry_date=None):
        result = get_ledger().commit(CommitRequest(
            doc_no='SEED',
            doc_kind='Receipt',
            wh_code=wh_code,
            direction=1,
            movements=(StockMovement(
                line_id=None,
                model_code=model_code,
                loc_code=loc_code,
                qty=Decimal(str(qty)),
                lot_code=lot_code,
                serial_no=serial_no,
                expiry_date=expiry_date,
            ),),
            actor='test',
        ))
        assert result.ok, result.message

    return _put


@pytest.fixture
def today():
    return date.today()
