"""
Initial migration for wmsflow models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


RECORD_STATUS = [('Active', 'Active'), ('Inactive', 'Inactive')]
TRACKING = [('None', 'None'), ('Lot', 'Lot'), ('Serial', 'Serial')]
DOC_KIND = [
    ('Receipt', 'Goods Receipt'),
    ('Issue', 'Goods Issue'),
    ('Transfer', 'Goods Transfer'),
    ('Count', 'Inventory Count'),
]


def master_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('status', models.CharField(choices=RECORD_STATUS, db_index=True, default='Active', max_length=10, verbose_name='Status')),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


def document_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('doc_no', models.CharField(editable=False, help_text='{PREFIX}-{YYYYMM}-{seq}, fixed at creation', max_length=30, unique=True, verbose_name='Document number')),
        ('note', models.TextField(blank=True, default='', verbose_name='Note')),
        ('created_by', models.CharField(blank=True, default='', max_length=150)),
        ('handler', models.CharField(blank=True, default='', max_length=150)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


def line_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('line_no', models.PositiveIntegerField(default=0)),
        ('model_code', models.CharField(max_length=30, verbose_name='Model Goods')),
        ('uom', models.CharField(blank=True, default='', max_length=10)),
        ('tracking_type', models.CharField(choices=TRACKING, default='None', max_length=10)),
    ]


def qty(**kwargs):
    return models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, **kwargs)


class Migration(migrations.Migration):
    """Create wmsflow models: master data, ledger, documents, history."""

    initial = True

    dependencies = []

    operations = [
        # ── master data ───────────────────────────────────────────
        migrations.CreateModel(
            name='Organization',
            fields=master_fields() + [
                ('code', models.CharField(max_length=15, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=180, verbose_name='Name')),
                ('address', models.CharField(blank=True, default='', max_length=255)),
                ('phone', models.CharField(blank=True, default='', max_length=30)),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
            ],
            options={
                'verbose_name': 'Organization',
                'verbose_name_plural': 'Organizations',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Branch',
            fields=master_fields() + [
                ('code', models.CharField(max_length=15, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=180, verbose_name='Name')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='branches', to='wmsflow.organization', verbose_name='Organization')),
                ('address', models.CharField(blank=True, default='', max_length=255)),
            ],
            options={
                'verbose_name': 'Branch',
                'verbose_name_plural': 'Branches',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Warehouse',
            fields=master_fields() + [
                ('code', models.CharField(max_length=15, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=120, verbose_name='Name')),
                ('branch', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='warehouses', to='wmsflow.branch', verbose_name='Branch')),
                ('warehouse_type', models.CharField(choices=[('Central', 'Central'), ('Sub', 'Sub'), ('Virtual', 'Virtual')], default='Central', max_length=10, verbose_name='Type')),
                ('capacity', models.PositiveIntegerField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Warehouse',
                'verbose_name_plural': 'Warehouses',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Location',
            fields=master_fields() + [
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='locations', to='wmsflow.warehouse', verbose_name='Warehouse')),
                ('code', models.CharField(max_length=30, verbose_name='Code')),
                ('name', models.CharField(max_length=120, verbose_name='Name')),
                ('is_default', models.BooleanField(default=False, verbose_name='Default put-away location')),
                ('allowed_goods_types', models.JSONField(blank=True, default=list)),
                ('blocked_goods_types', models.JSONField(blank=True, default=list)),
            ],
            options={
                'verbose_name': 'Location',
                'verbose_name_plural': 'Locations',
                'ordering': ['warehouse__code', 'code'],
                'constraints': [
                    models.UniqueConstraint(fields=('warehouse', 'code'), name='unique_location_code_per_warehouse'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Partner',
            fields=master_fields() + [
                ('code', models.CharField(max_length=20, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=180, verbose_name='Name')),
                ('partner_types', models.JSONField(blank=True, default=list, help_text='Any of: Supplier, Customer, 3PL, Internal', verbose_name='Partner types')),
                ('tax_code', models.CharField(blank=True, default='', max_length=30)),
                ('address', models.CharField(blank=True, default='', max_length=255)),
            ],
            options={
                'verbose_name': 'Partner',
                'verbose_name_plural': 'Partners',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='GoodsType',
            fields=master_fields() + [
                ('code', models.CharField(max_length=15, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=180, verbose_name='Name')),
                ('description', models.TextField(blank=True, default='')),
            ],
            options={
                'verbose_name': 'Goods Type',
                'verbose_name_plural': 'Goods Types',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Uom',
            fields=master_fields() + [
                ('code', models.CharField(max_length=10, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=60, verbose_name='Name')),
                ('base_uom', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='alternates', to='wmsflow.uom', verbose_name='Base UoM')),
                ('conv_factor', models.DecimalField(blank=True, decimal_places=6, max_digits=12, null=True, verbose_name='Conversion factor')),
            ],
            options={
                'verbose_name': 'Unit of Measure',
                'verbose_name_plural': 'Units of Measure',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='ModelGoods',
            fields=master_fields() + [
                ('code', models.CharField(max_length=30, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=180, verbose_name='Name')),
                ('goods_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='model_goods', to='wmsflow.goodstype', verbose_name='Goods Type')),
                ('base_uom', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='model_goods', to='wmsflow.uom', verbose_name='Base UoM')),
                ('tracking_type', models.CharField(choices=TRACKING, default='None', max_length=10, verbose_name='Tracking')),
                ('low_stock_threshold', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('description', models.TextField(blank=True, default='')),
            ],
            options={
                'verbose_name': 'Model Goods',
                'verbose_name_plural': 'Model Goods',
                'ordering': ['code'],
            },
        ),

        # ── stock ledger ──────────────────────────────────────────
        migrations.CreateModel(
            name='Quant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='quants', to='wmsflow.location', verbose_name='Location')),
                ('model', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='quants', to='wmsflow.modelgoods', verbose_name='Model Goods')),
                ('lot_code', models.CharField(blank=True, default='', max_length=50, verbose_name='Lot')),
                ('serial_no', models.CharField(blank=True, default='', max_length=80, verbose_name='Serial number')),
                ('expiry_date', models.DateField(blank=True, null=True, verbose_name='Expiry date')),
                ('receipt_date', models.DateField(blank=True, null=True, verbose_name='Receipt date')),
                ('_quantity', qty(verbose_name='Quantity')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Quant',
                'verbose_name_plural': 'Quants',
                'constraints': [
                    models.UniqueConstraint(fields=('location', 'model', 'lot_code', 'serial_no'), name='unique_quant_coordinate'),
                ],
                'indexes': [
                    models.Index(fields=['model', 'location'], name='quant_model_location_idx'),
                    models.Index(fields=['lot_code'], name='quant_lot_idx'),
                    models.Index(fields=['serial_no'], name='quant_serial_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Move',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='moves', to='wmsflow.quant', verbose_name='Quant')),
                ('delta', models.DecimalField(decimal_places=3, help_text='Positive = in, negative = out', max_digits=12, verbose_name='Delta')),
                ('doc_no', models.CharField(blank=True, db_index=True, default='', max_length=30, verbose_name='Document')),
                ('line_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('reason', models.CharField(max_length=255, verbose_name='Reason')),
                ('actor', models.CharField(blank=True, default='', max_length=150, verbose_name='Actor')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
            ],
            options={
                'verbose_name': 'Move',
                'verbose_name_plural': 'Moves',
                'ordering': ['timestamp'],
                'indexes': [
                    models.Index(fields=['quant', 'timestamp'], name='move_quant_timestamp_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Allocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='wmsflow.location', verbose_name='Location')),
                ('model', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='wmsflow.modelgoods', verbose_name='Model Goods')),
                ('lot_code', models.CharField(blank=True, default='', max_length=50)),
                ('serial_no', models.CharField(blank=True, default='', max_length=80)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantity')),
                ('doc_no', models.CharField(db_index=True, max_length=30, verbose_name='Document')),
                ('line_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('consumed', 'Consumed'), ('released', 'Released')], db_index=True, default='active', max_length=10, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Allocation',
                'verbose_name_plural': 'Allocations',
                'indexes': [
                    models.Index(fields=['status', 'location', 'model'], name='allocation_status_coord_idx'),
                    models.Index(fields=['doc_no', 'status'], name='allocation_doc_status_idx'),
                ],
            },
        ),

        # ── documents ─────────────────────────────────────────────
        migrations.CreateModel(
            name='GoodsReceipt',
            fields=document_fields() + [
                ('status', models.CharField(choices=[('Draft', 'Draft'), ('New', 'New'), ('Receiving', 'Receiving'), ('Submitted', 'Submitted'), ('Completed', 'Completed'), ('Rejected', 'Rejected'), ('Cancelled', 'Cancelled')], db_index=True, default='Draft', max_length=20)),
                ('receipt_type', models.CharField(choices=[('PO', 'Purchase Order'), ('Return', 'Return'), ('Transfer', 'Transfer'), ('Other', 'Other')], default='PO', max_length=20)),
                ('ref_no', models.CharField(blank=True, default='', max_length=50)),
                ('partner_code', models.CharField(blank=True, db_index=True, default='', max_length=20)),
                ('source_wh_code', models.CharField(blank=True, default='', max_length=15)),
                ('dest_wh_code', models.CharField(max_length=15, verbose_name='Destination warehouse')),
                ('doc_date', models.DateField(blank=True, null=True)),
                ('transfer_no', models.CharField(blank=True, db_index=True, default='', max_length=30)),
            ],
            options={
                'verbose_name': 'Goods Receipt',
                'verbose_name_plural': 'Goods Receipts',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='GoodsReceiptLine',
            fields=line_fields() + [
                ('details_data', models.JSONField(blank=True, default=list)),
                ('receipt', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='wmsflow.goodsreceipt')),
                ('qty_planned', qty()),
                ('qty_received', qty()),
                ('location_code', models.CharField(blank=True, default='', help_text='Put-away location. Blank = warehouse default location.', max_length=30)),
            ],
            options={
                'ordering': ['line_no', 'id'],
            },
        ),
        migrations.CreateModel(
            name='GoodsIssue',
            fields=document_fields() + [
                ('status', models.CharField(choices=[('Draft', 'Draft'), ('New', 'New'), ('Picking', 'Picking'), ('Submitted', 'Submitted'), ('AdjustmentRequested', 'Adjustment Requested'), ('Completed', 'Completed'), ('Cancelled', 'Cancelled')], db_index=True, default='Draft', max_length=20)),
                ('issue_type', models.CharField(choices=[('Sales Order', 'Sales Order'), ('Transfer', 'Transfer'), ('Adjustment', 'Adjustment'), ('Other', 'Other')], default='Sales Order', max_length=20)),
                ('issue_mode', models.CharField(choices=[('Summary', 'Summary'), ('Detail', 'Detail')], default='Summary', max_length=10)),
                ('ref_no', models.CharField(blank=True, default='', max_length=50)),
                ('partner_code', models.CharField(blank=True, db_index=True, default='', max_length=20)),
                ('source_wh_code', models.CharField(max_length=15, verbose_name='Source warehouse')),
                ('dest_wh_code', models.CharField(blank=True, default='', max_length=15)),
                ('expected_date', models.DateField(blank=True, null=True)),
                ('transfer_no', models.CharField(blank=True, db_index=True, default='', max_length=30)),
            ],
            options={
                'verbose_name': 'Goods Issue',
                'verbose_name_plural': 'Goods Issues',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='GoodsIssueLine',
            fields=line_fields() + [
                ('details_data', models.JSONField(blank=True, default=list)),
                ('issue', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='wmsflow.goodsissue')),
                ('qty_planned', qty()),
                ('qty_picked', qty()),
                ('location_code', models.CharField(blank=True, default='', help_text="Summary mode: the line's location. Detail mode: last allocated location.", max_length=30)),
            ],
            options={
                'ordering': ['line_no', 'id'],
            },
        ),
        migrations.CreateModel(
            name='GoodsTransfer',
            fields=document_fields() + [
                ('status', models.CharField(choices=[('Draft', 'Draft'), ('Created', 'Created'), ('Exporting', 'Exporting'), ('Receiving', 'Receiving'), ('Completed', 'Completed'), ('Cancelled', 'Cancelled')], db_index=True, default='Draft', max_length=20)),
                ('gt_type', models.CharField(blank=True, default='Internal Transfer', max_length=30)),
                ('source_wh_code', models.CharField(max_length=15, verbose_name='Source warehouse')),
                ('dest_wh_code', models.CharField(max_length=15, verbose_name='Destination warehouse')),
                ('expected_date', models.DateField(blank=True, null=True)),
                ('linked_gi_no', models.CharField(blank=True, default='', max_length=30)),
                ('linked_gr_no', models.CharField(blank=True, default='', max_length=30)),
            ],
            options={
                'verbose_name': 'Goods Transfer',
                'verbose_name_plural': 'Goods Transfers',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='GoodsTransferLine',
            fields=line_fields() + [
                ('transfer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='wmsflow.goodstransfer')),
                ('qty_transfer', qty()),
            ],
            options={
                'ordering': ['line_no', 'id'],
            },
        ),
        migrations.CreateModel(
            name='InventoryCount',
            fields=document_fields() + [
                ('status', models.CharField(choices=[('Draft', 'Draft'), ('New', 'New'), ('Counting', 'Counting'), ('Submitted', 'Submitted'), ('Completed', 'Completed'), ('Cancelled', 'Cancelled')], db_index=True, default='Draft', max_length=20)),
                ('wh_code', models.CharField(max_length=15, verbose_name='Warehouse')),
                ('count_type', models.CharField(choices=[('Full', 'Full'), ('By Location', 'By Location'), ('By Item', 'By Item')], default='Full', max_length=20)),
                ('selected_locations', models.JSONField(blank=True, default=list)),
                ('selected_models', models.JSONField(blank=True, default=list)),
                ('snapshot_at', models.DateTimeField(blank=True, help_text='When system quantities were frozen', null=True)),
            ],
            options={
                'verbose_name': 'Inventory Count',
                'verbose_name_plural': 'Inventory Counts',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='InventoryCountLine',
            fields=line_fields() + [
                ('count', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='wmsflow.inventorycount')),
                ('location_code', models.CharField(max_length=30)),
                ('system_qty', qty(help_text='Snapshot of on-hand when the count left Draft')),
                ('counted_qty', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('is_recounted', models.BooleanField(default=False)),
            ],
            options={
                'ordering': ['line_no', 'id'],
            },
        ),

        # ── history / numbering ───────────────────────────────────
        migrations.CreateModel(
            name='StatusEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doc_no', models.CharField(db_index=True, max_length=30, verbose_name='Document')),
                ('doc_kind', models.CharField(choices=DOC_KIND, max_length=10)),
                ('status', models.CharField(max_length=20, verbose_name='Status')),
                ('actor', models.CharField(blank=True, default='', max_length=150, verbose_name='Actor')),
                ('note', models.CharField(blank=True, default='', max_length=255)),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Timestamp')),
            ],
            options={
                'verbose_name': 'Status Event',
                'verbose_name_plural': 'Status Events',
                'ordering': ['timestamp', 'id'],
                'indexes': [
                    models.Index(fields=['doc_no', 'timestamp'], name='status_event_doc_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DocumentSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('prefix', models.CharField(max_length=5)),
                ('period', models.CharField(help_text='YYYYMM', max_length=6)),
                ('last_value', models.PositiveIntegerField(default=0)),
            ],
            options={
                'verbose_name': 'Document Sequence',
                'verbose_name_plural': 'Document Sequences',
                'constraints': [
                    models.UniqueConstraint(fields=('prefix', 'period'), name='unique_sequence_per_period'),
                ],
            },
        ),
    ]
