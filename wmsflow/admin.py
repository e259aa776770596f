"""
WMS Flow Admin.

- Master data: editable, status changes only through the guarded "deactivate" action
- Documents: read-only, with a "cancel" action through the lifecycle
- Quant / Move / Allocation / StatusEvent: read-only ledger views
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from wmsflow.exceptions import WmsError
from wmsflow.models import (
    Allocation,
    Branch,
    GoodsIssue,
    GoodsIssueLine,
    GoodsReceipt,
    GoodsReceiptLine,
    GoodsTransfer,
    GoodsTransferLine,
    GoodsType,
    InventoryCount,
    InventoryCountLine,
    Location,
    ModelGoods,
    Move,
    Organization,
    Partner,
    Quant,
    StatusEvent,
    Uom,
    Warehouse,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdmin(admin.ModelAdmin):
    """Rows only change through wmsflow services."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


# =========================================================================
# MASTER DATA
# =========================================================================

class MasterDataAdmin(admin.ModelAdmin):
    """Status only changes through the guarded "deactivate" action."""

    readonly_fields = ['status']
    actions = ['deactivate_records']

    @admin.action(description=_('Deactivate selected records'))
    def deactivate_records(self, request, queryset):
        from wmsflow.services.guards import Guards

        actor = request.user.get_username()
        count = 0
        for record in queryset:
            try:
                Guards.confirm('deactivate', record, confirmed=True, actor=actor)
                count += 1
            except WmsError as exc:
                logger.warning("deactivate_records: %s not deactivated: %s", record.code, exc)

        self.message_user(request, _('{count} record(s) deactivated.').format(count=count))


@admin.register(Organization)
class OrganizationAdmin(MasterDataAdmin):
    list_display = ['code', 'name', 'status']
    list_filter = ['status']
    search_fields = ['code', 'name']


@admin.register(Branch)
class BranchAdmin(MasterDataAdmin):
    list_display = ['code', 'name', 'organization', 'status']
    list_filter = ['status', 'organization']
    search_fields = ['code', 'name']


class LocationInline(admin.TabularInline):
    model = Location
    extra = 0
    fields = ['code', 'name', 'is_default', 'status']
    readonly_fields = ['status']


@admin.register(Warehouse)
class WarehouseAdmin(MasterDataAdmin):
    list_display = ['code', 'name', 'branch', 'warehouse_type', 'status']
    list_filter = ['status', 'warehouse_type']
    search_fields = ['code', 'name']
    inlines = [LocationInline]


@admin.register(Location)
class LocationAdmin(MasterDataAdmin):
    list_display = ['code', 'name', 'warehouse', 'is_default', 'status']
    list_filter = ['status', 'warehouse']
    search_fields = ['code', 'name']


@admin.register(Partner)
class PartnerAdmin(MasterDataAdmin):
    list_display = ['code', 'name', 'status']
    list_filter = ['status']
    search_fields = ['code', 'name', 'tax_code']


@admin.register(GoodsType)
class GoodsTypeAdmin(MasterDataAdmin):
    list_display = ['code', 'name', 'status']
    search_fields = ['code', 'name']


@admin.register(Uom)
class UomAdmin(MasterDataAdmin):
    list_display = ['code', 'name', 'base_uom', 'conv_factor', 'status']
    search_fields = ['code', 'name']


@admin.register(ModelGoods)
class ModelGoodsAdmin(MasterDataAdmin):
    list_display = ['code', 'name', 'goods_type', 'base_uom', 'tracking_type', 'status']
    list_filter = ['status', 'tracking_type', 'goods_type']
    search_fields = ['code', 'name']


# =========================================================================
# DOCUMENTS (read-only, cancel action)
# =========================================================================

class DocumentAdmin(ReadOnlyAdmin):
    list_filter = ['status']
    search_fields = ['doc_no']
    ordering = ['-created_at']
    actions = ['cancel_documents']

    @admin.action(description=_('Cancel selected documents'))
    def cancel_documents(self, request, queryset):
        from wmsflow.services.lifecycle import DocumentLifecycle

        actor = request.user.get_username()
        count = 0
        for document in queryset:
            try:
                DocumentLifecycle.cancel(document, actor=actor, note='Cancelled via admin')
                count += 1
            except WmsError as exc:
                logger.warning("cancel_documents: %s not cancelled: %s", document.doc_no, exc)

        self.message_user(request, _('{count} document(s) cancelled.').format(count=count))


class GoodsReceiptLineInline(ReadOnlyInline):
    model = GoodsReceiptLine


@admin.register(GoodsReceipt)
class GoodsReceiptAdmin(DocumentAdmin):
    list_display = ['doc_no', 'receipt_type', 'dest_wh_code', 'partner_code', 'status', 'doc_date']
    list_filter = ['status', 'receipt_type']
    inlines = [GoodsReceiptLineInline]


class GoodsIssueLineInline(ReadOnlyInline):
    model = GoodsIssueLine


@admin.register(GoodsIssue)
class GoodsIssueAdmin(DocumentAdmin):
    list_display = ['doc_no', 'issue_type', 'issue_mode', 'source_wh_code', 'status', 'expected_date']
    list_filter = ['status', 'issue_type', 'issue_mode']
    inlines = [GoodsIssueLineInline]


class GoodsTransferLineInline(ReadOnlyInline):
    model = GoodsTransferLine


@admin.register(GoodsTransfer)
class GoodsTransferAdmin(DocumentAdmin):
    list_display = ['doc_no', 'source_wh_code', 'dest_wh_code', 'status', 'derived_status_display',
                    'linked_gi_no', 'linked_gr_no']
    inlines = [GoodsTransferLineInline]

    @admin.display(description=_('Progress'))
    def derived_status_display(self, obj):
        from wmsflow.services.transfers import TransferOrchestrator

        try:
            return TransferOrchestrator.derived_status(obj)
        except WmsError:
            return '?'


class InventoryCountLineInline(ReadOnlyInline):
    model = InventoryCountLine
    readonly_fields = ['variance']


@admin.register(InventoryCount)
class InventoryCountAdmin(DocumentAdmin):
    list_display = ['doc_no', 'wh_code', 'count_type', 'status', 'snapshot_at']
    list_filter = ['status', 'count_type']
    inlines = [InventoryCountLineInline]


# =========================================================================
# LEDGER (read-only)
# =========================================================================

@admin.register(Quant)
class QuantAdmin(ReadOnlyAdmin):
    list_display = ['model', 'location', 'lot_code', 'serial_no', 'quantity_display', 'expiry_date']
    list_filter = ['location__warehouse']
    search_fields = ['model__code', 'lot_code', 'serial_no']

    @admin.display(description=_('Quantity'))
    def quantity_display(self, obj):
        return obj.quantity


@admin.register(Move)
class MoveAdmin(ReadOnlyAdmin):
    list_display = ['timestamp', 'quant', 'delta', 'doc_no', 'reason', 'actor']
    list_filter = ['timestamp']
    search_fields = ['doc_no', 'reason']
    date_hierarchy = 'timestamp'


@admin.register(Allocation)
class AllocationAdmin(ReadOnlyAdmin):
    list_display = ['doc_no', 'model', 'location', 'lot_code', 'serial_no', 'quantity', 'status']
    list_filter = ['status']
    search_fields = ['doc_no']


@admin.register(StatusEvent)
class StatusEventAdmin(ReadOnlyAdmin):
    list_display = ['timestamp', 'doc_no', 'doc_kind', 'status', 'actor', 'note']
    list_filter = ['doc_kind', 'status']
    search_fields = ['doc_no']
