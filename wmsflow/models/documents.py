"""
Document models — Goods Receipt, Goods Issue, Goods Transfer, Inventory Count.

Documents reference warehouses, partners and each other by code/number
strings, never by foreign key, so every document serializes on its own.
Status changes go through ``wmsflow.services.lifecycle``; never assign
``status`` directly outside of it.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from wmsflow.models.enums import (
    CountScope,
    CountStatus,
    DocumentKind,
    IssueMode,
    IssueStatus,
    IssueType,
    ReceiptStatus,
    ReceiptType,
    TrackingType,
    TransferStatus,
)


class Document(models.Model):
    """Header fields shared by every document kind."""

    kind: str = ''
    prefix: str = ''

    doc_no = models.CharField(
        max_length=30,
        unique=True,
        editable=False,
        verbose_name=_('Document number'),
        help_text=_('{PREFIX}-{YYYYMM}-{seq}, fixed at creation'),
    )
    note = models.TextField(blank=True, default='', verbose_name=_('Note'))
    created_by = models.CharField(max_length=150, blank=True, default='')
    handler = models.CharField(max_length=150, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    @property
    def lifecycle(self):
        from wmsflow.transitions import lifecycle_for

        return lifecycle_for(self.kind)

    @property
    def is_terminal(self) -> bool:
        return self.lifecycle.is_terminal(self.status)

    def __str__(self) -> str:
        return f"{self.doc_no} ({self.status})"


class DocumentLine(models.Model):
    """
    Line fields shared by every document kind.

    ``tracking_type`` is copied from the model when the line is created and
    cannot change afterwards.
    """

    line_no = models.PositiveIntegerField(default=0)
    model_code = models.CharField(max_length=30, verbose_name=_('Model Goods'))
    uom = models.CharField(max_length=10, blank=True, default='')
    tracking_type = models.CharField(
        max_length=10,
        choices=TrackingType.choices,
        default=TrackingType.NONE,
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk:
            stored = type(self).objects.filter(pk=self.pk).values_list(
                'tracking_type', flat=True
            ).first()
            if stored is not None and stored != self.tracking_type:
                raise ValueError("Line tracking type is fixed at creation")
        super().save(*args, **kwargs)


class DetailedLine(DocumentLine):
    """
    A line whose fulfilled quantity is derived from its details.

    Subclasses name the fulfilled field in ``fulfilled_field``; it is kept
    equal to ``details.total`` by ``set_details``.
    """

    fulfilled_field: str = ''

    details_data = models.JSONField(default=list, blank=True)

    class Meta:
        abstract = True

    @property
    def details(self):
        from wmsflow.details import details_from_json

        return details_from_json(self.tracking_type, self.details_data)

    def set_details(self, details) -> None:
        from wmsflow.details import check_variant

        check_variant(self.tracking_type, details)
        self.details_data = details.to_json()
        setattr(self, self.fulfilled_field, details.total)


# ══════════════════════════════════════════════════════════════
# GOODS RECEIPT
# ══════════════════════════════════════════════════════════════

class GoodsReceipt(Document):
    kind = DocumentKind.RECEIPT
    prefix = 'GR'

    status = models.CharField(
        max_length=20,
        choices=ReceiptStatus.choices,
        default=ReceiptStatus.DRAFT,
        db_index=True,
    )
    receipt_type = models.CharField(
        max_length=20,
        choices=ReceiptType.choices,
        default=ReceiptType.PO,
    )
    ref_no = models.CharField(max_length=50, blank=True, default='')
    partner_code = models.CharField(max_length=20, blank=True, default='', db_index=True)
    source_wh_code = models.CharField(max_length=15, blank=True, default='')
    dest_wh_code = models.CharField(max_length=15, verbose_name=_('Destination warehouse'))
    doc_date = models.DateField(null=True, blank=True)
    transfer_no = models.CharField(max_length=30, blank=True, default='', db_index=True)

    class Meta:
        verbose_name = _('Goods Receipt')
        verbose_name_plural = _('Goods Receipts')
        ordering = ['-created_at']


class GoodsReceiptLine(DetailedLine):
    fulfilled_field = 'qty_received'

    receipt = models.ForeignKey(
        GoodsReceipt,
        on_delete=models.CASCADE,
        related_name='lines',
    )
    qty_planned = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    qty_received = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    location_code = models.CharField(
        max_length=30,
        blank=True,
        default='',
        help_text=_("Put-away location. Blank = warehouse default location."),
    )

    class Meta:
        ordering = ['line_no', 'id']

    @property
    def diff_qty(self) -> Decimal:
        return self.qty_received - self.qty_planned


# ══════════════════════════════════════════════════════════════
# GOODS ISSUE
# ══════════════════════════════════════════════════════════════

class GoodsIssue(Document):
    kind = DocumentKind.ISSUE
    prefix = 'GI'

    status = models.CharField(
        max_length=20,
        choices=IssueStatus.choices,
        default=IssueStatus.DRAFT,
        db_index=True,
    )
    issue_type = models.CharField(
        max_length=20,
        choices=IssueType.choices,
        default=IssueType.SALES_ORDER,
    )
    issue_mode = models.CharField(
        max_length=10,
        choices=IssueMode.choices,
        default=IssueMode.SUMMARY,
    )
    ref_no = models.CharField(max_length=50, blank=True, default='')
    partner_code = models.CharField(max_length=20, blank=True, default='', db_index=True)
    source_wh_code = models.CharField(max_length=15, verbose_name=_('Source warehouse'))
    dest_wh_code = models.CharField(max_length=15, blank=True, default='')
    expected_date = models.DateField(null=True, blank=True)
    transfer_no = models.CharField(max_length=30, blank=True, default='', db_index=True)

    class Meta:
        verbose_name = _('Goods Issue')
        verbose_name_plural = _('Goods Issues')
        ordering = ['-created_at']


class GoodsIssueLine(DetailedLine):
    fulfilled_field = 'qty_picked'

    issue = models.ForeignKey(
        GoodsIssue,
        on_delete=models.CASCADE,
        related_name='lines',
    )
    qty_planned = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    qty_picked = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    location_code = models.CharField(
        max_length=30,
        blank=True,
        default='',
        help_text=_("Summary mode: the line's location. Detail mode: last allocated location."),
    )

    class Meta:
        ordering = ['line_no', 'id']


# ══════════════════════════════════════════════════════════════
# GOODS TRANSFER
# ══════════════════════════════════════════════════════════════

class GoodsTransfer(Document):
    """
    Warehouse-to-warehouse move, executed by a linked issue and receipt.

    The stored status is only ever Draft, Created, Completed or Cancelled;
    the displayed status is derived (see services.transfers).
    """

    kind = DocumentKind.TRANSFER
    prefix = 'GT'

    status = models.CharField(
        max_length=20,
        choices=TransferStatus.choices,
        default=TransferStatus.DRAFT,
        db_index=True,
    )
    gt_type = models.CharField(max_length=30, blank=True, default='Internal Transfer')
    source_wh_code = models.CharField(max_length=15, verbose_name=_('Source warehouse'))
    dest_wh_code = models.CharField(max_length=15, verbose_name=_('Destination warehouse'))
    expected_date = models.DateField(null=True, blank=True)
    linked_gi_no = models.CharField(max_length=30, blank=True, default='')
    linked_gr_no = models.CharField(max_length=30, blank=True, default='')

    class Meta:
        verbose_name = _('Goods Transfer')
        verbose_name_plural = _('Goods Transfers')
        ordering = ['-created_at']


class GoodsTransferLine(DocumentLine):
    transfer = models.ForeignKey(
        GoodsTransfer,
        on_delete=models.CASCADE,
        related_name='lines',
    )
    qty_transfer = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))

    class Meta:
        ordering = ['line_no', 'id']


# ══════════════════════════════════════════════════════════════
# INVENTORY COUNT
# ══════════════════════════════════════════════════════════════

class InventoryCount(Document):
    kind = DocumentKind.COUNT
    prefix = 'IC'

    status = models.CharField(
        max_length=20,
        choices=CountStatus.choices,
        default=CountStatus.DRAFT,
        db_index=True,
    )
    wh_code = models.CharField(max_length=15, verbose_name=_('Warehouse'))
    count_type = models.CharField(
        max_length=20,
        choices=CountScope.choices,
        default=CountScope.FULL,
    )
    selected_locations = models.JSONField(default=list, blank=True)
    selected_models = models.JSONField(default=list, blank=True)
    snapshot_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_('When system quantities were frozen'),
    )

    class Meta:
        verbose_name = _('Inventory Count')
        verbose_name_plural = _('Inventory Counts')
        ordering = ['-created_at']


class InventoryCountLine(DocumentLine):
    count = models.ForeignKey(
        InventoryCount,
        on_delete=models.CASCADE,
        related_name='lines',
    )
    location_code = models.CharField(max_length=30)
    system_qty = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        help_text=_('Snapshot of on-hand when the count left Draft'),
    )
    counted_qty = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    is_recounted = models.BooleanField(default=False)

    class Meta:
        ordering = ['line_no', 'id']

    @property
    def variance(self) -> Decimal | None:
        """counted - system, or None until counted."""
        if self.counted_qty is None:
            return None
        return self.counted_qty - self.system_qty


DOCUMENT_MODELS = {
    DocumentKind.RECEIPT: GoodsReceipt,
    DocumentKind.ISSUE: GoodsIssue,
    DocumentKind.TRANSFER: GoodsTransfer,
    DocumentKind.COUNT: InventoryCount,
}

PREFIXES = {model.prefix: model for model in DOCUMENT_MODELS.values()}
