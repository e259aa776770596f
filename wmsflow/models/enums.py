"""
Enums for wmsflow models.

Status values are the fixed strings exchanged with the UI/API layer.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class RecordStatus(models.TextChoices):
    """Master-data activity status."""
    ACTIVE = 'Active', _('Active')
    INACTIVE = 'Inactive', _('Inactive')


class TrackingType(models.TextChoices):
    """
    Per-model stock tracking discipline.

    NONE:   quantity only
    LOT:    batch-coded, quantity per lot
    SERIAL: unit-unique, one serial number per unit
    """
    NONE = 'None', _('None')
    LOT = 'Lot', _('Lot')
    SERIAL = 'Serial', _('Serial')


class DocumentKind(models.TextChoices):
    RECEIPT = 'Receipt', _('Goods Receipt')
    ISSUE = 'Issue', _('Goods Issue')
    TRANSFER = 'Transfer', _('Goods Transfer')
    COUNT = 'Count', _('Inventory Count')


class ReceiptStatus(models.TextChoices):
    DRAFT = 'Draft', _('Draft')
    NEW = 'New', _('New')
    RECEIVING = 'Receiving', _('Receiving')
    SUBMITTED = 'Submitted', _('Submitted')
    COMPLETED = 'Completed', _('Completed')
    REJECTED = 'Rejected', _('Rejected')
    CANCELLED = 'Cancelled', _('Cancelled')


class IssueStatus(models.TextChoices):
    DRAFT = 'Draft', _('Draft')
    NEW = 'New', _('New')
    PICKING = 'Picking', _('Picking')
    SUBMITTED = 'Submitted', _('Submitted')
    ADJUSTMENT_REQUESTED = 'AdjustmentRequested', _('Adjustment Requested')
    COMPLETED = 'Completed', _('Completed')
    CANCELLED = 'Cancelled', _('Cancelled')


class CountStatus(models.TextChoices):
    DRAFT = 'Draft', _('Draft')
    NEW = 'New', _('New')
    COUNTING = 'Counting', _('Counting')
    SUBMITTED = 'Submitted', _('Submitted')
    COMPLETED = 'Completed', _('Completed')
    CANCELLED = 'Cancelled', _('Cancelled')


class TransferStatus(models.TextChoices):
    """
    Stored transfer status.

    Only DRAFT, CREATED, COMPLETED and CANCELLED are ever stored.
    EXPORTING and RECEIVING are derived from the linked issue/receipt.
    """
    DRAFT = 'Draft', _('Draft')
    CREATED = 'Created', _('Created')
    EXPORTING = 'Exporting', _('Exporting')
    RECEIVING = 'Receiving', _('Receiving')
    COMPLETED = 'Completed', _('Completed')
    CANCELLED = 'Cancelled', _('Cancelled')


class ReceiptType(models.TextChoices):
    PO = 'PO', _('Purchase Order')
    RETURN = 'Return', _('Return')
    TRANSFER = 'Transfer', _('Transfer')
    OTHER = 'Other', _('Other')


class IssueType(models.TextChoices):
    SALES_ORDER = 'Sales Order', _('Sales Order')
    TRANSFER = 'Transfer', _('Transfer')
    ADJUSTMENT = 'Adjustment', _('Adjustment')
    OTHER = 'Other', _('Other')


class IssueMode(models.TextChoices):
    """
    SUMMARY: one location per line, chosen up front.
    DETAIL:  location resolved per detail at allocation time.
    """
    SUMMARY = 'Summary', _('Summary')
    DETAIL = 'Detail', _('Detail')


class CountScope(models.TextChoices):
    FULL = 'Full', _('Full')
    BY_LOCATION = 'By Location', _('By Location')
    BY_ITEM = 'By Item', _('By Item')


class WarehouseType(models.TextChoices):
    CENTRAL = 'Central', _('Central')
    SUB = 'Sub', _('Sub')
    VIRTUAL = 'Virtual', _('Virtual')


class PartnerType(models.TextChoices):
    SUPPLIER = 'Supplier', _('Supplier')
    CUSTOMER = 'Customer', _('Customer')
    THREE_PL = '3PL', _('3PL')
    INTERNAL = 'Internal', _('Internal')


class AllocationStatus(models.TextChoices):
    """Reservation lifecycle: ACTIVE until the issue completes or is cancelled."""
    ACTIVE = 'active', _('Active')
    CONSUMED = 'consumed', _('Consumed')
    RELEASED = 'released', _('Released')


class EditMode(models.TextChoices):
    CREATE = 'create', _('Create')
    EDIT = 'edit', _('Edit')
    VIEW = 'view', _('View')
