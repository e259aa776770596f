"""
Allocation model — quantity reserved by an open issue.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from wmsflow.models.enums import AllocationStatus


class AllocationQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=AllocationStatus.ACTIVE)

    def for_document(self, doc_no: str):
        return self.filter(doc_no=doc_no)


class Allocation(models.Model):
    """
    Reservation of stock by a document line.

    LIFECYCLE:

        ACTIVE ──commit()──► CONSUMED
           │
           └──release()──► RELEASED

    Active allocations raise allocated_qty and lower available_qty of the
    (location, model) pair. A lot/serial allocation also lowers the
    availability of that lot/serial.
    """

    location = models.ForeignKey(
        'wmsflow.Location',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('Location'),
    )
    model = models.ForeignKey(
        'wmsflow.ModelGoods',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('Model Goods'),
    )
    lot_code = models.CharField(max_length=50, blank=True, default='')
    serial_no = models.CharField(max_length=80, blank=True, default='')

    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantity'),
    )

    doc_no = models.CharField(max_length=30, db_index=True, verbose_name=_('Document'))
    line_id = models.PositiveBigIntegerField(null=True, blank=True)

    status = models.CharField(
        max_length=10,
        choices=AllocationStatus.choices,
        default=AllocationStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Status'),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    objects = AllocationQuerySet.as_manager()

    class Meta:
        verbose_name = _('Allocation')
        verbose_name_plural = _('Allocations')
        indexes = [
            models.Index(fields=['status', 'location', 'model'], name='allocation_status_coord_idx'),
            models.Index(fields=['doc_no', 'status'], name='allocation_doc_status_idx'),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == AllocationStatus.ACTIVE

    def __str__(self) -> str:
        return f"{self.doc_no}: {self.quantity} ({self.status})"
