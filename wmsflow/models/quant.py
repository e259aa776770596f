"""
Quant model — on-hand quantity cache at a stock coordinate.
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _


logger = logging.getLogger('wmsflow')


class QuantQuerySet(models.QuerySet):
    """QuerySet with helper filters for Quant lookups by code."""

    def in_warehouse(self, wh_code: str):
        return self.filter(location__warehouse__code=wh_code)

    def at(self, wh_code: str, loc_code: str, model_code: str):
        return self.filter(
            location__warehouse__code=wh_code,
            location__code=loc_code,
            model__code=model_code,
        )

    def on_hand(self):
        """Only coordinates with stock."""
        return self.filter(_quantity__gt=0)


class Quant(models.Model):
    """
    Quantity of a model at a stock coordinate.

    Coordinates:
    - location: WHERE (warehouse is the location's)
    - model: WHAT
    - lot_code / serial_no: WHICH (blank for untracked stock)

    A serial quant holds 0 or 1 unit.

    Performance:
    - _quantity is cache updated atomically by Move
    - Use recalculate() for audit/correction
    """

    location = models.ForeignKey(
        'wmsflow.Location',
        on_delete=models.PROTECT,
        related_name='quants',
        verbose_name=_('Location'),
    )
    model = models.ForeignKey(
        'wmsflow.ModelGoods',
        on_delete=models.PROTECT,
        related_name='quants',
        verbose_name=_('Model Goods'),
    )
    lot_code = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Lot'),
    )
    serial_no = models.CharField(
        max_length=80,
        blank=True,
        default='',
        verbose_name=_('Serial number'),
    )
    expiry_date = models.DateField(null=True, blank=True, verbose_name=_('Expiry date'))
    receipt_date = models.DateField(null=True, blank=True, verbose_name=_('Receipt date'))

    # Quantity cache (updated atomically by Move)
    _quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantity'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = QuantQuerySet.as_manager()

    class Meta:
        verbose_name = _('Quant')
        verbose_name_plural = _('Quants')
        constraints = [
            models.UniqueConstraint(
                fields=['location', 'model', 'lot_code', 'serial_no'],
                name='unique_quant_coordinate',
            )
        ]
        indexes = [
            models.Index(fields=['model', 'location'], name='quant_model_location_idx'),
            models.Index(fields=['lot_code'], name='quant_lot_idx'),
            models.Index(fields=['serial_no'], name='quant_serial_idx'),
        ]

    @property
    def quantity(self) -> Decimal:
        """Total quantity — O(1) cache read."""
        return self._quantity

    def recalculate(self) -> Decimal:
        """
        Recalculate quantity from Moves.

        Returns:
            New calculated quantity
        """
        total = self.moves.aggregate(
            t=Coalesce(Sum('delta'), Decimal('0'))
        )['t']

        if total != self._quantity:
            old = self._quantity
            self._quantity = total
            self.save(update_fields=['_quantity', 'updated_at'])
            logger.warning(
                "quant.recalculated",
                extra={"quant_id": self.pk, "old": str(old), "new": str(total)},
            )

        return total

    def __str__(self) -> str:
        which = self.serial_no or self.lot_code
        suffix = f" [{which}]" if which else ""
        return f"{self.model_id}@{self.location_id}{suffix}: {self._quantity}"
