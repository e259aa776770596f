"""
Move model — Immutable ledger of quantity changes.
"""

from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Move(models.Model):
    """
    Immutable record of quantity change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new Moves with inverse delta
    - Updates Quant._quantity atomically on save()

    This is the ONLY model that changes quantity.
    """

    quant = models.ForeignKey(
        'wmsflow.Quant',
        on_delete=models.PROTECT,
        related_name='moves',
        verbose_name=_('Quant'),
    )

    delta = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Delta'),
        help_text=_('Positive = in, negative = out'),
    )

    # Document that caused the move (GR-/GI-/IC- number)
    doc_no = models.CharField(
        max_length=30,
        blank=True,
        default='',
        db_index=True,
        verbose_name=_('Document'),
    )
    line_id = models.PositiveBigIntegerField(null=True, blank=True)

    reason = models.CharField(
        max_length=255,
        verbose_name=_('Reason'),
    )
    actor = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Actor'))
    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))

    class Meta:
        verbose_name = _('Move')
        verbose_name_plural = _('Moves')
        ordering = ['timestamp']
        indexes = [
            models.Index(fields=['quant', 'timestamp'], name='move_quant_timestamp_idx'),
        ]

    def save(self, *args, **kwargs):
        """Insert the move and apply its delta to the quant in one savepoint."""
        if self.pk:
            raise ValueError(f"Move {self.pk} is posted; post a reversing move instead")
        if not self.reason:
            raise ValueError("Move.reason is required")

        with transaction.atomic():
            super().save(*args, **kwargs)

            from wmsflow.models.quant import Quant

            Quant.objects.filter(pk=self.quant_id).update(
                _quantity=F('_quantity') + self.delta,
                updated_at=timezone.now(),
            )

    def delete(self, *args, **kwargs):
        raise ValueError(f"Move {self.pk} is posted; post a reversing move instead")

    def __str__(self) -> str:
        sign = '+' if self.delta > 0 else ''
        return f"{self.doc_no or '-'} {sign}{self.delta} ({self.reason})"
