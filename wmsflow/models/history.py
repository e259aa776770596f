"""
Status history and document numbering.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from wmsflow.models.enums import DocumentKind


class StatusEvent(models.Model):
    """
    Append-only record of a document status change.

    Rules:
    - NEVER update() or delete()
    - Keyed by doc_no so every document kind shares one history table
    """

    doc_no = models.CharField(max_length=30, db_index=True, verbose_name=_('Document'))
    doc_kind = models.CharField(max_length=10, choices=DocumentKind.choices)
    status = models.CharField(max_length=20, verbose_name=_('Status'))
    actor = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Actor'))
    note = models.CharField(max_length=255, blank=True, default='')
    timestamp = models.DateTimeField(default=timezone.now, verbose_name=_('Timestamp'))

    class Meta:
        verbose_name = _('Status Event')
        verbose_name_plural = _('Status Events')
        ordering = ['timestamp', 'id']
        indexes = [
            models.Index(fields=['doc_no', 'timestamp'], name='status_event_doc_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError("Status history is append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Status history is append-only")

    def __str__(self) -> str:
        return f"{self.doc_no} → {self.status} by {self.actor or '-'}"


class DocumentSequence(models.Model):
    """Last number issued per (prefix, YYYYMM) period."""

    prefix = models.CharField(max_length=5)
    period = models.CharField(max_length=6, help_text=_('YYYYMM'))
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _('Document Sequence')
        verbose_name_plural = _('Document Sequences')
        constraints = [
            models.UniqueConstraint(
                fields=['prefix', 'period'],
                name='unique_sequence_per_period',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.prefix}-{self.period}: {self.last_value}"
