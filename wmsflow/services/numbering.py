"""
Document numbering — {PREFIX}-{YYYYMM}-{seq}.

The sequence restarts every month per prefix. Numbers are assigned once,
at creation, and never change.
"""

import logging
from datetime import datetime

from django.db import transaction
from django.utils import timezone

from wmsflow.conf import wmsflow_settings
from wmsflow.models.history import DocumentSequence

logger = logging.getLogger('wmsflow')


class DocumentNumbers:

    @classmethod
    def format(cls, prefix: str, period: str, value: int) -> str:
        width = wmsflow_settings.DOC_SEQ_WIDTH
        return f"{prefix}-{period}-{value:0{width}d}"

    @classmethod
    def next(cls, prefix: str, when: datetime | None = None) -> str:
        """
        Reserve the next number for ``prefix`` in the month of ``when``.

        Concurrency:
            - Runs under transaction.atomic()
            - Locks the (prefix, period) counter row with select_for_update()
        """
        period = timezone.localtime(when or timezone.now()).strftime('%Y%m')

        with transaction.atomic():
            seq, _ = DocumentSequence.objects.select_for_update().get_or_create(
                prefix=prefix,
                period=period,
            )
            seq.last_value += 1
            seq.save(update_fields=['last_value'])

        doc_no = cls.format(prefix, period, seq.last_value)
        logger.debug("doc.number_assigned", extra={"doc_no": doc_no})
        return doc_no
