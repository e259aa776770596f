"""
Status history — append-only StatusEvent log per document.
"""

import logging
from datetime import timedelta

from django.utils import timezone

from wmsflow.models.history import StatusEvent

logger = logging.getLogger('wmsflow')


class StatusHistory:

    @classmethod
    def for_document(cls, doc_no: str) -> list[StatusEvent]:
        return list(StatusEvent.objects.filter(doc_no=doc_no).order_by('timestamp', 'id'))

    @classmethod
    def append(cls, document, status: str, actor: str = '', note: str = '') -> StatusEvent | None:
        """
        Append a status event.

        An event whose (status, actor) already appears in the document's
        history is not appended again; returns None in that case.

        Timestamps are strictly increasing per document: if the clock has not
        advanced past the last event, the new one is placed 1µs after it.
        """
        events = StatusEvent.objects.filter(doc_no=document.doc_no)

        if events.filter(status=status, actor=actor).exists():
            logger.debug(
                "history.suppressed",
                extra={"doc_no": document.doc_no, "status": status, "actor": actor},
            )
            return None

        now = timezone.now()
        last = events.order_by('-timestamp').values_list('timestamp', flat=True).first()
        if last is not None and now <= last:
            now = last + timedelta(microseconds=1)

        return StatusEvent.objects.create(
            doc_no=document.doc_no,
            doc_kind=document.kind,
            status=status,
            actor=actor,
            note=note[:255],
            timestamp=now,
        )
