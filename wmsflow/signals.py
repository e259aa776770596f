"""
wmsflow signals.

document_status_changed
    Sent inside the transition's transaction after the new status and its
    history event are written (and, for committing statuses, after the
    ledger accepted the movement). A receiver that raises rolls the whole
    transition back.

    kwargs: document, previous, status, actor
"""

from django.dispatch import Signal

document_status_changed = Signal()
