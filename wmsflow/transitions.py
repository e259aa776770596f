"""
Status lifecycles as data.

One table per document kind: ``{from_status: {to_status, ...}}``.
Nothing outside this module decides whether an edge exists.

    Receipt:  Draft → New → Receiving → Submitted → {Completed | Rejected}
              {Draft, New, Receiving, Submitted} → Cancelled
    Issue:    Draft → New → Picking → {Submitted | AdjustmentRequested} → Completed
              {Draft, New, Picking, Submitted, AdjustmentRequested} → Cancelled
    Count:    Draft → New → Counting → Submitted → Completed
              {Draft, New, Counting, Submitted} → Cancelled
    Transfer: Draft → Created → Completed
              {Draft, Created} → Cancelled (guarded by the linked issue)
"""

from dataclasses import dataclass

from wmsflow.models.enums import (
    CountStatus,
    DocumentKind,
    EditMode,
    IssueStatus,
    ReceiptStatus,
    TransferStatus,
)


@dataclass(frozen=True)
class Lifecycle:
    """Status machine of one document kind."""

    kind: str
    initial: str
    edges: dict[str, frozenset[str]]
    editable: frozenset[str]
    # Statuses in which fulfilment details (picked/received/counted) may be recorded
    fulfilment: frozenset[str]
    # Transitions that must be committed to the stock ledger
    committing: frozenset[str]
    cancelled: str

    @property
    def statuses(self) -> frozenset[str]:
        result = set(self.edges)
        for targets in self.edges.values():
            result |= targets
        return frozenset(result)

    @property
    def terminal(self) -> frozenset[str]:
        return frozenset(s for s in self.statuses if not self.edges.get(s))

    def targets(self, status: str) -> frozenset[str]:
        return self.edges.get(status, frozenset())

    def can_transition(self, status: str, target: str) -> bool:
        return target in self.targets(status)

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal

    def is_editable(self, status: str, mode: str = EditMode.EDIT) -> bool:
        """
        Header and lines are writable only in the editable set.

        ``create`` mode is always editable: the document does not exist yet.
        ``view`` mode never is.
        """
        if mode == EditMode.CREATE:
            return True
        if mode == EditMode.VIEW:
            return False
        return status in self.editable


def _table(pairs: list[tuple[str, list[str]]]) -> dict[str, frozenset[str]]:
    return {src: frozenset(dst) for src, dst in pairs}


_R = ReceiptStatus
RECEIPT = Lifecycle(
    kind=DocumentKind.RECEIPT,
    initial=_R.DRAFT,
    edges=_table([
        (_R.DRAFT, [_R.NEW, _R.CANCELLED]),
        (_R.NEW, [_R.RECEIVING, _R.CANCELLED]),
        (_R.RECEIVING, [_R.SUBMITTED, _R.CANCELLED]),
        (_R.SUBMITTED, [_R.COMPLETED, _R.REJECTED, _R.CANCELLED]),
        (_R.COMPLETED, []),
        (_R.REJECTED, []),
        (_R.CANCELLED, []),
    ]),
    editable=frozenset({_R.DRAFT}),
    fulfilment=frozenset({_R.DRAFT, _R.RECEIVING}),
    committing=frozenset({_R.COMPLETED}),
    cancelled=_R.CANCELLED,
)

_I = IssueStatus
ISSUE = Lifecycle(
    kind=DocumentKind.ISSUE,
    initial=_I.DRAFT,
    edges=_table([
        (_I.DRAFT, [_I.NEW, _I.CANCELLED]),
        (_I.NEW, [_I.PICKING, _I.CANCELLED]),
        (_I.PICKING, [_I.SUBMITTED, _I.ADJUSTMENT_REQUESTED, _I.CANCELLED]),
        (_I.SUBMITTED, [_I.COMPLETED, _I.CANCELLED]),
        (_I.ADJUSTMENT_REQUESTED, [_I.COMPLETED, _I.CANCELLED]),
        (_I.COMPLETED, []),
        (_I.CANCELLED, []),
    ]),
    editable=frozenset({_I.DRAFT}),
    fulfilment=frozenset({_I.DRAFT, _I.PICKING, _I.ADJUSTMENT_REQUESTED}),
    committing=frozenset({_I.COMPLETED}),
    cancelled=_I.CANCELLED,
)

_C = CountStatus
COUNT = Lifecycle(
    kind=DocumentKind.COUNT,
    initial=_C.DRAFT,
    edges=_table([
        (_C.DRAFT, [_C.NEW, _C.CANCELLED]),
        (_C.NEW, [_C.COUNTING, _C.CANCELLED]),
        (_C.COUNTING, [_C.SUBMITTED, _C.CANCELLED]),
        (_C.SUBMITTED, [_C.COMPLETED, _C.CANCELLED]),
        (_C.COMPLETED, []),
        (_C.CANCELLED, []),
    ]),
    editable=frozenset({_C.DRAFT}),
    fulfilment=frozenset({_C.COUNTING}),
    committing=frozenset(),
    cancelled=_C.CANCELLED,
)

_T = TransferStatus
TRANSFER = Lifecycle(
    kind=DocumentKind.TRANSFER,
    initial=_T.DRAFT,
    edges=_table([
        (_T.DRAFT, [_T.CREATED, _T.CANCELLED]),
        (_T.CREATED, [_T.COMPLETED, _T.CANCELLED]),
        (_T.COMPLETED, []),
        (_T.CANCELLED, []),
    ]),
    editable=frozenset({_T.DRAFT}),
    fulfilment=frozenset(),
    committing=frozenset(),
    cancelled=_T.CANCELLED,
)

LIFECYCLES: dict[str, Lifecycle] = {
    DocumentKind.RECEIPT: RECEIPT,
    DocumentKind.ISSUE: ISSUE,
    DocumentKind.COUNT: COUNT,
    DocumentKind.TRANSFER: TRANSFER,
}


def lifecycle_for(kind: str) -> Lifecycle:
    return LIFECYCLES[kind]
