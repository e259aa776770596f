"""
Guards — two-phase checks for destructive or irreversible actions.

    outcome = Guards.dry_run('deactivate', warehouse)
    # show outcome.reason / outcome.consequences to the user ...
    Guards.confirm('deactivate', warehouse, confirmed=True, actor='alex')

dry_run() never mutates. confirm() re-runs the check, then:
    refused                          -> GuardViolation
    needs confirmation, not given    -> ConfirmationDeclined
    otherwise                        -> performs the action

Actions:
    deactivate       master record (Location, ModelGoods, Warehouse, ...)
    cancel           document
    transition       document, status=...
    change_header    Draft issue/count, header={...} (may discard lines)
    regenerate_plan  Draft count, scope=..., locations=..., models=...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from django.db import transaction
from django.db.models import Q

from wmsflow.exceptions import ConfirmationDeclined, GuardViolation, WmsError
from wmsflow.models.documents import GoodsIssue, GoodsReceipt, GoodsTransfer, InventoryCount
from wmsflow.models.enums import DocumentKind, RecordStatus
from wmsflow.models.masterdata import (
    Branch,
    GoodsType,
    Location,
    ModelGoods,
    Organization,
    Partner,
    Uom,
    Warehouse,
)
from wmsflow.services.queries import StockQueries
from wmsflow.transitions import lifecycle_for

logger = logging.getLogger('wmsflow')


@dataclass(frozen=True)
class GuardOutcome:
    """What would happen if the action were confirmed."""

    action: str
    target: str
    allowed: bool
    requires_confirmation: bool = False
    code: str = ''
    reason: str = ''
    consequences: tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        return {
            'action': self.action,
            'target': self.target,
            'allowed': self.allowed,
            'requires_confirmation': self.requires_confirmation,
            'code': self.code,
            'reason': self.reason,
            'consequences': list(self.consequences),
        }


def _label(target) -> str:
    return getattr(target, 'doc_no', None) or f"{type(target).__name__} {getattr(target, 'code', target.pk)}"


def _refuse(action: str, target, code: str, reason: str) -> GuardOutcome:
    return GuardOutcome(action, _label(target), allowed=False, code=code, reason=reason)


def _open_documents(**filters) -> int:
    """Non-terminal documents matching any of the given code filters."""
    total = 0
    for model in (GoodsReceipt, GoodsIssue, GoodsTransfer, InventoryCount):
        names = {f.name for f in model._meta.get_fields()}
        match = Q()
        for name, values in filters.items():
            if name in names:
                match |= Q(**{f"{name}__in": values})
        if not match:
            continue
        total += model.objects.filter(match).exclude(
            status__in=lifecycle_for(model.kind).terminal
        ).count()
    return total


# ══════════════════════════════════════════════════════════════
# DEACTIVATION CHECKS
# ══════════════════════════════════════════════════════════════

def _check_location(location: Location) -> GuardOutcome:
    onhand = StockQueries.location_onhand(location)
    if onhand > 0:
        return _refuse('deactivate', location, 'HAS_ONHAND',
                       f"Location {location.code} still holds {onhand} units on hand")
    return GuardOutcome('deactivate', _label(location), allowed=True)


def _check_model(model: ModelGoods) -> GuardOutcome:
    onhand = StockQueries.model_onhand(model.code)
    if onhand > 0:
        return _refuse('deactivate', model, 'HAS_ONHAND',
                       f"Model {model.code} still has {onhand} units on hand")
    return GuardOutcome(
        'deactivate', _label(model), allowed=True, requires_confirmation=True,
        reason=f"Deactivate model {model.code}? It can no longer be used on new lines.",
    )


def _check_warehouse(warehouse: Warehouse) -> GuardOutcome:
    onhand = StockQueries.warehouse_onhand(warehouse.code)
    if onhand > 0:
        return _refuse('deactivate', warehouse, 'HAS_ONHAND',
                       f"Warehouse {warehouse.code} still holds {onhand} units on hand")
    locations = warehouse.locations.filter(status=RecordStatus.ACTIVE).count()
    return GuardOutcome(
        'deactivate', _label(warehouse), allowed=True, requires_confirmation=True,
        reason=f"Deactivate warehouse {warehouse.code}?",
        consequences=(f"{locations} locations will also be deactivated",) if locations else (),
    )


def _warehouse_codes(**filters) -> list[str]:
    return list(Warehouse.objects.filter(**filters).values_list('code', flat=True))


def _check_organization(organization: Organization) -> GuardOutcome:
    codes = _warehouse_codes(branch__organization=organization)
    open_docs = _open_documents(source_wh_code=codes, dest_wh_code=codes, wh_code=codes) if codes else 0
    if open_docs:
        return _refuse('deactivate', organization, 'HAS_ACTIVE_DOCUMENTS',
                       f"Organization {organization.code} has {open_docs} active documents")
    return GuardOutcome('deactivate', _label(organization), allowed=True)


def _check_branch(branch: Branch) -> GuardOutcome:
    codes = _warehouse_codes(branch=branch)
    open_docs = _open_documents(source_wh_code=codes, dest_wh_code=codes, wh_code=codes) if codes else 0
    if open_docs:
        return _refuse('deactivate', branch, 'HAS_ACTIVE_DOCUMENTS',
                       f"Branch {branch.code} has {open_docs} active documents")
    return GuardOutcome('deactivate', _label(branch), allowed=True)


def _check_partner(partner: Partner) -> GuardOutcome:
    open_docs = _open_documents(partner_code=[partner.code])
    if open_docs:
        return _refuse('deactivate', partner, 'HAS_ACTIVE_DOCUMENTS',
                       f"Partner {partner.code} has {open_docs} active documents")
    return GuardOutcome('deactivate', _label(partner), allowed=True)


def _check_goods_type(goods_type: GoodsType) -> GuardOutcome:
    usage = goods_type.model_goods.count()
    # JSON list membership, checked in Python for database portability
    for allowed, blocked in Location.objects.values_list('allowed_goods_types', 'blocked_goods_types'):
        if goods_type.code in (allowed or []) or goods_type.code in (blocked or []):
            usage += 1
    if usage:
        return _refuse('deactivate', goods_type, 'IN_USE',
                       f"Goods type {goods_type.code} is used by {usage} models/locations")
    return GuardOutcome('deactivate', _label(goods_type), allowed=True)


def _check_uom(uom: Uom) -> GuardOutcome:
    if uom.model_goods.exists():
        return _refuse('deactivate', uom, 'IN_USE',
                       f"UoM {uom.code} is the base unit of at least one model")
    return GuardOutcome('deactivate', _label(uom), allowed=True)


DEACTIVATION_CHECKS: dict[type, Callable[[Any], GuardOutcome]] = {
    Location: _check_location,
    ModelGoods: _check_model,
    Warehouse: _check_warehouse,
    Organization: _check_organization,
    Branch: _check_branch,
    Partner: _check_partner,
    GoodsType: _check_goods_type,
    Uom: _check_uom,
}


class Guards:

    @classmethod
    def dry_run(cls, action: str, target, **params) -> GuardOutcome:
        """Describe the outcome of ``action`` on ``target`` without doing it."""
        check = getattr(cls, f'_check_{action}', None)
        if check is None:
            raise ValueError(f"Unknown guarded action: {action!r}")
        outcome = check(target, **params)
        if not outcome.allowed:
            logger.warning(
                "guard.blocked",
                extra={"action": action, "target": outcome.target, "code": outcome.code},
            )
        return outcome

    @classmethod
    def confirm(cls, action: str, target, confirmed: bool = True, actor: str = '', **params):
        """
        Perform ``action`` after re-checking it.

        Raises:
            GuardViolation: the action is refused
            ConfirmationDeclined: confirmation required and not given
        """
        outcome = cls.dry_run(action, target, **params)
        if not outcome.allowed:
            raise GuardViolation(outcome.code, outcome.reason, target=outcome.target)
        if outcome.requires_confirmation and not confirmed:
            logger.info("guard.declined", extra={"action": action, "target": outcome.target})
            raise ConfirmationDeclined(action, outcome.target, reason=outcome.reason)
        return getattr(cls, f'_perform_{action}')(target, actor=actor, **params)

    # ── deactivate ────────────────────────────────────────────────

    @classmethod
    def _check_deactivate(cls, record) -> GuardOutcome:
        if record.status == RecordStatus.INACTIVE:
            return GuardOutcome('deactivate', _label(record), allowed=True, reason='Already inactive')
        check = DEACTIVATION_CHECKS.get(type(record))
        if check is None:
            raise ValueError(f"{type(record).__name__} cannot be deactivated")
        return check(record)

    @classmethod
    def _perform_deactivate(cls, record, actor: str = ''):
        with transaction.atomic():
            record.status = RecordStatus.INACTIVE
            record.save(update_fields=['status', 'updated_at'])
            if isinstance(record, Warehouse):
                record.locations.update(status=RecordStatus.INACTIVE)
        logger.info(
            "masterdata.deactivated",
            extra={"target": _label(record), "actor": actor},
        )
        return record

    # ── document actions ──────────────────────────────────────────

    @classmethod
    def _check_transition(cls, document, status: str, note: str = '') -> GuardOutcome:
        from wmsflow.services.lifecycle import DocumentLifecycle

        try:
            DocumentLifecycle.check(document, status, note)
        except WmsError as e:
            return _refuse('transition', document, e.code, e.message)
        return GuardOutcome(
            'transition', document.doc_no, allowed=True,
            reason=f"{document.doc_no}: {document.status} → {status}",
        )

    @classmethod
    def _perform_transition(cls, document, status: str, note: str = '', actor: str = ''):
        from wmsflow.services.lifecycle import DocumentLifecycle

        return DocumentLifecycle.transition(document, status, actor, note)

    @classmethod
    def _check_cancel(cls, document, note: str = '') -> GuardOutcome:
        outcome = cls._check_transition(document, document.lifecycle.cancelled, note)
        if not outcome.allowed:
            return GuardOutcome('cancel', outcome.target, False, code=outcome.code, reason=outcome.reason)

        consequences = []
        if document.kind == DocumentKind.TRANSFER:
            from wmsflow.services.transfers import TransferOrchestrator

            for linked in (TransferOrchestrator.linked_issue(document),
                           TransferOrchestrator.linked_receipt(document)):
                if linked is not None and not linked.is_terminal:
                    consequences.append(f"{linked.doc_no} will also be cancelled")
        elif document.kind == DocumentKind.ISSUE:
            consequences.append("Reserved stock will be released")

        return GuardOutcome(
            'cancel', document.doc_no, allowed=True, requires_confirmation=True,
            reason=f"Cancel {document.doc_no}? This cannot be undone.",
            consequences=tuple(consequences),
        )

    @classmethod
    def _perform_cancel(cls, document, note: str = '', actor: str = ''):
        from wmsflow.services.lifecycle import DocumentLifecycle

        return DocumentLifecycle.cancel(document, actor, note)

    @classmethod
    def _check_change_header(cls, document, header: dict) -> GuardOutcome:
        from wmsflow.services.documents import DocumentEditor
        from wmsflow.services.lifecycle import DocumentLifecycle

        if not DocumentLifecycle.is_editable(document):
            return _refuse('change_header', document, 'NOT_EDITABLE',
                           f"{document.doc_no} is {document.status} and cannot be edited")
        discarded = DocumentEditor.discarded_lines(document, header)
        return GuardOutcome(
            'change_header', document.doc_no, allowed=True,
            requires_confirmation=bool(discarded),
            reason=f"This change discards {discarded} lines." if discarded else '',
            consequences=(f"{discarded} lines will be removed",) if discarded else (),
        )

    @classmethod
    def _perform_change_header(cls, document, header: dict, actor: str = ''):
        from wmsflow.services.documents import DocumentEditor

        return DocumentEditor.save(document, header=header, actor=actor, confirmed=True)

    @classmethod
    def _check_regenerate_plan(cls, count, scope: str | None = None,
                               locations=None, models=None) -> GuardOutcome:
        from wmsflow.services.counting import InventoryCountPlanner

        if not count.lifecycle.is_editable(count.status):
            return _refuse('regenerate_plan', count, 'NOT_EDITABLE',
                           f"{count.doc_no} is {count.status}; the plan is fixed")
        try:
            InventoryCountPlanner.scope_filters(
                scope or count.count_type,
                count.selected_locations if locations is None else locations,
                count.selected_models if models is None else models,
            )
        except WmsError as e:
            return _refuse('regenerate_plan', count, e.code, e.message)

        existing = count.lines.count()
        return GuardOutcome(
            'regenerate_plan', count.doc_no, allowed=True,
            requires_confirmation=bool(existing),
            reason=f"Regenerating the plan discards {existing} lines." if existing else '',
            consequences=(f"{existing} lines will be replaced",) if existing else (),
        )

    @classmethod
    def _perform_regenerate_plan(cls, count, scope: str | None = None,
                                 locations=None, models=None, actor: str = ''):
        from wmsflow.services.counting import InventoryCountPlanner

        return InventoryCountPlanner.generate_plan(
            count, scope, locations, models, confirmed=True,
        )
