"""
Document editing — create/save of headers and lines.

Headers and lines can only be written while the document is editable
(Draft). Saving may carry a target status, which is then applied through
DocumentLifecycle in the same transaction: if the transition is refused,
the save is rolled back with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from django.db import transaction

from wmsflow.details import to_decimal
from wmsflow.exceptions import (
    CapacityExceeded,
    DocumentNotFound,
    GuardViolation,
    ValidationError,
)
from wmsflow.models.documents import (
    DOCUMENT_MODELS,
    PREFIXES,
    GoodsIssueLine,
    GoodsReceiptLine,
    GoodsTransferLine,
    InventoryCountLine,
)
from wmsflow.models.enums import DocumentKind, RecordStatus
from wmsflow.models.masterdata import Location, ModelGoods, Partner, Warehouse
from wmsflow.services.history import StatusHistory
from wmsflow.services.lifecycle import DocumentLifecycle
from wmsflow.services.numbering import DocumentNumbers

logger = logging.getLogger('wmsflow')


HEADER_FIELDS = {
    DocumentKind.RECEIPT: frozenset({
        'receipt_type', 'ref_no', 'partner_code', 'source_wh_code',
        'dest_wh_code', 'doc_date', 'note', 'handler',
    }),
    DocumentKind.ISSUE: frozenset({
        'issue_type', 'issue_mode', 'ref_no', 'partner_code', 'source_wh_code',
        'dest_wh_code', 'expected_date', 'note', 'handler',
    }),
    DocumentKind.TRANSFER: frozenset({
        'gt_type', 'source_wh_code', 'dest_wh_code', 'expected_date', 'note', 'handler',
    }),
    DocumentKind.COUNT: frozenset({
        'wh_code', 'count_type', 'selected_locations', 'selected_models', 'note', 'handler',
    }),
}

# Changing any of these on a document with lines discards the lines
LINE_RESET_FIELDS = {
    DocumentKind.ISSUE: ('source_wh_code', 'issue_mode'),
    DocumentKind.COUNT: ('wh_code', 'count_type'),
}

WAREHOUSE_FIELDS = ('source_wh_code', 'dest_wh_code', 'wh_code')

LINE_MODELS = {
    DocumentKind.RECEIPT: (GoodsReceiptLine, 'receipt'),
    DocumentKind.ISSUE: (GoodsIssueLine, 'issue'),
    DocumentKind.TRANSFER: (GoodsTransferLine, 'transfer'),
    DocumentKind.COUNT: (InventoryCountLine, 'count'),
}


@dataclass(frozen=True)
class SaveResult:
    document: Any
    warnings: tuple[CapacityExceeded, ...] = field(default_factory=tuple)


def find_document(doc_no: str):
    """
    Load any document by number.

    Raises:
        DocumentNotFound: unknown prefix or number
    """
    prefix = (doc_no or '').split('-', 1)[0]
    model = PREFIXES.get(prefix)
    if model is None:
        raise DocumentNotFound('NOT_FOUND', f"Unknown document number {doc_no!r}", doc_no=doc_no)
    try:
        return model.objects.get(doc_no=doc_no)
    except model.DoesNotExist:
        raise DocumentNotFound('NOT_FOUND', f"Document {doc_no} not found", doc_no=doc_no) from None


class DocumentEditor:

    # ══════════════════════════════════════════════════════════════
    # HEADER
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _apply_header(cls, document, header: Mapping[str, Any]) -> None:
        allowed = HEADER_FIELDS[document.kind]
        unknown = sorted(set(header) - allowed)
        if unknown:
            raise ValidationError(
                'UNKNOWN_FIELD',
                f"Cannot set {', '.join(unknown)} on a {document.kind} document",
                field_errors={name: 'Unknown field' for name in unknown},
            )
        for name, value in header.items():
            setattr(document, name, value if value is not None else '')

    @classmethod
    def _check_references(cls, document) -> None:
        errors = {}
        for name in WAREHOUSE_FIELDS:
            code = getattr(document, name, '')
            if code and not Warehouse.objects.filter(code=code, status=RecordStatus.ACTIVE).exists():
                errors[name] = f"Warehouse {code} does not exist or is inactive"

        partner_code = getattr(document, 'partner_code', '')
        if partner_code and not Partner.objects.filter(code=partner_code, status=RecordStatus.ACTIVE).exists():
            errors['partner_code'] = f"Partner {partner_code} does not exist or is inactive"

        if errors:
            raise ValidationError(
                'UNKNOWN_REFERENCE',
                next(iter(errors.values())),
                field_errors=errors,
            )

    @classmethod
    def discarded_lines(cls, document, header: Mapping[str, Any]) -> int:
        """Number of lines a header change would discard (0 if none)."""
        if document.pk is None:
            return 0
        fields = LINE_RESET_FIELDS.get(document.kind, ())
        if not any(name in header and header[name] != getattr(document, name) for name in fields):
            return 0
        return document.lines.count()

    # ══════════════════════════════════════════════════════════════
    # LINES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _build_lines(cls, document, lines: Iterable[Mapping[str, Any]]):
        line_model, parent = LINE_MODELS[document.kind]
        rows = list(lines)
        codes = {row.get('model_code') for row in rows if row.get('model_code')}
        models = {
            m.code: m for m in ModelGoods.objects.select_related('base_uom').filter(
                code__in=codes, status=RecordStatus.ACTIVE,
            )
        }

        built, warnings, errors = [], [], {}
        for i, row in enumerate(rows):
            model = models.get(row.get('model_code'))
            if model is None:
                errors[f'lines[{i}].model_code'] = (
                    f"Model {row.get('model_code')} does not exist or is inactive"
                    if row.get('model_code') else 'Model is required'
                )
                continue

            line = line_model(
                line_no=i + 1,
                model_code=model.code,
                uom=row.get('uom') or model.base_uom.code,
                tracking_type=model.tracking_type,
            )
            setattr(line, parent, document)

            if document.kind in (DocumentKind.RECEIPT, DocumentKind.ISSUE):
                line.qty_planned = to_decimal(row.get('qty_planned'), f'lines[{i}].qty_planned')
                line.location_code = row.get('location_code') or ''
            elif document.kind == DocumentKind.TRANSFER:
                from wmsflow.services.transfers import TransferOrchestrator

                requested = to_decimal(row.get('qty_transfer'), f'lines[{i}].qty_transfer')
                qty, warning = TransferOrchestrator.clamp_quantity(
                    document.source_wh_code, model.code, requested, i,
                )
                line.qty_transfer = qty
                if warning:
                    warnings.append(warning)
            else:
                line.location_code = row.get('location_code') or ''
                if not line.location_code:
                    errors[f'lines[{i}].location_code'] = 'Location is required'

            built.append(line)

        errors.update(cls._location_errors(document, built))
        if errors:
            raise ValidationError('INVALID_LINE', next(iter(errors.values())), field_errors=errors)
        return built, warnings

    @classmethod
    def _location_errors(cls, document, lines) -> dict[str, str]:
        wh_code = {
            DocumentKind.RECEIPT: getattr(document, 'dest_wh_code', ''),
            DocumentKind.ISSUE: getattr(document, 'source_wh_code', ''),
            DocumentKind.COUNT: getattr(document, 'wh_code', ''),
        }.get(document.kind)
        wanted = {getattr(line, 'location_code', '') for line in lines} - {''}
        if not wh_code or not wanted:
            return {}
        known = set(
            Location.objects.filter(
                warehouse__code=wh_code, code__in=wanted, status=RecordStatus.ACTIVE,
            ).values_list('code', flat=True)
        )
        return {
            f'lines[{line.line_no - 1}].location_code': f"Location {line.location_code} is not in {wh_code}"
            for line in lines
            if line.location_code and line.location_code not in known
        }

    @classmethod
    def _replace_lines(cls, document, lines) -> list[CapacityExceeded]:
        line_model, _ = LINE_MODELS[document.kind]
        built, warnings = cls._build_lines(document, lines)
        document.lines.all().delete()
        line_model.objects.bulk_create(built)
        return warnings

    # ══════════════════════════════════════════════════════════════
    # CREATE / SAVE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create(cls, kind: str, header: Mapping[str, Any] | None = None,
               lines: Iterable[Mapping[str, Any]] | None = None,
               target_status: str | None = None, actor: str = '') -> SaveResult:
        """
        Create a document in its initial status, optionally moving it on.

        Raises:
            ValidationError: header, references or lines invalid
            (and anything DocumentLifecycle.transition raises)
        """
        model = DOCUMENT_MODELS[kind]

        with transaction.atomic():
            document = model(created_by=actor, handler=actor)
            document.status = document.lifecycle.initial
            cls._apply_header(document, header or {})
            DocumentLifecycle.validate_header(document)
            cls._check_references(document)

            document.doc_no = DocumentNumbers.next(model.prefix)
            document.save()

            warnings = cls._replace_lines(document, lines or [])
            StatusHistory.append(
                document, document.status, actor,
                f"Document created with status {document.status}.",
            )
            logger.info(
                "doc.created",
                extra={"doc_no": document.doc_no, "kind": kind, "actor": actor},
            )

            if target_status and target_status != document.status:
                DocumentLifecycle.transition(document, target_status, actor)

        return SaveResult(document, tuple(warnings))

    @classmethod
    def save(cls, document, header: Mapping[str, Any] | None = None,
             lines: Iterable[Mapping[str, Any]] | None = None,
             target_status: str | None = None, actor: str = '',
             confirmed: bool = False) -> SaveResult:
        """
        Update header/lines of an editable document, optionally moving it on.

        ``lines`` replaces every existing line when given.

        Raises:
            ValidationError('NOT_EDITABLE'): header/lines given outside Draft
            GuardViolation('LINES_EXIST'): header change discards lines and
                not confirmed
        """
        header = dict(header or {})
        changing = bool(header) or lines is not None

        if changing and not DocumentLifecycle.is_editable(document):
            raise ValidationError(
                'NOT_EDITABLE',
                f"{document.doc_no} is {document.status} and cannot be edited",
                doc_no=document.doc_no,
                status=document.status,
            )

        warnings: list[CapacityExceeded] = []
        snapshot = {name: getattr(document, name) for name in header}
        try:
            with transaction.atomic():
                if header:
                    discarded = cls.discarded_lines(document, header) if lines is None else 0
                    if discarded and not confirmed:
                        raise GuardViolation(
                            'LINES_EXIST',
                            f"This change discards {discarded} lines of {document.doc_no}",
                            doc_no=document.doc_no,
                            lines=discarded,
                        )
                    cls._apply_header(document, header)
                    DocumentLifecycle.validate_header(document)
                    cls._check_references(document)
                    document.save()
                    if discarded:
                        document.lines.all().delete()
                        logger.info(
                            "doc.lines_discarded",
                            extra={"doc_no": document.doc_no, "lines": discarded},
                        )

                if lines is not None:
                    warnings = cls._replace_lines(document, lines)

                if changing:
                    StatusHistory.append(document, document.status, actor, "Document updated.")

                if target_status and target_status != document.status:
                    DocumentLifecycle.transition(document, target_status, actor)
        except Exception:
            for name, value in snapshot.items():
                setattr(document, name, value)
            raise

        return SaveResult(document, tuple(warnings))
