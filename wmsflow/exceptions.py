"""
Exceptions for wmsflow.

All blocking errors are WmsError subclasses with a structured code for
programmatic handling. Soft corrections (quantity clamps) are not raised:
they are returned as CapacityExceeded records next to the corrected value.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


class WmsError(Exception):
    """
    Structured exception for document and stock operations.

    Usage:
        try:
            documents.transition('GI-202610-001', 'Completed', actor='alex')
        except WmsError as e:
            if e.code == 'INSUFFICIENT_AVAILABLE':
                print(f"Only {e.data['available']} available")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            },
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.message!r})"


class ValidationError(WmsError):
    """
    Blocking, field-level validation failure.

    Raised before any state is mutated. ``field_errors`` maps a field name
    (or ``lines[i].field``) to its message.
    """

    _default_messages = {
        'REQUIRED': 'Required field is missing',
        'NO_LINES': 'Document must have at least one line',
        'INSUFFICIENT_AVAILABLE': 'Quantity exceeds available stock',
        'INVALID_QUANTITY': 'Quantity must be positive',
        'INVALID_LINE': 'Line is incomplete',
        'NOT_EDITABLE': 'Document cannot be edited in its current status',
        'UNKNOWN_LOT': 'Lot is not on hand at this location',
        'UNKNOWN_SERIAL': 'Serial number is not on hand at this location',
        'DUPLICATE_LOT': 'Lot code appears more than once on the line',
        'DUPLICATE_SERIAL': 'Serial number appears more than once on the line',
        'SAME_WAREHOUSE': 'Destination cannot be the same as source',
        'NO_LOCATION': 'No location to post stock to',
        'INVALID_SCOPE': 'Count scope selection is empty',
        'NOTHING_PICKED': 'No quantity has been picked',
        'UNKNOWN_FIELD': 'Field cannot be set on this document',
        'UNKNOWN_REFERENCE': 'Referenced record does not exist or is inactive',
    }

    def __init__(self, code: str, message: str | None = None,
                 field_errors: dict[str, str] | None = None, **data: Any):
        super().__init__(code, message, **data)
        self.field_errors = dict(field_errors or {})

    def as_dict(self) -> dict[str, Any]:
        result = super().as_dict()
        result['field_errors'] = dict(self.field_errors)
        return result


class InvalidTransition(ValidationError):
    """The requested status edge is not in the document kind's table."""

    _default_messages = {
        'INVALID_TRANSITION': 'Status transition is not allowed',
    }


class GuardViolation(WmsError):
    """Blocking business-rule refusal (dependent usage, downstream completion)."""

    _default_messages = {
        'HAS_ONHAND': 'Record still holds on-hand stock',
        'HAS_ACTIVE_DOCUMENTS': 'Record is referenced by active documents',
        'IN_USE': 'Record is in use',
        'DOWNSTREAM_COMPLETED': 'Linked issue is already completed',
        'REASON_REQUIRED': 'A reason is required',
        'ALREADY_TERMINAL': 'Document is already closed',
        'LINES_EXIST': 'Existing lines would be discarded',
    }


class ConfirmationDeclined(WmsError):
    """The caller declined a confirmation requested by a guard."""

    _default_messages = {
        'CONFIRMATION_DECLINED': 'Action was not confirmed',
    }

    def __init__(self, action: str, target: str, **data: Any):
        super().__init__('CONFIRMATION_DECLINED', action=action, target=target, **data)


class LedgerCommitFailure(WmsError):
    """The ledger could not atomically apply the stock movement."""

    _default_messages = {
        'COMMIT_FAILED': 'Stock ledger rejected the movement',
        'RESERVE_FAILED': 'Stock ledger rejected the reservation',
    }


class InconsistencyError(WmsError):
    """Data-integrity fault: a cross-reference points to nothing."""

    _default_messages = {
        'DANGLING_REFERENCE': 'Linked document not found',
    }


class DocumentNotFound(WmsError):
    _default_messages = {
        'NOT_FOUND': 'Document not found',
    }


@dataclass(frozen=True)
class CapacityExceeded:
    """
    Soft error: a quantity was clamped to the maximum usable value.

    Never raised. Returned alongside the corrected value so the caller can
    show it next to the offending field.
    """

    field: str
    requested: Decimal
    max_usable: Decimal

    @property
    def message(self) -> str:
        return f"{self.field}: requested {self.requested}, max usable is {self.max_usable}"
