"""
Line details — tagged union keyed by tracking type.

    TrackingType.NONE   -> NoneDetails(qty)
    TrackingType.LOT    -> LotDetails((LotItem(lot_code, qty), ...))
    TrackingType.SERIAL -> SerialDetails((SerialItem(serial_no), ...))

Every variant exposes ``total``: the fulfilled quantity of the line
(sum of qty for None/Lot, number of serials for Serial).

Stored on lines as JSON (a list of plain dicts, quantities as strings).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Union

from wmsflow.exceptions import ValidationError
from wmsflow.models.enums import TrackingType

ZERO = Decimal('0')


def to_decimal(value: Any, field_name: str = 'qty') -> Decimal:
    """
    Coerce user/JSON input to Decimal (empty -> 0).

    Raises:
        ValidationError('INVALID_QUANTITY'): not a finite number
    """
    if value is None or value == '':
        return ZERO
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        result = None
    if result is None or not result.is_finite():
        raise ValidationError(
            'INVALID_QUANTITY',
            f"{value!r} is not a valid quantity",
            field_errors={field_name: 'Enter a number'},
        )
    return result


def parse_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class LotItem:
    lot_code: str
    qty: Decimal
    location_code: str = ''
    expiry_date: date | None = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {'lot_code': self.lot_code, 'qty': str(self.qty)}
        if self.location_code:
            data['location_code'] = self.location_code
        if self.expiry_date:
            data['expiry_date'] = self.expiry_date.isoformat()
        return data


@dataclass(frozen=True)
class SerialItem:
    serial_no: str
    location_code: str = ''

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {'serial_no': self.serial_no}
        if self.location_code:
            data['location_code'] = self.location_code
        return data


@dataclass(frozen=True)
class NoneDetails:
    tracking_type: ClassVar[str] = TrackingType.NONE

    qty: Decimal = ZERO
    location_code: str = ''

    @property
    def total(self) -> Decimal:
        return self.qty

    def is_empty(self) -> bool:
        return self.qty == 0

    def to_json(self) -> list[dict[str, Any]]:
        if self.qty == 0:
            return []
        data: dict[str, Any] = {'qty': str(self.qty)}
        if self.location_code:
            data['location_code'] = self.location_code
        return [data]


@dataclass(frozen=True)
class LotDetails:
    tracking_type: ClassVar[str] = TrackingType.LOT

    items: tuple[LotItem, ...] = field(default_factory=tuple)

    def __post_init__(self):
        codes = [item.lot_code for item in self.items]
        if len(codes) != len(set(codes)):
            raise ValidationError('DUPLICATE_LOT', lot_codes=codes)

    @property
    def total(self) -> Decimal:
        return sum((item.qty for item in self.items), ZERO)

    def is_empty(self) -> bool:
        return not self.items

    def get(self, lot_code: str) -> LotItem | None:
        for item in self.items:
            if item.lot_code == lot_code:
                return item
        return None

    def to_json(self) -> list[dict[str, Any]]:
        return [item.to_json() for item in self.items]


@dataclass(frozen=True)
class SerialDetails:
    tracking_type: ClassVar[str] = TrackingType.SERIAL

    items: tuple[SerialItem, ...] = field(default_factory=tuple)

    def __post_init__(self):
        serials = [item.serial_no for item in self.items]
        if len(serials) != len(set(serials)):
            raise ValidationError('DUPLICATE_SERIAL', serials=serials)

    @property
    def total(self) -> Decimal:
        return Decimal(len(self.items))

    @property
    def serial_nos(self) -> frozenset[str]:
        return frozenset(item.serial_no for item in self.items)

    def is_empty(self) -> bool:
        return not self.items

    def to_json(self) -> list[dict[str, Any]]:
        return [item.to_json() for item in self.items]


LineDetails = Union[NoneDetails, LotDetails, SerialDetails]

_VARIANTS: dict[str, type] = {
    TrackingType.NONE: NoneDetails,
    TrackingType.LOT: LotDetails,
    TrackingType.SERIAL: SerialDetails,
}


def empty_details(tracking_type: str) -> LineDetails:
    """Empty details of the variant matching ``tracking_type``."""
    try:
        return _VARIANTS[tracking_type]()
    except KeyError:
        raise ValueError(f"Unknown tracking type: {tracking_type!r}") from None


def details_from_json(tracking_type: str, data: list[dict[str, Any]] | None) -> LineDetails:
    """Parse stored JSON into the variant matching ``tracking_type``."""
    data = data or []

    if tracking_type == TrackingType.NONE:
        if not data:
            return NoneDetails()
        record = data[0]
        return NoneDetails(
            qty=to_decimal(record.get('qty')),
            location_code=record.get('location_code', ''),
        )

    if tracking_type == TrackingType.LOT:
        return LotDetails(tuple(
            LotItem(
                lot_code=record['lot_code'],
                qty=to_decimal(record.get('qty')),
                location_code=record.get('location_code', ''),
                expiry_date=parse_date(record.get('expiry_date')),
            )
            for record in data
        ))

    if tracking_type == TrackingType.SERIAL:
        return SerialDetails(tuple(
            SerialItem(
                serial_no=record['serial_no'],
                location_code=record.get('location_code', ''),
            )
            for record in data
        ))

    raise ValueError(f"Unknown tracking type: {tracking_type!r}")


def check_variant(tracking_type: str, details: LineDetails) -> None:
    """Reject details whose variant does not match the line's tracking type."""
    if details.tracking_type != tracking_type:
        raise ValidationError(
            'INVALID_LINE',
            f"{details.tracking_type} details on a {tracking_type} line",
            tracking_type=tracking_type,
        )
