"""
Column roles and the pure functions that parse a single cell.

Every role is a small frozen dataclass. `parse_field` dispatches on the
role type through `_PARSERS`, one function per role; a new role means a
new dataclass plus a new entry there.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, Dict, Optional, Type, Union

from ..models import FieldKind, NumberFormat, SpecialType, TypedField
from .errors import DateParsingError, NumberParsingError


@dataclass(frozen=True)
class Income:
    number_format: NumberFormat = NumberFormat.EUROPEAN


@dataclass(frozen=True)
class Expense:
    number_format: NumberFormat = NumberFormat.EUROPEAN


@dataclass(frozen=True)
class PositiveExpense:
    number_format: NumberFormat = NumberFormat.EUROPEAN


@dataclass(frozen=True)
class Movement:
    number_format: NumberFormat = NumberFormat.EUROPEAN


@dataclass(frozen=True)
class DateColumn:
    format: str


@dataclass(frozen=True)
class DateTimeColumn:
    format: str


@dataclass(frozen=True)
class TimeColumn:
    format: str


@dataclass(frozen=True)
class Description:
    label: str = ""


@dataclass(frozen=True)
class Special:
    kind: SpecialType = SpecialType.UNKNOWN
    description: str = ""


@dataclass(frozen=True)
class Other:
    label: str = ""


ColumnRole = Union[
    Income,
    Expense,
    PositiveExpense,
    Movement,
    DateColumn,
    DateTimeColumn,
    TimeColumn,
    Description,
    Special,
    Other,
]

AMOUNT_ROLES = (Income, Expense, PositiveExpense, Movement)
TEMPORAL_ROLES = (DateColumn, DateTimeColumn, TimeColumn)


def role_name(role: ColumnRole) -> str:
    return type(role).__name__


# ----------------------------------------------------------------------
# Scalar parsers
# ----------------------------------------------------------------------

def parse_amount(raw: str, number_format: NumberFormat) -> int:
    """
    Parse a decimal string into cents.

    An empty cell is zero. Separators are normalised per number format,
    the value is parsed as float, scaled by 100 and rounded.

    Raises:
        NumberParsingError: the text is not a finite number
    """
    text = raw.strip()
    if not text:
        return 0

    if number_format == NumberFormat.EUROPEAN:
        normalized = text.replace(".", "").replace(",", ".")
    else:
        normalized = text.replace(",", "")

    try:
        value = float(normalized)
    except ValueError:
        raise NumberParsingError(raw, number_format.value) from None

    if not math.isfinite(value):
        raise NumberParsingError(raw, number_format.value)

    return int(round(value * 100))


def local_datetime(naive: datetime) -> datetime:
    """Attach the local timezone to a naive datetime."""
    return naive.astimezone()


def combine_date_time(day: date, clock: Optional[time] = None) -> datetime:
    """Build a local aware datetime, midnight when no time is given."""
    return local_datetime(datetime.combine(day, clock or time()))


def _strptime(raw: str, fmt: str) -> datetime:
    try:
        return datetime.strptime(raw.strip(), fmt)
    except ValueError:
        raise DateParsingError(raw, fmt) from None


def parse_date(raw: str, fmt: str) -> date:
    return _strptime(raw, fmt).date()


def parse_time(raw: str, fmt: str) -> time:
    return _strptime(raw, fmt).time()


def parse_datetime(raw: str, fmt: str) -> datetime:
    parsed = _strptime(raw, fmt)
    if parsed.tzinfo is not None:
        return parsed
    return local_datetime(parsed)


# ----------------------------------------------------------------------
# Per role parsers
# ----------------------------------------------------------------------

def _parse_income(role: Income, raw: str, position: int) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.INCOME,
        raw=raw,
        value=parse_amount(raw, role.number_format),
    )


def _parse_expense(role: Expense, raw: str, position: int) -> TypedField:
    # The column holds the magnitude of money going out
    return TypedField(
        position=position,
        kind=FieldKind.EXPENSE,
        raw=raw,
        value=-parse_amount(raw, role.number_format),
    )


def _parse_positive_expense(
    role: PositiveExpense,
    raw: str,
    position: int,
) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.POSITIVE_EXPENSE,
        raw=raw,
        value=abs(parse_amount(raw, role.number_format)),
    )


def _parse_movement(role: Movement, raw: str, position: int) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.MOVEMENT,
        raw=raw,
        value=parse_amount(raw, role.number_format),
    )


def _parse_date(role: DateColumn, raw: str, position: int) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.DATE,
        raw=raw,
        value=parse_date(raw, role.format),
    )


def _parse_datetime(role: DateTimeColumn, raw: str, position: int) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.DATETIME,
        raw=raw,
        value=parse_datetime(raw, role.format),
    )


def _parse_time(role: TimeColumn, raw: str, position: int) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.TIME,
        raw=raw,
        value=parse_time(raw, role.format),
    )


def _parse_description(role: Description, raw: str, position: int) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.DESCRIPTION,
        raw=raw,
        value=raw,
        label=role.label,
    )


def _parse_special(role: Special, raw: str, position: int) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.SPECIAL,
        raw=raw,
        value=raw,
        label=role.description,
        special_type=role.kind,
    )


def _parse_other(role: Other, raw: str, position: int) -> TypedField:
    return TypedField(
        position=position,
        kind=FieldKind.OTHER,
        raw=raw,
        value=raw,
        label=role.label,
    )


_PARSERS: Dict[Type, Callable[..., TypedField]] = {
    Income: _parse_income,
    Expense: _parse_expense,
    PositiveExpense: _parse_positive_expense,
    Movement: _parse_movement,
    DateColumn: _parse_date,
    DateTimeColumn: _parse_datetime,
    TimeColumn: _parse_time,
    Description: _parse_description,
    Special: _parse_special,
    Other: _parse_other,
}


def parse_field(role: ColumnRole, raw: str, position: int = 0) -> TypedField:
    """
    Parse one cell according to its column role.

    Args:
        role: The role declared for the column
        raw: Cell text as split from the row
        position: Column index, kept on the resulting field

    Returns:
        TypedField with the parsed value

    Raises:
        NumberParsingError: amount roles with non numeric text
        DateParsingError: temporal roles whose text does not fit the format
    """
    try:
        parser = _PARSERS[type(role)]
    except KeyError:
        raise TypeError(f"Unknown column role: {role!r}") from None
    return parser(role, raw, position)


def render_value(field: TypedField) -> str:
    """Human readable rendering of a parsed cell, used by previews."""
    if field.kind.is_amount:
        sign = "-" if field.value < 0 else ""
        cents = abs(field.value)
        return f"{sign}{cents // 100}.{cents % 100:02d}"
    if isinstance(field.value, (date, time)):
        return field.value.isoformat()
    return str(field.value)
