"""
Profile (column schema) definitions.

A profile describes how to decode one statement format: which lines to
skip, how to split a row and which role every column plays.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from ..models import NumberFormat, Origin, Tag, new_uuid
from .columns import (
    TEMPORAL_ROLES,
    ColumnRole,
    DateColumn,
    DateTimeColumn,
    Expense,
    Income,
    Movement,
    PositiveExpense,
    TimeColumn,
    role_name,
)
from .errors import SchemaError

T = TypeVar("T")


@dataclass(frozen=True)
class Margins:
    """Leading and trailing non-data lines of a file."""
    top: int = 0
    bottom: int = 0

    def __post_init__(self):
        if self.top < 0 or self.bottom < 0:
            raise SchemaError(f"Margins must not be negative: {self}")

    def is_margin(self, index: int, total: int) -> bool:
        """True if the line at `index` of a `total` line file is excluded."""
        return index < self.top or index >= total - self.bottom

    def cut(self, lines: Sequence[T]) -> List[T]:
        """Drop the margin lines once for the whole file."""
        total = len(lines)
        return [line for index, line in enumerate(lines) if not self.is_margin(index, total)]


# ----------------------------------------------------------------------
# Amount layouts
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Split:
    """Income and expense live in two separate columns."""
    income_col: int
    expense_col: int
    number_format: NumberFormat = NumberFormat.EUROPEAN

    def positions(self) -> List[int]:
        return [self.income_col, self.expense_col]

    def columns(self) -> List[Tuple[int, ColumnRole]]:
        return [
            (self.income_col, Income(self.number_format)),
            (self.expense_col, Expense(self.number_format)),
        ]


@dataclass(frozen=True)
class Combined:
    """One signed column for every movement."""
    col: int
    number_format: NumberFormat = NumberFormat.EUROPEAN

    def positions(self) -> List[int]:
        return [self.col]

    def columns(self) -> List[Tuple[int, ColumnRole]]:
        return [(self.col, Movement(self.number_format))]


@dataclass(frozen=True)
class OnlyPositiveExpense:
    """One column listing expenses as positive numbers."""
    col: int
    number_format: NumberFormat = NumberFormat.EUROPEAN

    def positions(self) -> List[int]:
        return [self.col]

    def columns(self) -> List[Tuple[int, ColumnRole]]:
        return [(self.col, PositiveExpense(self.number_format))]


AmountLayout = Union[Split, Combined, OnlyPositiveExpense]


# ----------------------------------------------------------------------
# Datetime layouts
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Date:
    col: int
    format: str

    def positions(self) -> List[int]:
        return [self.col]

    def columns(self) -> List[Tuple[int, ColumnRole]]:
        return [(self.col, DateColumn(self.format))]


@dataclass(frozen=True)
class DateTime:
    col: int
    format: str

    def positions(self) -> List[int]:
        return [self.col]

    def columns(self) -> List[Tuple[int, ColumnRole]]:
        return [(self.col, DateTimeColumn(self.format))]


@dataclass(frozen=True)
class DateAndTime:
    date_col: int
    date_format: str
    time_col: int
    time_format: str

    def positions(self) -> List[int]:
        return [self.date_col, self.time_col]

    def columns(self) -> List[Tuple[int, ColumnRole]]:
        return [
            (self.date_col, DateColumn(self.date_format)),
            (self.time_col, TimeColumn(self.time_format)),
        ]


DatetimeLayout = Union[Date, DateTime, DateAndTime]


def _find_duplicates(positions: Iterable[int]) -> List[int]:
    seen = set()
    duplicates = []
    for pos in positions:
        if pos in seen:
            duplicates.append(pos)
        seen.add(pos)
    return sorted(set(duplicates))


@dataclass(frozen=True)
class ColumnSchema:
    """
    Immutable description of how to slice a row into fields.

    Built once per user authored profile, an edit means building a new
    schema (see ProfileBuilder.from_schema).
    """
    name: str
    margins: Margins
    delimiter: str
    amount_layout: AmountLayout
    datetime_layout: DatetimeLayout
    other_columns: Dict[int, ColumnRole] = field(default_factory=dict)
    default_tags: FrozenSet[Tag] = frozenset()
    origin: Optional[Origin] = None
    uuid: str = field(default_factory=new_uuid)

    def __post_init__(self):
        if len(self.delimiter) != 1:
            raise SchemaError(f"Delimiter must be a single character, got {self.delimiter!r}")

        for pos, role in self.other_columns.items():
            if pos < 0:
                raise SchemaError(f"Column position must not be negative: {pos}")
            if isinstance(role, TEMPORAL_ROLES):
                raise SchemaError(
                    f"Column {pos}: {role_name(role)} belongs in the datetime layout"
                )

        duplicates = _find_duplicates(self.positions())
        if duplicates:
            raise SchemaError(f"Columns claimed by more than one role: {duplicates}")

        # Frozen dataclass, normalise through object.__setattr__
        object.__setattr__(self, "other_columns", dict(self.other_columns))
        object.__setattr__(self, "default_tags", frozenset(self.default_tags))

    def __hash__(self) -> int:
        return hash(self.uuid)

    def positions(self) -> List[int]:
        return (
            list(self.amount_layout.positions())
            + list(self.datetime_layout.positions())
            + list(self.other_columns)
        )

    @property
    def width(self) -> int:
        """Minimum number of fields a row must have."""
        return max(self.positions()) + 1

    def declared_columns(self) -> List[Tuple[int, ColumnRole]]:
        columns = (
            self.amount_layout.columns()
            + self.datetime_layout.columns()
            + list(self.other_columns.items())
        )
        return sorted(columns, key=lambda c: c[0])

    def role_at(self, position: int) -> Optional[ColumnRole]:
        for pos, role in self.declared_columns():
            if pos == position:
                return role
        return None

    def is_margin(self, index: int, total: int) -> bool:
        return self.margins.is_margin(index, total)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "uuid": self.uuid,
            "name": self.name,
            "margins": [self.margins.top, self.margins.bottom],
            "delimiter": self.delimiter,
            "amount_layout": type(self.amount_layout).__name__,
            "datetime_layout": type(self.datetime_layout).__name__,
            "columns": {
                str(pos): role_name(role) for pos, role in self.declared_columns()
            },
            "default_tags": sorted(tag.tag for tag in self.default_tags),
            "origin": self.origin.name if self.origin else None,
        }


class ProfileBuilder:
    """
    Mutable draft of a profile while the user is still authoring it.

    Positions are checked as soon as columns are assigned, `build` turns a
    complete draft into an immutable ColumnSchema.
    """

    def __init__(
        self,
        name: str = "",
        margins: Optional[Margins] = None,
        delimiter: Optional[str] = None,
    ):
        self.name = name
        self.margins = margins
        self.delimiter = delimiter
        self.amount_layout: Optional[AmountLayout] = None
        self.datetime_layout: Optional[DatetimeLayout] = None
        self.other_columns: Dict[int, ColumnRole] = {}
        self.default_tags: List[Tag] = []
        self.origin: Optional[Origin] = None
        self.uuid: Optional[str] = None

    @classmethod
    def from_schema(cls, schema: ColumnSchema) -> "ProfileBuilder":
        builder = cls(schema.name, schema.margins, schema.delimiter)
        builder.set_amount_layout(schema.amount_layout)
        builder.set_datetime_layout(schema.datetime_layout)
        builder.set_other_columns(schema.other_columns)
        builder.default_tags = list(schema.default_tags)
        builder.origin = schema.origin
        builder.uuid = schema.uuid
        return builder

    def _taken_positions(self, exclude: str) -> List[int]:
        taken: List[int] = []
        if exclude != "amount" and self.amount_layout is not None:
            taken.extend(self.amount_layout.positions())
        if exclude != "datetime" and self.datetime_layout is not None:
            taken.extend(self.datetime_layout.positions())
        if exclude != "other":
            taken.extend(self.other_columns)
        return taken

    def _check_positions(self, new_positions: List[int], exclude: str) -> None:
        conflicts = set(new_positions) & set(self._taken_positions(exclude))
        conflicts.update(_find_duplicates(new_positions))
        if conflicts:
            raise SchemaError(f"Columns already assigned: {sorted(conflicts)}")

    def set_margins(self, top: int, bottom: int) -> "ProfileBuilder":
        self.margins = Margins(top, bottom)
        return self

    def set_delimiter(self, delimiter: str) -> "ProfileBuilder":
        self.delimiter = delimiter[:1] or None
        return self

    def set_amount_layout(self, layout: AmountLayout) -> "ProfileBuilder":
        self._check_positions(layout.positions(), exclude="amount")
        self.amount_layout = layout
        return self

    def set_datetime_layout(self, layout: DatetimeLayout) -> "ProfileBuilder":
        self._check_positions(layout.positions(), exclude="datetime")
        self.datetime_layout = layout
        return self

    def set_other_columns(self, columns: Dict[int, ColumnRole]) -> "ProfileBuilder":
        self._check_positions(list(columns), exclude="other")
        self.other_columns = dict(columns)
        return self

    def add_default_tag(self, tag: Tag) -> "ProfileBuilder":
        if tag not in self.default_tags:
            self.default_tags.append(tag)
        return self

    def set_origin(self, origin: Origin) -> "ProfileBuilder":
        self.origin = origin
        return self

    def declared_columns(self) -> List[Tuple[int, ColumnRole]]:
        columns = list(self.other_columns.items())
        if self.amount_layout is not None:
            columns.extend(self.amount_layout.columns())
        if self.datetime_layout is not None:
            columns.extend(self.datetime_layout.columns())
        return sorted(columns, key=lambda c: c[0])

    def role_at(self, position: int) -> Optional[ColumnRole]:
        for pos, role in self.declared_columns():
            if pos == position:
                return role
        return None

    def missing_parts(self) -> List[str]:
        missing = []
        if not self.name:
            missing.append("name")
        if self.margins is None:
            missing.append("margins")
        if not self.delimiter:
            missing.append("delimiter")
        if self.amount_layout is None:
            missing.append("amount_layout")
        if self.datetime_layout is None:
            missing.append("datetime_layout")
        return missing

    def build(self) -> ColumnSchema:
        missing = self.missing_parts()
        if missing:
            raise SchemaError(f"Profile is incomplete, missing: {', '.join(missing)}")

        kwargs = {}
        if self.uuid is not None:
            kwargs["uuid"] = self.uuid

        return ColumnSchema(
            name=self.name,
            margins=self.margins,
            delimiter=self.delimiter,
            amount_layout=self.amount_layout,
            datetime_layout=self.datetime_layout,
            other_columns=self.other_columns,
            default_tags=frozenset(self.default_tags),
            origin=self.origin,
            **kwargs,
        )
