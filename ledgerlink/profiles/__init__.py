"""Profiles: column schemas and the row parser that applies them."""

from .errors import (
    BuildRecordError,
    ColumnWidthError,
    DateParsingError,
    NumberParsingError,
    ProfileError,
    SchemaError,
)
from .columns import (
    ColumnRole,
    DateColumn,
    DateTimeColumn,
    Description,
    Expense,
    Income,
    Movement,
    Other,
    PositiveExpense,
    Special,
    TimeColumn,
    parse_amount,
    parse_field,
)
from .schema import (
    AmountLayout,
    ColumnSchema,
    Combined,
    Date,
    DateAndTime,
    DateTime,
    DatetimeLayout,
    Margins,
    OnlyPositiveExpense,
    ProfileBuilder,
    Split,
)
from .engine import (
    ColumnPreview,
    ParseResult,
    PreviewCell,
    RawPreview,
    RowParsingEngine,
    intermediate_parse,
    parse_file,
    parse_row,
    preview_file,
)

__all__ = [
    # Errors
    "BuildRecordError",
    "ColumnWidthError",
    "DateParsingError",
    "NumberParsingError",
    "ProfileError",
    "SchemaError",
    # Column roles
    "ColumnRole",
    "DateColumn",
    "DateTimeColumn",
    "Description",
    "Expense",
    "Income",
    "Movement",
    "Other",
    "PositiveExpense",
    "Special",
    "TimeColumn",
    "parse_amount",
    "parse_field",
    # Schema
    "AmountLayout",
    "ColumnSchema",
    "Combined",
    "Date",
    "DateAndTime",
    "DateTime",
    "DatetimeLayout",
    "Margins",
    "OnlyPositiveExpense",
    "ProfileBuilder",
    "Split",
    # Engine
    "ColumnPreview",
    "ParseResult",
    "PreviewCell",
    "RawPreview",
    "RowParsingEngine",
    "intermediate_parse",
    "parse_file",
    "parse_row",
    "preview_file",
]
