"""
Row parsing engine.

Applies a ColumnSchema to raw statement text: cuts the margins, splits
rows, parses every declared column and assembles Transactions. The
commit path is fail-fast, the preview path (`intermediate_parse`)
reports every cell's outcome without aborting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog

from ..config import get_settings
from ..models import (
    DescriptionHistory,
    FieldKind,
    Group,
    ImportRow,
    Transaction,
    TypedField,
    split_lines,
)
from .columns import combine_date_time, parse_field, render_value
from .errors import BuildRecordError, ColumnWidthError, ProfileError
from .schema import (
    ColumnSchema,
    Combined,
    Date,
    DateAndTime,
    DateTime,
    OnlyPositiveExpense,
    ProfileBuilder,
    Split,
)

logger = structlog.get_logger()


@dataclass
class ParseResult:
    """Result of parsing a selection of import rows."""
    transactions: List[Transaction]
    groups: List[Group]
    parsed_rows: List[ImportRow]


class RowParsingEngine:
    """
    Parses statement rows with one profile.

    The engine holds a reference to the schema, it never changes it.
    """

    def __init__(self, schema: ColumnSchema):
        self.schema = schema

    def split_row(self, raw_line: str) -> List[str]:
        return raw_line.split(self.schema.delimiter)

    def eligible_rows(self, raw_text: str) -> List[Tuple[int, str]]:
        """Lines of the file outside the margins with their file index."""
        lines = split_lines(raw_text)
        return self.schema.margins.cut(list(enumerate(lines)))

    def parse_row(
        self,
        row_index: int,
        raw_line: str,
        group_uuid: Optional[str] = None,
    ) -> Transaction:
        """
        Parse one row into a Transaction.

        Args:
            row_index: Index of the row in its file, used for logging
            raw_line: The row text without line terminator
            group_uuid: Group that ties the record to its import row

        Returns:
            The assembled Transaction

        Raises:
            ProfileError: the row does not fit the profile
        """
        cells = self.split_row(raw_line)
        width = self.schema.width
        if len(cells) < width:
            raise ColumnWidthError(width, len(cells))

        fields: List[TypedField] = [
            parse_field(role, cells[pos], pos)
            for pos, role in self.schema.declared_columns()
        ]

        amount_cents = self._assemble_amount(fields)
        occurred_at = self._assemble_datetime(fields)

        descriptions = [
            f.value for f in fields
            if f.kind == FieldKind.DESCRIPTION and f.value
        ]
        description = (
            DescriptionHistory.init(" ".join(descriptions))
            if descriptions else None
        )

        logger.debug(
            "Parsed row",
            row_index=row_index,
            amount_cents=amount_cents,
            profile=self.schema.name,
        )

        return Transaction(
            amount_cents=amount_cents,
            occurred_at=occurred_at,
            description=description,
            tags=self.schema.default_tags,
            origin=self.schema.origin,
            raw_fields=tuple(fields),
            group_uuid=group_uuid,
        )

    def _value_at(self, fields: Dict[int, TypedField], position: int, missing: str) -> Any:
        try:
            return fields[position].value
        except KeyError:
            raise BuildRecordError(missing) from None

    def _assemble_amount(self, fields: Sequence[TypedField]) -> int:
        """Amount from the columns the amount layout declares."""
        by_position = {f.position: f for f in fields}
        layout = self.schema.amount_layout

        if isinstance(layout, Split):
            income = self._value_at(by_position, layout.income_col, "amount")
            expense = self._value_at(by_position, layout.expense_col, "amount")
            return income + expense

        if isinstance(layout, Combined):
            return self._value_at(by_position, layout.col, "amount")

        if isinstance(layout, OnlyPositiveExpense):
            return -self._value_at(by_position, layout.col, "amount")

        raise BuildRecordError("amount")

    def _assemble_datetime(self, fields: Sequence[TypedField]) -> datetime:
        by_position = {f.position: f for f in fields}
        layout = self.schema.datetime_layout

        if isinstance(layout, DateTime):
            return self._value_at(by_position, layout.col, "datetime")

        if isinstance(layout, Date):
            return combine_date_time(self._value_at(by_position, layout.col, "datetime"))

        if isinstance(layout, DateAndTime):
            return combine_date_time(
                self._value_at(by_position, layout.date_col, "datetime"),
                self._value_at(by_position, layout.time_col, "datetime"),
            )

        raise BuildRecordError("datetime")

    def parse_file(self, raw_text: str) -> List[Transaction]:
        """
        Parse a whole file.

        Margins are cut once for the whole file. The first failing row
        aborts the parse, no partial result is returned.
        """
        transactions = []
        for index, line in self.eligible_rows(raw_text):
            try:
                transactions.append(self.parse_row(index, line))
            except ProfileError as e:
                logger.warning(
                    "Row does not fit profile",
                    row_index=index,
                    profile=self.schema.name,
                    error=str(e),
                )
                raise

        logger.info(
            "Parsed file",
            profile=self.schema.name,
            transactions=len(transactions),
        )
        return transactions

    def parse_import_rows(self, rows: Sequence[ImportRow]) -> ParseResult:
        """
        Parse import rows that were already selected for parsing.

        No margins are cut here. Every row gets its own group and the
        row is tagged with the group of the record it produced.
        """
        transactions = []
        groups = []
        parsed_rows = []

        for row in rows:
            group = Group()
            transactions.append(
                self.parse_row(row.row_index, row.row_content, group.uuid)
            )
            groups.append(group)
            parsed_rows.append(row)

        # Only tag rows once the whole batch parsed
        for row, group in zip(parsed_rows, groups):
            row.group_uuid = group.uuid

        logger.info(
            "Parsed import rows",
            profile=self.schema.name,
            rows=len(parsed_rows),
        )
        return ParseResult(
            transactions=transactions,
            groups=groups,
            parsed_rows=parsed_rows,
        )


def parse_row(schema: ColumnSchema, row_index: int, raw_line: str) -> Transaction:
    return RowParsingEngine(schema).parse_row(row_index, raw_line)


def parse_file(schema: ColumnSchema, raw_text: str) -> List[Transaction]:
    return RowParsingEngine(schema).parse_file(raw_text)


# ----------------------------------------------------------------------
# Preview
# ----------------------------------------------------------------------

@dataclass
class PreviewCell:
    """A cell of a preview row, either the parsed value or an error message."""
    text: str
    error: bool = False
    role: Optional[str] = None


@dataclass
class RawPreview:
    """The row as is, shown while no delimiter is configured."""
    text: str


@dataclass
class ColumnPreview:
    """The row split into cells with every declared column parsed."""
    cells: List[PreviewCell] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(cell.error for cell in self.cells)


Preview = Optional[Union[RawPreview, ColumnPreview]]


def intermediate_parse(
    draft: Union[ProfileBuilder, ColumnSchema],
    index: int,
    row: str,
    total_len: int,
) -> Preview:
    """
    Preview a single row with a possibly incomplete profile.

    Args:
        draft: Profile being authored, or a finished schema
        index: Index of the row in the file
        row: The row text
        total_len: Number of lines in the file

    Returns:
        None if the row lies in the margins, RawPreview if no delimiter
        is set yet, otherwise a ColumnPreview where each declared column
        holds its parsed value or its error message
    """
    margins = draft.margins
    if margins is not None and margins.is_margin(index, total_len):
        return None

    delimiter = draft.delimiter
    if not delimiter:
        return RawPreview(row)

    cells = [PreviewCell(text) for text in row.split(delimiter)]
    row_width = len(cells)

    for pos, role in draft.declared_columns():
        role_label = type(role).__name__
        if pos >= row_width:
            # Pad so the failing column still shows up in its place
            while len(cells) <= pos:
                cells.append(PreviewCell(""))
            cells[pos] = PreviewCell(
                str(ColumnWidthError(pos + 1, row_width)),
                error=True,
                role=role_label,
            )
            continue

        try:
            parsed = parse_field(role, cells[pos].text, pos)
            cells[pos] = PreviewCell(render_value(parsed), role=role_label)
        except ProfileError as e:
            cells[pos] = PreviewCell(str(e), error=True, role=role_label)

    return ColumnPreview(cells)


def preview_file(
    draft: Union[ProfileBuilder, ColumnSchema],
    raw_text: str,
    limit: Optional[int] = None,
) -> List[Tuple[int, Preview]]:
    """
    Preview the first `limit` lines of a file, margins included as None.

    `limit` defaults to the configured max_preview_rows.
    """
    if limit is None:
        limit = get_settings().max_preview_rows
    lines = split_lines(raw_text)
    total = len(lines)
    lines = lines[:limit]
    return [
        (index, intermediate_parse(draft, index, line, total))
        for index, line in enumerate(lines)
    ]
