"""
Tests for the row parsing engine and the profile preview.
"""

import pytest
from datetime import date

from ledgerlink.config import get_settings
from ledgerlink.models import ImportRow, NumberFormat, Origin, Tag
from ledgerlink.profiles import (
    BuildRecordError,
    ColumnPreview,
    ColumnSchema,
    ColumnWidthError,
    Combined,
    Date,
    DateAndTime,
    DateParsingError,
    DateTime,
    Description,
    Income,
    Margins,
    Movement,
    NumberParsingError,
    OnlyPositiveExpense,
    PositiveExpense,
    ProfileBuilder,
    RawPreview,
    RowParsingEngine,
    Split,
    intermediate_parse,
    parse_file,
    parse_row,
    preview_file,
)


STATEMENT = "header\n2024-01-05;-12.50\n2024-01-06;20.00\nfooter"


@pytest.fixture
def schema():
    return ColumnSchema(
        name="Checking",
        margins=Margins(1, 1),
        delimiter=";",
        amount_layout=Combined(1, NumberFormat.AMERICAN),
        datetime_layout=Date(0, "%Y-%m-%d"),
    )


@pytest.fixture
def engine(schema):
    return RowParsingEngine(schema)


class TestParseFile:
    """Whole file parsing."""

    def test_statement_scenario(self, schema):
        transactions = parse_file(schema, STATEMENT)

        assert len(transactions) == 2
        assert transactions[0].amount_cents == -1250
        assert transactions[0].occurred_at.date() == date(2024, 1, 5)
        assert transactions[1].amount_cents == 2000
        assert transactions[1].occurred_at.date() == date(2024, 1, 6)

    def test_dates_are_local_midnight(self, schema):
        transaction = parse_file(schema, STATEMENT)[0]
        assert transaction.occurred_at.tzinfo is not None
        assert transaction.occurred_at.hour == 0

    def test_crlf_line_endings(self, schema):
        transactions = parse_file(schema, STATEMENT.replace("\n", "\r\n") + "\r\n")
        assert [t.amount_cents for t in transactions] == [-1250, 2000]

    def test_margins_without_data(self, schema):
        assert parse_file(schema, "header\nfooter") == []

    def test_fail_fast(self, schema):
        text = "header\n2024-01-05;-12.50\n2024-13-40;20.00\nfooter"
        with pytest.raises(DateParsingError):
            parse_file(schema, text)

    def test_bad_number(self, schema):
        with pytest.raises(NumberParsingError):
            parse_file(schema, "header\n2024-01-05;twelve\nfooter")

    def test_no_margins_parses_every_line(self):
        schema = ColumnSchema(
            name="Plain",
            margins=Margins(),
            delimiter=",",
            amount_layout=Combined(1, NumberFormat.AMERICAN),
            datetime_layout=Date(0, "%Y-%m-%d"),
        )
        text = "2024-01-01,1.00\n2024-01-02,2.00\n2024-01-03,3.00\n"
        assert len(parse_file(schema, text)) == 3


class TestParseRow:
    """Single row parsing."""

    def test_deterministic(self, schema):
        first = parse_row(schema, 1, "2024-01-05;-12.50")
        second = parse_row(schema, 1, "2024-01-05;-12.50")

        assert first.amount_cents == second.amount_cents
        assert first.occurred_at == second.occurred_at
        assert first.raw_fields == second.raw_fields

    def test_too_narrow(self, engine):
        with pytest.raises(ColumnWidthError) as exc_info:
            engine.parse_row(0, "2024-01-05")

        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 1

    def test_extra_columns_ignored(self, engine):
        transaction = engine.parse_row(0, "2024-01-05;-12.50;whatever;else")
        assert transaction.amount_cents == -1250

    def test_split_layout(self):
        schema = ColumnSchema(
            name="Split",
            margins=Margins(),
            delimiter=";",
            amount_layout=Split(1, 2, NumberFormat.EUROPEAN),
            datetime_layout=Date(0, "%d.%m.%Y"),
        )
        engine = RowParsingEngine(schema)

        assert engine.parse_row(0, "05.01.2024;100,00;").amount_cents == 10000
        assert engine.parse_row(1, "05.01.2024;;25,50").amount_cents == -2550

    def test_only_positive_expense(self):
        schema = ColumnSchema(
            name="Card",
            margins=Margins(),
            delimiter=",",
            amount_layout=OnlyPositiveExpense(1, NumberFormat.AMERICAN),
            datetime_layout=Date(0, "%Y-%m-%d"),
        )
        transaction = RowParsingEngine(schema).parse_row(0, "2024-01-05,4.99")
        assert transaction.amount_cents == -499

    def test_date_and_time(self):
        schema = ColumnSchema(
            name="Card",
            margins=Margins(),
            delimiter=",",
            amount_layout=Combined(2, NumberFormat.AMERICAN),
            datetime_layout=DateAndTime(0, "%Y-%m-%d", 1, "%H:%M"),
        )
        transaction = RowParsingEngine(schema).parse_row(0, "2024-01-05,14:30,1.00")
        assert transaction.occurred_at.date() == date(2024, 1, 5)
        assert (transaction.occurred_at.hour, transaction.occurred_at.minute) == (14, 30)

    def test_datetime_column(self):
        schema = ColumnSchema(
            name="Broker",
            margins=Margins(),
            delimiter=",",
            amount_layout=Combined(1, NumberFormat.AMERICAN),
            datetime_layout=DateTime(0, "%Y-%m-%dT%H:%M:%S"),
        )
        transaction = RowParsingEngine(schema).parse_row(0, "2024-01-05T09:15:00,1.00")
        assert transaction.occurred_at.hour == 9

    def test_description_tags_and_origin(self):
        tag = Tag("imported")
        origin = Origin("Savings")
        schema = ColumnSchema(
            name="Savings",
            margins=Margins(),
            delimiter=";",
            amount_layout=Combined(1, NumberFormat.AMERICAN),
            datetime_layout=Date(0, "%Y-%m-%d"),
            other_columns={2: Description(), 3: Description()},
            default_tags=frozenset({tag}),
            origin=origin,
        )
        transaction = RowParsingEngine(schema).parse_row(0, "2024-01-05;1.00;Rent;January")

        assert transaction.description_text == "Rent January"
        assert transaction.tags == frozenset({tag})
        assert transaction.origin == origin

    def test_assemble_requires_amount(self, engine):
        with pytest.raises(BuildRecordError):
            engine._assemble_amount([])


class TestLayoutColumns:
    """Amount and datetime come from the columns the layouts declare."""

    def test_extra_movement_column_left_of_combined(self):
        schema = ColumnSchema(
            name="Extra",
            margins=Margins(),
            delimiter=";",
            amount_layout=Combined(2, NumberFormat.AMERICAN),
            datetime_layout=Date(0, "%Y-%m-%d"),
            other_columns={1: Movement(NumberFormat.AMERICAN)},
        )
        transaction = RowParsingEngine(schema).parse_row(0, "2024-01-05;999.00;-12.50")
        assert transaction.amount_cents == -1250

    def test_extra_income_column_left_of_split(self):
        schema = ColumnSchema(
            name="Extra",
            margins=Margins(),
            delimiter=";",
            amount_layout=Split(2, 3, NumberFormat.AMERICAN),
            datetime_layout=Date(0, "%Y-%m-%d"),
            other_columns={1: Income(NumberFormat.AMERICAN)},
        )
        transaction = RowParsingEngine(schema).parse_row(0, "2024-01-05;5000.00;20.00;")
        assert transaction.amount_cents == 2000

    def test_extra_positive_expense_column(self):
        schema = ColumnSchema(
            name="Extra",
            margins=Margins(),
            delimiter=",",
            amount_layout=OnlyPositiveExpense(2, NumberFormat.AMERICAN),
            datetime_layout=Date(0, "%Y-%m-%d"),
            other_columns={1: PositiveExpense(NumberFormat.AMERICAN)},
        )
        transaction = RowParsingEngine(schema).parse_row(0, "2024-01-05,1.00,4.99")
        assert transaction.amount_cents == -499


class TestParseImportRows:

    def test_failed_batch_leaves_rows_untagged(self, engine):
        rows = [
            ImportRow(row_content="2024-01-05;-12.50", row_index=1),
            ImportRow(row_content="2024-01-06;n/a", row_index=2),
        ]
        with pytest.raises(NumberParsingError):
            engine.parse_import_rows(rows)

        assert all(row.group_uuid is None for row in rows)

    def test_rows_get_groups(self, engine):
        rows = [
            ImportRow(row_content="2024-01-05;-12.50", row_index=1),
            ImportRow(row_content="2024-01-06;20.00", row_index=2),
        ]
        result = engine.parse_import_rows(rows)

        assert len(result.transactions) == 2
        assert len(result.groups) == 2
        for row, transaction, group in zip(rows, result.transactions, result.groups):
            assert row.group_uuid == group.uuid
            assert transaction.group_uuid == group.uuid


class TestPreview:
    """Fail-soft preview of a draft profile."""

    def test_margin_rows_are_none(self, schema):
        assert intermediate_parse(schema, 0, "header", 4) is None
        assert intermediate_parse(schema, 3, "footer", 4) is None

    def test_no_delimiter_shows_raw(self):
        draft = ProfileBuilder("Draft").set_margins(0, 0)
        preview = intermediate_parse(draft, 0, "2024-01-05;-12.50", 1)
        assert preview == RawPreview("2024-01-05;-12.50")

    def test_errors_per_cell(self, schema):
        preview = intermediate_parse(schema, 1, "05.01.2024;abc", 4)

        assert isinstance(preview, ColumnPreview)
        assert preview.has_errors
        assert all(cell.error for cell in preview.cells)
        assert "05.01.2024" in preview.cells[0].text

    def test_valid_row(self, schema):
        preview = intermediate_parse(schema, 1, "2024-01-05;-12.50", 4)

        assert not preview.has_errors
        assert [cell.text for cell in preview.cells] == ["2024-01-05", "-12.50"]

    def test_missing_column_reported(self, schema):
        preview = intermediate_parse(schema, 1, "2024-01-05", 4)

        assert len(preview.cells) == 2
        assert not preview.cells[0].error
        assert preview.cells[1].error

    def test_partial_draft(self):
        draft = (
            ProfileBuilder("Draft")
            .set_delimiter(";")
            .set_amount_layout(Combined(1, NumberFormat.AMERICAN))
        )
        preview = intermediate_parse(draft, 0, "anything;3.00", 1)
        assert [cell.text for cell in preview.cells] == ["anything", "3.00"]

    def test_preview_matches_real_parse_margins(self, schema, engine):
        previews = preview_file(schema, STATEMENT)
        parsed_indices = [index for index, _ in engine.eligible_rows(STATEMENT)]

        assert [index for index, p in previews if p is not None] == parsed_indices

    def test_preview_limit(self, schema):
        assert len(preview_file(schema, STATEMENT, limit=2)) == 2

    def test_preview_default_limit(self, schema):
        text = "\n".join(f"2024-01-05;{i}.00" for i in range(80))
        previews = preview_file(schema, text)
        assert len(previews) == get_settings().max_preview_rows


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
