"""
Tests for column schemas and the profile builder.
"""

import pytest

from ledgerlink.models import NumberFormat, Origin, Tag
from ledgerlink.profiles import (
    ColumnSchema,
    Combined,
    Date,
    DateAndTime,
    DateColumn,
    Description,
    Expense,
    Income,
    Margins,
    Movement,
    Other,
    ProfileBuilder,
    SchemaError,
    Split,
)


@pytest.fixture
def schema():
    return ColumnSchema(
        name="Checking",
        margins=Margins(1, 1),
        delimiter=";",
        amount_layout=Split(2, 3, NumberFormat.EUROPEAN),
        datetime_layout=Date(0, "%d.%m.%Y"),
        other_columns={1: Description(), 5: Other("reference")},
    )


class TestMargins:
    """Margin semantics shared by the parser and the preview."""

    @pytest.mark.parametrize("total, top, bottom", [
        (10, 0, 0),
        (10, 1, 1),
        (10, 3, 2),
        (4, 2, 2),
    ])
    def test_eligible_row_count(self, total, top, bottom):
        margins = Margins(top, bottom)
        assert len(margins.cut(list(range(total)))) == total - top - bottom

    def test_is_margin(self):
        margins = Margins(1, 2)
        flags = [margins.is_margin(i, 6) for i in range(6)]
        assert flags == [True, False, False, False, True, True]

    def test_negative_rejected(self):
        with pytest.raises(SchemaError):
            Margins(-1, 0)


class TestColumnSchema:

    def test_width_is_highest_position_plus_one(self, schema):
        assert schema.width == 6

    def test_declared_columns_sorted(self, schema):
        positions = [pos for pos, _ in schema.declared_columns()]
        assert positions == [0, 1, 2, 3, 5]
        assert schema.role_at(2) == Income(NumberFormat.EUROPEAN)
        assert schema.role_at(3) == Expense(NumberFormat.EUROPEAN)
        assert schema.role_at(4) is None

    def test_overlapping_positions_rejected(self):
        with pytest.raises(SchemaError):
            ColumnSchema(
                name="broken",
                margins=Margins(),
                delimiter=",",
                amount_layout=Combined(1),
                datetime_layout=Date(1, "%Y-%m-%d"),
            )

    def test_temporal_role_outside_layout_rejected(self):
        with pytest.raises(SchemaError):
            ColumnSchema(
                name="broken",
                margins=Margins(),
                delimiter=",",
                amount_layout=Combined(1),
                datetime_layout=Date(0, "%Y-%m-%d"),
                other_columns={2: DateColumn("%Y")},
            )

    def test_delimiter_must_be_single_character(self):
        with pytest.raises(SchemaError):
            ColumnSchema(
                name="broken",
                margins=Margins(),
                delimiter=";;",
                amount_layout=Combined(1),
                datetime_layout=Date(0, "%Y-%m-%d"),
            )

    def test_date_and_time_claims_two_columns(self):
        schema = ColumnSchema(
            name="Card",
            margins=Margins(),
            delimiter=",",
            amount_layout=Combined(2),
            datetime_layout=DateAndTime(0, "%Y-%m-%d", 1, "%H:%M"),
        )
        assert schema.positions() == [2, 0, 1]
        assert schema.width == 3

    def test_to_dict(self, schema):
        data = schema.to_dict()
        assert data["name"] == "Checking"
        assert data["margins"] == [1, 1]
        assert data["columns"]["1"] == "Description"


class TestProfileBuilder:

    def test_missing_parts(self):
        builder = ProfileBuilder()
        assert builder.missing_parts() == [
            "name", "margins", "delimiter", "amount_layout", "datetime_layout",
        ]
        with pytest.raises(SchemaError):
            builder.build()

    def test_build(self):
        tag = Tag("bank")
        origin = Origin("Main account")
        schema = (
            ProfileBuilder("Main")
            .set_margins(1, 0)
            .set_delimiter(",")
            .set_amount_layout(Combined(1, NumberFormat.AMERICAN))
            .set_datetime_layout(Date(0, "%Y-%m-%d"))
            .set_other_columns({2: Description()})
            .add_default_tag(tag)
            .set_origin(origin)
            .build()
        )

        assert schema.margins == Margins(1, 0)
        assert schema.role_at(1) == Movement(NumberFormat.AMERICAN)
        assert schema.default_tags == frozenset({tag})
        assert schema.origin == origin

    def test_conflicting_assignment(self):
        builder = ProfileBuilder("Main").set_amount_layout(Combined(1))
        with pytest.raises(SchemaError):
            builder.set_datetime_layout(Date(1, "%Y-%m-%d"))
        with pytest.raises(SchemaError):
            builder.set_other_columns({1: Description()})

    def test_replacing_a_layout_frees_its_columns(self):
        builder = ProfileBuilder("Main").set_amount_layout(Combined(1))
        builder.set_amount_layout(Combined(2))
        builder.set_datetime_layout(Date(1, "%Y-%m-%d"))
        assert builder.role_at(1) == DateColumn("%Y-%m-%d")

    def test_from_schema_keeps_identity(self, schema):
        edited = ProfileBuilder.from_schema(schema).set_margins(2, 0).build()
        assert edited.uuid == schema.uuid
        assert edited.margins == Margins(2, 0)
        assert schema.margins == Margins(1, 1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
