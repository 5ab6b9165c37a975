"""
Tests for the import reconciliation pipeline.
"""

import pytest

from ledgerlink.ingestion import (
    ImportAlreadyActiveError,
    ImportPipelines,
    ImportReconciliationPipeline,
    PipelineStateError,
)
from ledgerlink.models import DataImport, ImportStage, NumberFormat, import_rows_from_text
from ledgerlink.profiles import ColumnSchema, Combined, Date, DateParsingError, Margins


JANUARY = "header\n2024-01-05;-12.50\n2024-01-06;20.00\nfooter"
FEBRUARY = "header\n2024-01-06;20.00\n2024-02-01;-3.00\n2024-02-02;4.00\nfooter"


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
def january(schema):
    data_import = DataImport.init(schema.uuid, JANUARY, "january.csv")
    data_import.add_rows(import_rows_from_text(JANUARY))
    return data_import


@pytest.fixture
def pipeline():
    return ImportReconciliationPipeline()


class TestPipelineStages:
    """Linear stage transitions."""

    def test_happy_path(self, pipeline, schema, january):
        assert pipeline.ready_for_new

        job = pipeline.start(schema, FEBRUARY, "february.csv", [january])
        assert pipeline.stage == ImportStage.FINDING_OVERLAPS
        assert pipeline.pending_job is job

        assert pipeline.try_resolve() == ImportStage.OVERLAPS_FOUND
        assert pipeline.pending_job is None

        pipeline.start_parse()
        assert pipeline.stage == ImportStage.PARSING
        assert pipeline.try_resolve() == ImportStage.FINISHED

        outcome = pipeline.outcome
        assert [t.amount_cents for t in outcome.transactions] == [-300, 400]
        assert len(outcome.data_import.rows) == 5
        assert [r.row_index for r in outcome.data_import.rows] == [0, 1, 2, 3, 4]

    def test_parsed_rows_carry_groups(self, pipeline, schema):
        pipeline.start(schema, JANUARY, "january.csv", [])
        pipeline.try_resolve()
        pipeline.start_parse()
        pipeline.try_resolve()

        outcome = pipeline.outcome
        grouped = [r for r in outcome.data_import.rows if r.group_uuid]
        assert [r.row_index for r in grouped] == [1, 2]
        assert {t.group_uuid for t in outcome.transactions} == {r.group_uuid for r in grouped}
        assert all(r.data_import_uuid == outcome.data_import.uuid for r in outcome.data_import.rows)

    def test_start_parse_requires_overlaps(self, pipeline, schema):
        with pytest.raises(PipelineStateError):
            pipeline.start_parse()

        pipeline.start(schema, JANUARY, "january.csv", [])
        with pytest.raises(PipelineStateError):
            pipeline.start_parse()

    def test_cannot_start_twice(self, pipeline, schema):
        pipeline.start(schema, JANUARY, "january.csv", [])
        with pytest.raises(PipelineStateError):
            pipeline.start(schema, JANUARY, "january.csv", [])

    def test_outcome_only_when_finished(self, pipeline):
        with pytest.raises(PipelineStateError):
            pipeline.outcome

    def test_clear_from_any_stage(self, pipeline, schema):
        pipeline.start(schema, JANUARY, "january.csv", [])
        pipeline.try_resolve()
        pipeline.clear()

        assert pipeline.stage == ImportStage.NONE
        assert pipeline.pending_job is None
        assert pipeline.ready_for_new

    def test_abandoned_job_result_is_discarded(self, pipeline, schema):
        job = pipeline.start(schema, JANUARY, "january.csv", [])
        result = job.run()
        pipeline.clear()

        assert pipeline.submit(job, result) is False
        assert pipeline.stage == ImportStage.NONE

    def test_external_scheduler(self, pipeline, schema):
        job = pipeline.start(schema, JANUARY, "january.csv", [])
        assert pipeline.submit(job, job.run()) is True
        assert pipeline.stage == ImportStage.OVERLAPS_FOUND

    def test_parse_failure_propagates(self, pipeline, schema):
        pipeline.start(schema, "header\nnot-a-date;1.00\nfooter", "broken.csv", [])
        pipeline.try_resolve()
        pipeline.start_parse()

        with pytest.raises(DateParsingError):
            pipeline.try_resolve()
        assert pipeline.stage == ImportStage.PARSING


class TestRowSelection:
    """The user's choice of rows between detection and parsing."""

    @pytest.fixture
    def overlaps(self, pipeline, schema, january):
        pipeline.start(schema, FEBRUARY, "february.csv", [january])
        pipeline.try_resolve()
        return pipeline.overlaps

    def test_initial_tags(self, overlaps):
        includes = [selection.include for selection, _ in overlaps.rows]
        assert includes == [None, False, True, True, None]
        assert overlaps.overlapping_indices == [1]
        assert overlaps.overlaps[0].first_match == 1

    def test_include_overlapping(self, pipeline, overlaps):
        overlaps.include_all_overlapping()
        pipeline.start_parse()
        pipeline.try_resolve()

        assert [t.amount_cents for t in pipeline.outcome.transactions] == [2000, -300, 400]

    def test_margin_rows_cannot_be_selected(self, overlaps):
        overlaps.set_row(0, True)
        assert overlaps.rows[0][0].include is None

    def test_exclude_all(self, pipeline, overlaps):
        overlaps.exclude_all()
        assert overlaps.rows_to_parse() == []

        pipeline.start_parse()
        pipeline.try_resolve()
        assert pipeline.outcome.transactions == []
        assert len(pipeline.outcome.data_import.rows) == 5

    def test_resolve_overlap(self, overlaps):
        assert not overlaps.is_overlap_cleared()
        overlaps.resolve_overlap(0)
        assert overlaps.is_overlap_cleared()


class TestImportPipelines:

    def test_one_active_pipeline_per_file(self, schema):
        pipelines = ImportPipelines()
        pipeline = pipelines.open("january.csv")
        pipeline.start(schema, JANUARY, "january.csv", [])

        with pytest.raises(ImportAlreadyActiveError):
            pipelines.open("january.csv")

        assert pipelines.open("february.csv") is not pipeline
        assert len(pipelines) == 2

    def test_close_releases_file(self, schema):
        pipelines = ImportPipelines()
        pipelines.open("january.csv").start(schema, JANUARY, "january.csv", [])
        pipelines.close("january.csv")

        assert pipelines.get("january.csv") is None
        assert pipelines.open("january.csv").ready_for_new


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
