"""
Import reconciliation pipeline.

A strictly linear state machine that takes one dropped file through
overlap detection, the user's row selection and the final parse:

    NONE -> FINDING_OVERLAPS -> OVERLAPS_FOUND -> PARSING -> FINISHED

The expensive steps are handed out as pending jobs so an external
scheduler can run them in the background and feed the result back.
A pipeline has a single owner, it is not safe to share between threads.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import structlog

from ..models import (
    DataImport,
    Group,
    ImportRow,
    ImportStage,
    Transaction,
    import_rows_from_text,
)
from ..profiles import ColumnSchema, RowParsingEngine
from .overlap import ImportOverlap, ImportOverlapDetector

logger = structlog.get_logger()


class PipelineStateError(RuntimeError):
    """A transition was requested from a stage that does not allow it."""


class ImportAlreadyActiveError(RuntimeError):
    """A file already has an active import pipeline."""


@dataclass
class RowSelection:
    """
    Whether a row of the new file will be parsed.

    `include` is None for margin rows, those are structurally not data
    and cannot be toggled.
    """
    include: Optional[bool]

    @classmethod
    def initial(cls, in_margins: bool, overlapping: bool) -> "RowSelection":
        if in_margins:
            return cls(include=None)
        # Already imported content needs an explicit decision
        return cls(include=not overlapping)

    @property
    def adjustable(self) -> bool:
        return self.include is not None

    def set(self, value: bool) -> None:
        if self.include is not None:
            self.include = value

    @property
    def is_to_parse(self) -> bool:
        return bool(self.include)


@dataclass
class ImportResultWithOverlap:
    """Outcome of overlap detection, the input of the user's row selection."""
    data_import: DataImport
    rows: List[Tuple[RowSelection, ImportRow]]
    schema: ColumnSchema
    overlaps: List[ImportOverlap]
    overlapping_indices: List[int] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        data_import: DataImport,
        rows: Sequence[ImportRow],
        schema: ColumnSchema,
        overlaps: List[ImportOverlap],
    ) -> "ImportResultWithOverlap":
        seen_content = {
            row.row_content
            for overlap in overlaps
            for row in overlap.data_import.rows
        }
        total = len(rows)
        tagged = []
        overlapping = []
        for index, row in enumerate(rows):
            in_margins = schema.is_margin(index, total)
            is_overlapping = not in_margins and row.row_content in seen_content
            if is_overlapping:
                overlapping.append(index)
            tagged.append((RowSelection.initial(in_margins, is_overlapping), row))

        return cls(
            data_import=data_import,
            rows=tagged,
            schema=schema,
            overlaps=overlaps,
            overlapping_indices=overlapping,
        )

    def set_row(self, index: int, include: bool) -> None:
        selection, _ = self.rows[index]
        if not selection.adjustable:
            logger.debug("Margin row cannot be selected", row_index=index)
        selection.set(include)

    def include_all_overlapping(self) -> None:
        for index in self.overlapping_indices:
            self.rows[index][0].set(True)

    def exclude_all(self) -> None:
        for selection, _ in self.rows:
            selection.set(False)

    def resolve_overlap(self, index: int) -> ImportOverlap:
        """Mark the overlap at `index` as reviewed by the user."""
        return self.overlaps.pop(index)

    def is_overlap_cleared(self) -> bool:
        return not self.overlaps

    def rows_to_parse(self) -> List[ImportRow]:
        return [row for selection, row in self.rows if selection.is_to_parse]

    def rows_to_skip(self) -> List[ImportRow]:
        return [row for selection, row in self.rows if not selection.is_to_parse]


@dataclass
class ParseOutcome:
    """Everything produced by a finished import."""
    transactions: List[Transaction]
    data_import: DataImport
    groups: List[Group]


@dataclass
class PendingJob:
    """A unit of work for the caller's scheduler."""
    stage: ImportStage
    generation: int
    func: Callable[[], Any]

    def run(self) -> Any:
        return self.func()


def compute_overlaps(
    schema: ColumnSchema,
    raw_text: str,
    file_path: str,
    prior_imports: Sequence[DataImport],
    detector: Optional[ImportOverlapDetector] = None,
) -> ImportResultWithOverlap:
    """Split the new file into rows and compare them with prior imports."""
    detector = detector or ImportOverlapDetector()
    rows = import_rows_from_text(raw_text)
    if not rows:
        raise ValueError(f"File has no rows: {file_path}")

    data_import = DataImport.init(schema.uuid, raw_text, file_path)
    overlaps = detector.detect(rows, prior_imports, schema.margins)
    return ImportResultWithOverlap.build(data_import, rows, schema, overlaps)


def parse_selected_rows(result: ImportResultWithOverlap) -> ParseOutcome:
    """
    Parse the included rows of an overlap result.

    The returned import holds every row of the file, parsed rows carry
    the group of the record they produced. Fails fast like parse_file.
    """
    data_import = result.data_import
    parse_result = RowParsingEngine(result.schema).parse_import_rows(
        result.rows_to_parse()
    )

    data_import.add_rows(result.rows_to_skip())
    data_import.add_rows(parse_result.parsed_rows)
    data_import.sort_by_index()

    return ParseOutcome(
        transactions=parse_result.transactions,
        data_import=data_import,
        groups=parse_result.groups,
    )


class ImportReconciliationPipeline:
    """
    State machine for importing one file.

    Transitions only happen through the explicit methods below, the
    state is never inferred.
    """

    def __init__(self, detector: Optional[ImportOverlapDetector] = None):
        self.detector = detector or ImportOverlapDetector()
        self.stage = ImportStage.NONE
        self._generation = 0
        self._pending: Optional[PendingJob] = None
        self._overlaps: Optional[ImportResultWithOverlap] = None
        self._outcome: Optional[ParseOutcome] = None

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def ready_for_new(self) -> bool:
        return self.stage == ImportStage.NONE

    @property
    def pending_job(self) -> Optional[PendingJob]:
        return self._pending

    @property
    def overlaps(self) -> ImportResultWithOverlap:
        self._require(ImportStage.OVERLAPS_FOUND, "read overlaps")
        return self._overlaps

    @property
    def outcome(self) -> ParseOutcome:
        self._require(ImportStage.FINISHED, "read outcome")
        return self._outcome

    def _require(self, stage: ImportStage, action: str) -> None:
        if self.stage != stage:
            raise PipelineStateError(
                f"Cannot {action} in stage {self.stage.value}, "
                f"expected {stage.value}"
            )

    def _new_job(self, stage: ImportStage, func: Callable[[], Any]) -> PendingJob:
        self._generation += 1
        self._pending = PendingJob(stage=stage, generation=self._generation, func=func)
        self.stage = stage
        return self._pending

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(
        self,
        schema: ColumnSchema,
        raw_text: str,
        file_path: str,
        prior_imports: Sequence[DataImport],
    ) -> PendingJob:
        """Begin an import, returns the overlap computation to run."""
        self._require(ImportStage.NONE, "start")
        snapshot = list(prior_imports)

        logger.info(
            "Import started",
            file_path=str(file_path),
            profile=schema.name,
            prior_imports=len(snapshot),
        )
        return self._new_job(
            ImportStage.FINDING_OVERLAPS,
            lambda: compute_overlaps(schema, raw_text, file_path, snapshot, self.detector),
        )

    def complete_overlaps(self, result: ImportResultWithOverlap) -> None:
        self._require(ImportStage.FINDING_OVERLAPS, "complete overlaps")
        self._pending = None
        self._overlaps = result
        self.stage = ImportStage.OVERLAPS_FOUND

    def start_parse(self) -> PendingJob:
        """Confirm the row selection, returns the parse job to run."""
        self._require(ImportStage.OVERLAPS_FOUND, "start parse")
        result = self._overlaps
        self._overlaps = None

        logger.info(
            "Parsing selected rows",
            file_path=result.data_import.file_path,
            rows=len(result.rows_to_parse()),
            skipped=len(result.rows_to_skip()),
        )
        return self._new_job(ImportStage.PARSING, lambda: parse_selected_rows(result))

    def complete_parse(self, outcome: ParseOutcome) -> None:
        self._require(ImportStage.PARSING, "complete parse")
        self._pending = None
        self._outcome = outcome
        self.stage = ImportStage.FINISHED

        logger.info(
            "Import finished",
            file_path=outcome.data_import.file_path,
            transactions=len(outcome.transactions),
        )

    def submit(self, job: PendingJob, value: Any) -> bool:
        """
        Feed the result of a finished job back into the pipeline.

        Results of jobs that were abandoned (the pipeline was cleared or
        restarted meanwhile) are discarded. Returns True if applied.
        """
        if self._pending is None or job.generation != self._pending.generation:
            logger.debug("Discarding abandoned job result", stage=job.stage.value)
            return False

        if job.stage == ImportStage.FINDING_OVERLAPS:
            self.complete_overlaps(value)
        else:
            self.complete_parse(value)
        return True

    def try_resolve(self) -> ImportStage:
        """Run the pending job synchronously and advance."""
        job = self._pending
        if job is not None:
            self.submit(job, job.run())
        return self.stage

    def clear(self) -> None:
        """Abort, from any stage."""
        if self.stage != ImportStage.NONE:
            logger.info("Import cleared", stage=self.stage.value)
        self.stage = ImportStage.NONE
        self._pending = None
        self._overlaps = None
        self._outcome = None


class ImportPipelines:
    """Keeps at most one active pipeline per file."""

    def __init__(self):
        self._pipelines: Dict[str, ImportReconciliationPipeline] = {}

    def open(self, file_path: str) -> ImportReconciliationPipeline:
        key = str(file_path)
        pipeline = self._pipelines.get(key)
        if pipeline is not None and pipeline.stage not in (
            ImportStage.NONE,
            ImportStage.FINISHED,
        ):
            raise ImportAlreadyActiveError(
                f"File is already being imported: {key} ({pipeline.stage.value})"
            )
        if pipeline is None or pipeline.stage == ImportStage.FINISHED:
            pipeline = ImportReconciliationPipeline()
            self._pipelines[key] = pipeline
        return pipeline

    def get(self, file_path: str) -> Optional[ImportReconciliationPipeline]:
        return self._pipelines.get(str(file_path))

    def close(self, file_path: str) -> None:
        pipeline = self._pipelines.pop(str(file_path), None)
        if pipeline is not None:
            pipeline.clear()

    def __len__(self) -> int:
        return len(self._pipelines)
