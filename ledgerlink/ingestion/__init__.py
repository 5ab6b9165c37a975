"""Ingestion module for overlap detection and staged file imports."""

from .overlap import ImportOverlap, ImportOverlapDetector, find_overlaps
from .pipeline import (
    ImportAlreadyActiveError,
    ImportPipelines,
    ImportReconciliationPipeline,
    ImportResultWithOverlap,
    ParseOutcome,
    PendingJob,
    PipelineStateError,
    RowSelection,
)

__all__ = [
    "ImportOverlap",
    "ImportOverlapDetector",
    "find_overlaps",
    "ImportAlreadyActiveError",
    "ImportPipelines",
    "ImportReconciliationPipeline",
    "ImportResultWithOverlap",
    "ParseOutcome",
    "PendingJob",
    "PipelineStateError",
    "RowSelection",
]
