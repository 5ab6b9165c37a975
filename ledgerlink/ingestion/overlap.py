"""
Overlap detection between a newly dropped file and earlier imports.

Guards against importing the same statement lines twice: rows of the new
file are compared verbatim against the stored rows of every prior import.
"""

import copy
from dataclasses import dataclass
from typing import List, Optional, Sequence

import structlog

from ..models import DataImport, ImportRow
from ..profiles import Margins

logger = structlog.get_logger()


@dataclass
class ImportOverlap:
    """A prior import that shares row content with the new file."""
    data_import: DataImport
    first_match: int
    match_count: int


def find_overlaps(
    new_rows: Sequence[ImportRow],
    prior_imports: Sequence[DataImport],
    margins: Margins,
) -> List[ImportOverlap]:
    """
    Find every prior import with rows that reappear in the new file.

    Margin rows of the new file are not compared, they are expected to
    differ (headers, running balances).

    Args:
        new_rows: Rows of the new file in file order
        prior_imports: Earlier imports with their rows populated
        margins: Margins of the profile used for the new file

    Returns:
        One ImportOverlap per prior import with at least one matching row.
        `first_match` is the smallest new file row index matching any of
        its rows.
    """
    total = len(new_rows)
    first_index_by_content = {}
    for index, row in enumerate(new_rows):
        if margins.is_margin(index, total):
            continue
        first_index_by_content.setdefault(row.row_content, index)

    overlaps = []
    for prior in prior_imports:
        match_count = 0
        first_match: Optional[int] = None

        for row in prior.rows:
            index = first_index_by_content.get(row.row_content)
            if index is None:
                continue
            match_count += 1
            if first_match is None or index < first_match:
                first_match = index

        if match_count == 0:
            continue

        reported = copy.copy(prior)
        reported.rows = prior.sorted_rows()
        overlaps.append(ImportOverlap(
            data_import=reported,
            first_match=first_match,
            match_count=match_count,
        ))

    return overlaps


class ImportOverlapDetector:
    """Finds overlaps of new files with the imports handed in by the caller."""

    def detect(
        self,
        new_rows: Sequence[ImportRow],
        prior_imports: Sequence[DataImport],
        margins: Margins,
    ) -> List[ImportOverlap]:
        logger.info(
            "Searching import overlaps",
            new_rows=len(new_rows),
            prior_imports=len(prior_imports),
        )

        overlaps = find_overlaps(new_rows, prior_imports, margins)

        for overlap in overlaps:
            logger.info(
                "Import overlap found",
                data_import=overlap.data_import.uuid,
                file_path=overlap.data_import.file_path,
                first_match=overlap.first_match,
                match_count=overlap.match_count,
            )
        return overlaps
