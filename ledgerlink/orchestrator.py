"""
Import orchestrator - wires the pipeline, the link engine and storage.

    begin_import   -> overlaps computed, waiting for the row selection
    finish_import  -> rows parsed, records stored and linked
    confirm_link   -> a proposal becomes a Link
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import structlog

from .ingestion import (
    ImportPipelines,
    ImportReconciliationPipeline,
    ImportResultWithOverlap,
)
from .linking import LinkEngine, LinkPromotion
from .models import (
    AuditAction,
    DataImport,
    PossibleLink,
    Transaction,
)
from .profiles import ProfileError
from .store.interfaces import PersistenceReader, PersistenceWriter, ProfileStore
from .utils.audit_logger import AuditLogger

logger = structlog.get_logger()


@dataclass
class ImportSummary:
    """What a finished import changed."""
    data_import: DataImport
    records: List[Transaction]
    possible_links: List[PossibleLink]
    probabilities: Dict[str, float] = field(default_factory=dict)

    @property
    def record_count(self) -> int:
        return len(self.records)

    def to_dict(self) -> dict:
        return {
            "data_import": self.data_import.uuid,
            "file_path": self.data_import.file_path,
            "file_hash": self.data_import.file_hash,
            "rows": len(self.data_import.rows),
            "records": self.record_count,
            "possible_links": len(self.possible_links),
        }


class ImportOrchestrator:
    """
    Runs imports end to end against the given collaborators.

    Jobs run synchronously here. Applications with a scheduler drive
    ImportReconciliationPipeline directly and call the same steps.
    """

    def __init__(
        self,
        reader: PersistenceReader,
        writer: PersistenceWriter,
        profiles: ProfileStore,
        link_engine: Optional[LinkEngine] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.reader = reader
        self.writer = writer
        self.profiles = profiles
        self.audit = audit
        self.link_engine = link_engine or LinkEngine(audit=audit)
        self.pipelines = ImportPipelines()

    def _audit(self, action: AuditAction, message: str, **kwargs) -> None:
        if self.audit is not None:
            self.audit.record(action, message, **kwargs)

    def begin_import(
        self,
        profile_id: str,
        raw_text: str,
        file_path: str,
    ) -> ImportReconciliationPipeline:
        """
        Start importing a file and run overlap detection.

        Returns:
            The file's pipeline in stage OVERLAPS_FOUND, its `overlaps`
            hold the row selection for the user to adjust

        Raises:
            ImportAlreadyActiveError: the file is already being imported
            KeyError: unknown profile
        """
        schema = self.profiles.get_profile(profile_id)
        pipeline = self.pipelines.open(file_path)

        pipeline.start(schema, raw_text, file_path, self.reader.all_data_imports())
        try:
            pipeline.try_resolve()
        except Exception:
            self.pipelines.close(file_path)
            raise

        result: ImportResultWithOverlap = pipeline.overlaps
        self._audit(
            AuditAction.IMPORT_STARTED,
            "Import started",
            import_id=result.data_import.uuid,
            file_path=str(file_path),
            profile=schema.name,
        )
        if result.overlaps:
            self._audit(
                AuditAction.OVERLAPS_FOUND,
                "File overlaps earlier imports",
                import_id=result.data_import.uuid,
                overlapping_imports=[o.data_import.uuid for o in result.overlaps],
                overlapping_rows=len(result.overlapping_indices),
            )
        return pipeline

    def finish_import(self, pipeline: ImportReconciliationPipeline) -> ImportSummary:
        """
        Parse the selected rows, store everything and link the new records.

        Nothing is stored if a row does not fit the profile; the pipeline
        is cleared and the ProfileError propagates.
        """
        file_path = pipeline.overlaps.data_import.file_path
        pipeline.start_parse()
        try:
            pipeline.try_resolve()
        except ProfileError as e:
            logger.warning("Import failed", file_path=file_path, error=str(e))
            self._audit(
                AuditAction.IMPORT_FAILED,
                "Import failed",
                error_message=str(e),
                file_path=file_path,
            )
            self.pipelines.close(file_path)
            raise

        outcome = pipeline.outcome
        existing_records = self.reader.all_records()
        links = self.reader.all_links()
        possible_links = [pl for pl in self.reader.all_possible_links() if pl.is_active]

        self.writer.save_import(outcome.data_import)
        self.writer.save_records(outcome.transactions)
        self._audit(
            AuditAction.ROWS_PARSED,
            "Rows parsed",
            import_id=outcome.data_import.uuid,
            record_ids=[t.uuid for t in outcome.transactions],
        )

        proposals = self.link_engine.find_links_from_new_records(
            outcome.transactions,
            existing_records,
            links,
            possible_links,
        )
        self.writer.insert_possible_links(proposals)

        # Rescore stored proposals as well
        probabilities = self.link_engine.recompute_probabilities(
            possible_links + proposals,
            existing_records + outcome.transactions,
        )
        self.writer.update_probabilities(probabilities)

        self.pipelines.close(file_path)

        summary = ImportSummary(
            data_import=outcome.data_import,
            records=outcome.transactions,
            possible_links=proposals,
            probabilities=dict(probabilities),
        )
        logger.info("Import stored", **summary.to_dict())
        return summary

    def confirm_link(self, possible_link_uuid: str) -> LinkPromotion:
        """
        Confirm a proposal.

        Raises:
            KeyError: no active possible link with that uuid
        """
        possible_links = [pl for pl in self.reader.all_possible_links() if pl.is_active]
        by_uuid = {pl.uuid: pl for pl in possible_links}
        if possible_link_uuid not in by_uuid:
            raise KeyError(f"No active possible link {possible_link_uuid}")

        promotion = self.link_engine.confirm(by_uuid[possible_link_uuid], possible_links)
        self.writer.insert_link(promotion.link)
        self.writer.delete_possible_links([promotion.converted] + promotion.retracted)
        return promotion
