"""In-memory storage, for tests and applications without a database."""

import copy
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from ..models import DataImport, Link, PossibleLink, Transaction
from ..profiles import ColumnSchema

logger = structlog.get_logger()


class InMemoryLedgerStore:
    """
    Dict backed implementation of the reader, writer and profile store.

    Readers get copies of the import lists so callers cannot change
    stored state by accident.
    """

    def __init__(self):
        self.imports: Dict[str, DataImport] = {}
        self.records: Dict[str, Transaction] = {}
        self.links: Dict[str, Link] = {}
        self.possible_links: Dict[str, PossibleLink] = {}
        self.profiles: Dict[str, ColumnSchema] = {}

    # Profiles

    def add_profile(self, schema: ColumnSchema, profile_id: Optional[str] = None) -> str:
        profile_id = profile_id or schema.uuid
        self.profiles[profile_id] = schema
        return profile_id

    def get_profile(self, profile_id: str) -> ColumnSchema:
        return self.profiles[profile_id]

    # Reader

    def all_data_imports(self) -> List[DataImport]:
        snapshot = []
        for data_import in self.imports.values():
            copied = copy.copy(data_import)
            copied.rows = list(data_import.rows)
            snapshot.append(copied)
        return snapshot

    def all_records(self) -> List[Transaction]:
        return list(self.records.values())

    def all_links(self) -> List[Link]:
        return list(self.links.values())

    def all_possible_links(self) -> List[PossibleLink]:
        return list(self.possible_links.values())

    def active_possible_links(self) -> List[PossibleLink]:
        return [pl for pl in self.possible_links.values() if pl.is_active]

    # Writer

    def save_import(self, data_import: DataImport) -> None:
        self.imports[data_import.uuid] = data_import

    def save_records(self, records: Sequence[Transaction]) -> None:
        for record in records:
            self.records[record.uuid] = record

    def insert_possible_links(self, possible_links: Sequence[PossibleLink]) -> None:
        for pl in possible_links:
            self.possible_links[pl.uuid] = pl

    def update_probabilities(self, probabilities: Sequence[Tuple[str, float]]) -> None:
        for uuid, probability in probabilities:
            existing = self.possible_links.get(uuid)
            if existing is None:
                logger.warning("Probability for unknown possible link", possible_link=uuid)
                continue
            self.possible_links[uuid] = replace(existing, probability=probability)

    def delete_possible_links(self, possible_links: Sequence[PossibleLink]) -> None:
        for pl in possible_links:
            self.possible_links[pl.uuid] = pl

    def insert_link(self, link: Link) -> None:
        self.links[link.uuid] = link
