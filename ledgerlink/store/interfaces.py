"""
Collaborator interfaces.

The core never reads or writes storage itself, the embedding
application hands in objects implementing these protocols.
"""

from typing import List, Protocol, Sequence, Tuple

from ..models import DataImport, Link, PossibleLink, Transaction
from ..profiles import ColumnSchema


class PersistenceReader(Protocol):
    def all_data_imports(self) -> List[DataImport]:
        """Every stored import with its rows populated."""
        ...

    def all_records(self) -> List[Transaction]:
        ...

    def all_links(self) -> List[Link]:
        ...

    def all_possible_links(self) -> List[PossibleLink]:
        ...


class PersistenceWriter(Protocol):
    def save_import(self, data_import: DataImport) -> None:
        """Store an import together with its rows."""
        ...

    def save_records(self, records: Sequence[Transaction]) -> None:
        ...

    def insert_possible_links(self, possible_links: Sequence[PossibleLink]) -> None:
        ...

    def update_probabilities(self, probabilities: Sequence[Tuple[str, float]]) -> None:
        ...

    def delete_possible_links(self, possible_links: Sequence[PossibleLink]) -> None:
        """Store the given proposals in their retracted or converted state."""
        ...

    def insert_link(self, link: Link) -> None:
        ...


class ProfileStore(Protocol):
    def get_profile(self, profile_id: str) -> ColumnSchema:
        """Raises KeyError for unknown profiles."""
        ...
