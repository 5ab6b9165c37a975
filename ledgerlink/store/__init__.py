"""Storage collaborators."""

from .interfaces import PersistenceReader, PersistenceWriter, ProfileStore
from .memory import InMemoryLedgerStore

__all__ = [
    "PersistenceReader",
    "PersistenceWriter",
    "ProfileStore",
    "InMemoryLedgerStore",
]
