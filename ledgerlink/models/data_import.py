"""Models describing imported files and their raw rows."""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .transaction import local_now, new_uuid


def split_lines(text: str) -> List[str]:
    """
    Split file contents into lines.

    Only "\\n" separates lines, a trailing "\\r" is stripped from every line
    and the empty string after a final newline is not a line.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@dataclass
class Group:
    """Ties the records parsed from one row to that row."""
    uuid: str = field(default_factory=new_uuid)
    created_at: datetime = field(default_factory=local_now)


@dataclass
class ImportRow:
    """A raw line of an imported file, stored verbatim for overlap checks."""
    row_content: str
    row_index: int
    uuid: str = field(default_factory=new_uuid)
    group_uuid: Optional[str] = None
    data_import_uuid: Optional[str] = None


@dataclass
class DataImport:
    """One imported file and all of its rows."""
    profile_uuid: str
    file_hash: str
    file_path: str
    uuid: str = field(default_factory=new_uuid)
    imported_at: datetime = field(default_factory=local_now)
    rows: List[ImportRow] = field(default_factory=list)

    @classmethod
    def init(
        cls,
        profile_uuid: str,
        file_contents: str,
        file_path: str,
    ) -> "DataImport":
        """Create a new import record, hashing the file contents."""
        digest = hashlib.sha256(file_contents.encode("utf-8")).hexdigest()
        return cls(
            profile_uuid=profile_uuid,
            file_hash=digest,
            file_path=str(file_path),
        )

    def add_rows(self, rows: List[ImportRow]) -> None:
        for row in rows:
            row.data_import_uuid = self.uuid
            self.rows.append(row)

    def sorted_rows(self) -> List[ImportRow]:
        return sorted(self.rows, key=lambda r: r.row_index)

    def sort_by_index(self) -> None:
        self.rows.sort(key=lambda r: r.row_index)


def import_rows_from_text(text: str) -> List[ImportRow]:
    """Turn raw file contents into import rows in file order."""
    return [
        ImportRow(row_content=line, row_index=index)
        for index, line in enumerate(split_lines(text))
    ]
