"""Data models for statement import and record linking."""

from .enums import (
    AuditAction,
    FieldKind,
    ImportStage,
    LinkType,
    NumberFormat,
    PossibleLinkState,
    RecordState,
    SpecialType,
)
from .transaction import (
    DescriptionEntry,
    DescriptionHistory,
    ExpenseRecord,
    Origin,
    Tag,
    Transaction,
    TypedField,
    local_now,
    new_uuid,
)
from .data_import import (
    DataImport,
    Group,
    ImportRow,
    import_rows_from_text,
    split_lines,
)
from .link import Link, PossibleLink
from .audit import AuditEntry

__all__ = [
    # Enums
    "AuditAction",
    "FieldKind",
    "ImportStage",
    "LinkType",
    "NumberFormat",
    "PossibleLinkState",
    "RecordState",
    "SpecialType",
    # Records
    "DescriptionEntry",
    "DescriptionHistory",
    "ExpenseRecord",
    "Origin",
    "Tag",
    "Transaction",
    "TypedField",
    "local_now",
    "new_uuid",
    # Imports
    "DataImport",
    "Group",
    "ImportRow",
    "import_rows_from_text",
    "split_lines",
    # Links
    "Link",
    "PossibleLink",
    # Audit
    "AuditEntry",
]
