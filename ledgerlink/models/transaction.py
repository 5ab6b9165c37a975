"""Transaction models produced by the profile parser."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple
from uuid import uuid4

from .enums import FieldKind, RecordState, SpecialType


def new_uuid() -> str:
    return str(uuid4())


def local_now() -> datetime:
    """Current time as a timezone aware local datetime."""
    return datetime.now().astimezone()


@dataclass(frozen=True)
class Tag:
    """A user defined label attached to records."""
    tag: str
    description: str = ""
    uuid: str = field(default_factory=new_uuid)


@dataclass(frozen=True)
class Origin:
    """The account or institution a statement comes from."""
    name: str
    description: str = ""
    uuid: str = field(default_factory=new_uuid)


@dataclass(frozen=True)
class TypedField:
    """
    A single cell after parsing.

    `value` is an int (cents) for amount kinds, a date/datetime/time for
    the temporal kinds and the raw text for everything else.
    """
    position: int
    kind: FieldKind
    raw: str
    value: Any
    label: str = ""
    special_type: Optional[SpecialType] = None


@dataclass(frozen=True)
class DescriptionEntry:
    """One version of a description text."""
    text: str
    created_at: datetime = field(default_factory=local_now)


@dataclass(frozen=True)
class DescriptionHistory:
    """Description text together with every earlier version of it."""
    current: DescriptionEntry
    history: Tuple[DescriptionEntry, ...] = ()

    @classmethod
    def init(cls, text: str) -> "DescriptionHistory":
        return cls(current=DescriptionEntry(text))

    @property
    def text(self) -> str:
        return self.current.text

    def revise(self, text: str) -> "DescriptionHistory":
        """Return a new history with `text` as current and the old text archived."""
        return DescriptionHistory(
            current=DescriptionEntry(text),
            history=self.history + (self.current,),
        )


@dataclass(frozen=True)
class Transaction:
    """
    A single financial record built from one statement row.
    All monetary amounts are stored in CENTS (integer) to avoid floating point errors.
    Instances are never mutated, corrections produce a new instance.
    """
    # Financial data
    amount_cents: int
    occurred_at: datetime

    # Identity
    uuid: str = field(default_factory=new_uuid)
    created_at: datetime = field(default_factory=local_now)

    # Content
    description: Optional[DescriptionHistory] = None
    tags: FrozenSet[Tag] = frozenset()
    origin: Optional[Origin] = None
    raw_fields: Tuple[TypedField, ...] = ()

    # Import provenance
    group_uuid: Optional[str] = None

    state: RecordState = RecordState.ACTIVE

    @property
    def amount(self) -> float:
        """Return amount in standard units."""
        return self.amount_cents / 100.0

    @property
    def description_text(self) -> Optional[str]:
        return self.description.text if self.description else None

    def has_same_uuid(self, other: "Transaction") -> bool:
        return self.uuid == other.uuid

    def with_description(self, text: str) -> "Transaction":
        """Return a corrected copy carrying `text` and the description history."""
        if self.description is None:
            description = DescriptionHistory.init(text)
        else:
            description = self.description.revise(text)
        return replace(self, description=description)

    def sort_key(self) -> Tuple[datetime, int]:
        return (self.occurred_at, self.amount_cents)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "uuid": self.uuid,
            "created_at": self.created_at.isoformat(),
            "amount_cents": self.amount_cents,
            "amount": self.amount,
            "occurred_at": self.occurred_at.isoformat(),
            "description": self.description_text,
            "description_history": [
                entry.text for entry in self.description.history
            ] if self.description else [],
            "tags": sorted(tag.tag for tag in self.tags),
            "origin": self.origin.name if self.origin else None,
            "group_uuid": self.group_uuid,
            "state": self.state.value,
            "raw_fields": [
                {
                    "position": f.position,
                    "kind": f.kind.value,
                    "raw": f.raw,
                }
                for f in self.raw_fields
            ],
        }


# The statement side of the system calls these expense records.
ExpenseRecord = Transaction
