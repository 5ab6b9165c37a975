"""Enumerations for the statement import and linking system."""

from enum import Enum


class NumberFormat(str, Enum):
    """
    How a statement writes its numbers.

    EUROPEAN: "." as thousands separator and "," as decimal separator
    AMERICAN: "," as thousands separator and "." as decimal separator
    """
    EUROPEAN = "european"
    AMERICAN = "american"


class FieldKind(str, Enum):
    """Kind of a typed value produced from a single cell."""
    INCOME = "income"
    EXPENSE = "expense"
    POSITIVE_EXPENSE = "positive_expense"
    MOVEMENT = "movement"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    DESCRIPTION = "description"
    SPECIAL = "special"
    OTHER = "other"

    @property
    def is_amount(self) -> bool:
        return self in (
            FieldKind.INCOME,
            FieldKind.EXPENSE,
            FieldKind.POSITIVE_EXPENSE,
            FieldKind.MOVEMENT,
        )


class SpecialType(str, Enum):
    """Meaning of a special (non-core) column."""
    CURRENCY_EXCHANGE_RATE = "currency_exchange_rate"
    ORIGINAL_CURRENCY = "original_currency"
    EXCHANGE_COMMISION = "exchange_commision"
    TRANSACTION_STATE = "transaction_state"
    TRANSACTION_TYPE = "transaction_type"
    ACCOUNT_BALANCE = "account_balance"
    COMPLETED_DATE = "completed_date"
    UNKNOWN = "unknown"


class RecordState(str, Enum):
    """Lifecycle state of a stored transaction."""
    ACTIVE = "active"
    IGNORED = "ignored"
    DELETED = "deleted"


class LinkType(str, Enum):
    """
    Relationship between the leading and the following record.

    TRANSFER: the leading record's amount moved to the following record,
        both only describe a movement between own accounts
    DUPLICATE_OF: the leading record is a duplicate of the following one
    """
    TRANSFER = "transfer"
    DUPLICATE_OF = "duplicate_of"


class PossibleLinkState(str, Enum):
    """State of a link proposal."""
    ACTIVE = "active"
    DELETED = "deleted"
    CONVERTED = "converted"


class ImportStage(str, Enum):
    """Stage of an import reconciliation pipeline."""
    NONE = "none"
    FINDING_OVERLAPS = "finding_overlaps"
    OVERLAPS_FOUND = "overlaps_found"
    PARSING = "parsing"
    FINISHED = "finished"


class AuditAction(str, Enum):
    """Type of audit action."""
    IMPORT_STARTED = "import_started"
    OVERLAPS_FOUND = "overlaps_found"
    ROWS_PARSED = "rows_parsed"
    IMPORT_FAILED = "import_failed"
    LINK_PROPOSED = "link_proposed"
    LINK_SUPPRESSED = "link_suppressed"
    LINK_CONFIRMED = "link_confirmed"
    LINK_DISMISSED = "link_dismissed"
    PROBABILITY_DEGRADED = "probability_degraded"
