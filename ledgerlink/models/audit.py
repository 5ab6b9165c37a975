"""Audit trail models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .enums import AuditAction
from .transaction import local_now, new_uuid


@dataclass
class AuditEntry:
    """An entry in the audit log."""
    id: str = field(default_factory=new_uuid)
    timestamp: datetime = field(default_factory=local_now)

    # Action
    action: AuditAction = AuditAction.IMPORT_STARTED

    # Context
    record_ids: List[str] = field(default_factory=list)
    import_id: Optional[str] = None

    # Details
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    # Outcome
    success: bool = True
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.value,
            "record_ids": list(self.record_ids),
            "import_id": self.import_id,
            "message": self.message,
            "details": self.details,
            "success": self.success,
            "error_message": self.error_message,
        }
