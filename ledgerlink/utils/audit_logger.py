"""
Audit trail of import and linking decisions.

Every decision that changes what ends up in the ledger (an import, a
proposed or suppressed link, a confirmation) is kept as an AuditEntry
and echoed to structlog. The trail of one session can be queried per
record or per import and written out as JSON.
"""

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from ..config import get_settings
from ..models import AuditAction, AuditEntry

logger = structlog.get_logger()


class AuditLogger:
    """In-memory audit trail for one session."""

    def __init__(self, session_id: str, reports_dir: Optional[Path] = None):
        self.session_id = session_id
        self.reports_dir = reports_dir or get_settings().reports_dir
        self.entries: List[AuditEntry] = []

    def log(self, entry: AuditEntry) -> AuditEntry:
        self.entries.append(entry)

        log = logger.info if entry.success else logger.warning
        log(
            entry.message,
            action=entry.action.value,
            records=len(entry.record_ids),
            import_id=entry.import_id,
            error=entry.error_message,
        )
        return entry

    def record(
        self,
        action: AuditAction,
        message: str,
        record_ids: Optional[List[str]] = None,
        import_id: Optional[str] = None,
        error_message: Optional[str] = None,
        **details: Any,
    ) -> AuditEntry:
        """Build and log an entry, a given error message marks it failed."""
        return self.log(AuditEntry(
            action=action,
            message=message,
            record_ids=list(record_ids or []),
            import_id=import_id,
            details=details,
            success=error_message is None,
            error_message=error_message,
        ))

    def entries_for(
        self,
        action: Optional[AuditAction] = None,
        record_id: Optional[str] = None,
        import_id: Optional[str] = None,
        failures_only: bool = False,
    ) -> List[AuditEntry]:
        """
        Entries matching every given criterion.

        Args:
            action: Only entries of this action
            record_id: Only entries naming this record
            import_id: Only entries of this import
            failures_only: Only entries that record a failure
        """
        return [
            entry for entry in self.entries
            if (action is None or entry.action == action)
            and (record_id is None or record_id in entry.record_ids)
            and (import_id is None or entry.import_id == import_id)
            and (not failures_only or not entry.success)
        ]

    def summary(self) -> Dict[str, Any]:
        counts = Counter(entry.action.value for entry in self.entries)
        failures = [entry for entry in self.entries if not entry.success]
        return {
            "session_id": self.session_id,
            "total_entries": len(self.entries),
            "failures": len(failures),
            "action_counts": dict(counts),
            "imports": sorted({e.import_id for e in self.entries if e.import_id}),
        }

    def export(self, output_path: Optional[Path] = None) -> Path:
        """Write the trail as JSON, by default into the reports directory."""
        if output_path is None:
            output_path = self.reports_dir / f"audit_{self.session_id}.json"
        output_path.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            **self.summary(),
            "entries": [entry.to_dict() for entry in self.entries],
        }
        output_path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False, default=str),
            encoding="utf-8",
        )

        logger.info("Audit trail exported", path=str(output_path), entries=len(self.entries))
        return output_path
