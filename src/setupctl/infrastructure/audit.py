"""Append-only admin audit trail (one JSON object per line)."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class AuditLog:
    """Append-only JSONL log of administrative actions.

    INVARIANT: Entries are only ever appended; existing lines are never
    rewritten.  A failed append is logged and never raised.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def append(self, message: str, **fields: Any) -> bool:
        """Append *message* (plus any extra *fields*). Returns True on success."""
        entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "message": message,
            **fields,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry, separators=(",", ":")) + "\n")
        except OSError as exc:
            logger.error("Failed to append to audit log %s: %s", self.path, exc)
            return False
        return True

    def entries(self) -> list[dict[str, Any]]:
        """Read back all entries, oldest first."""
        if not self.path.is_file():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]
