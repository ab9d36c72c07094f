from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from gigreview.utils.clock import Clock, utc_now
from .base import ContentType, ModerationLevel, ModerationVerdict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    """Record of a single moderation decision."""
    id: str
    timestamp: datetime
    content_type: ContentType
    content: str
    sender_id: str
    verdict: ModerationVerdict

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "content_type": self.content_type.value,
            "content": self.content,
            "sender_id": self.sender_id,
            "verdict": self.verdict.to_dict(),
        }


@dataclass(frozen=True)
class ModerationStats:
    total_moderated: int
    violations: int
    warnings: int
    safe_content: int

    @property
    def violation_rate(self) -> float:
        if self.total_moderated == 0:
            return 0.0
        return self.violations / self.total_moderated


class ModerationAuditLog:
    """
    Append-only log of moderation verdicts, shared by the message and call paths.
    Optionally mirrors each entry to a JSONL file.
    """

    def __init__(self, jsonl_path: Optional[Path] = None, clock: Clock = utc_now):
        self.entries: List[AuditEntry] = []
        self.jsonl_path = jsonl_path
        self._clock = clock
        self._lock = threading.Lock()
        if jsonl_path:
            jsonl_path.parent.mkdir(parents=True, exist_ok=True)

    def record(
        self,
        content: str,
        sender_id: str,
        content_type: ContentType,
        verdict: ModerationVerdict,
    ) -> AuditEntry:
        entry = AuditEntry(
            id=str(uuid.uuid4()),
            timestamp=self._clock(),
            content_type=ContentType(content_type),
            content=content,
            sender_id=sender_id,
            verdict=verdict,
        )
        with self._lock:
            self.entries.append(entry)
            if self.jsonl_path:
                with self.jsonl_path.open("a", encoding="utf-8") as f:
                    f.write(json.dumps(entry.to_dict()) + "\n")
        if verdict.level >= ModerationLevel.VIOLATION:
            logger.warning(
                "%s from %s flagged %s (%s) -> %s",
                entry.content_type.value,
                sender_id,
                verdict.level.value,
                verdict.flagged_content,
                verdict.action.value,
            )
        return entry

    def entries_for_sender(self, sender_id: str) -> List[AuditEntry]:
        with self._lock:
            return [e for e in self.entries if e.sender_id == sender_id]

    def stats(self) -> ModerationStats:
        with self._lock:
            levels = [e.verdict.level for e in self.entries]
        total = len(levels)
        violations = sum(1 for lv in levels if lv >= ModerationLevel.VIOLATION)
        warnings = sum(1 for lv in levels if lv is ModerationLevel.WARNING)
        return ModerationStats(
            total_moderated=total,
            violations=violations,
            warnings=warnings,
            safe_content=total - violations - warnings,
        )

    def clear(self) -> None:
        """Reset the in-memory log. The JSONL file is left untouched."""
        with self._lock:
            self.entries.clear()
