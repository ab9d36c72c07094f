from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional


class ModerationLevel(str, Enum):
    """Ordered severity: safe < warning < violation < severe (not alphabetical)."""
    SAFE = "safe"
    WARNING = "warning"
    VIOLATION = "violation"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ModerationLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ModerationLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ModerationLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ModerationLevel):
            return NotImplemented
        return self.rank >= other.rank


_LEVEL_ORDER = [ModerationLevel.SAFE, ModerationLevel.WARNING, ModerationLevel.VIOLATION, ModerationLevel.SEVERE]


class ModerationAction(str, Enum):
    ALLOW = "allow"
    WARN = "warn"
    BLOCK = "block"
    REPORT = "report"
    END_CALL = "end_call"


class ContentType(str, Enum):
    MESSAGE = "message"
    CALL = "call"


ACTION_FOR_LEVEL = {
    ModerationLevel.SAFE: ModerationAction.ALLOW,
    ModerationLevel.WARNING: ModerationAction.WARN,
    ModerationLevel.VIOLATION: ModerationAction.BLOCK,
    ModerationLevel.SEVERE: ModerationAction.REPORT,
}

# Only these actions let text continue on to completion detection.
FORWARDING_ACTIONS = frozenset({ModerationAction.ALLOW, ModerationAction.WARN})


@dataclass(frozen=True)
class ModerationVerdict:
    level: ModerationLevel
    categories: List[str] = field(default_factory=list)
    confidence: float = 1.0
    flagged_content: Optional[str] = None
    action: ModerationAction = ModerationAction.ALLOW

    @property
    def allows_forwarding(self) -> bool:
        return self.action in FORWARDING_ACTIONS

    def with_action(self, action: ModerationAction) -> "ModerationVerdict":
        return replace(self, action=action)

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "categories": list(self.categories),
            "confidence": self.confidence,
            "flagged_content": self.flagged_content,
            "action": self.action.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModerationVerdict":
        return cls(
            level=ModerationLevel(data.get("level", "safe")),
            categories=list(data.get("categories", [])),
            confidence=float(data.get("confidence", 1.0)),
            flagged_content=data.get("flagged_content"),
            action=ModerationAction(data.get("action", "allow")),
        )
