from .audit import AuditEntry, ModerationAuditLog, ModerationStats
from .base import (
    ContentType,
    ModerationAction,
    ModerationLevel,
    ModerationVerdict,
)
from .classifier import ContentClassifier, escalate_for_call

__all__ = [
    "AuditEntry",
    "ContentClassifier",
    "ContentType",
    "ModerationAction",
    "ModerationAuditLog",
    "ModerationLevel",
    "ModerationStats",
    "ModerationVerdict",
    "escalate_for_call",
]
