from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from gigreview.config import ModerationConfig
from .base import ACTION_FOR_LEVEL, ModerationAction, ModerationLevel, ModerationVerdict

SAFE_CONFIDENCE = 0.9
BASE_CONFIDENCE = 0.7


class ContentClassifier:
    """
    Keyword moderation for chat messages and call transcript segments.
    Tables are checked in priority order (severe, violation, warning) and the first
    table with any substring hit decides the level. Stateless once built.
    """

    def __init__(
        self,
        severe: Iterable[str] = (),
        violation: Iterable[str] = (),
        warning: Iterable[str] = (),
    ):
        self._tables: List[Tuple[ModerationLevel, Tuple[str, ...]]] = [
            (ModerationLevel.SEVERE, _terms(severe)),
            (ModerationLevel.VIOLATION, _terms(violation)),
            (ModerationLevel.WARNING, _terms(warning)),
        ]

    @classmethod
    def from_config(cls, config: ModerationConfig) -> "ContentClassifier":
        return cls(severe=config.severe, violation=config.violation, warning=config.warning)

    @property
    def tables(self) -> dict:
        return {level.value: list(terms) for level, terms in self._tables}

    def classify(self, text: Optional[str]) -> ModerationVerdict:
        content = (text or "").strip().lower()
        if not content:
            return _safe()

        for level, terms in self._tables:
            matches = [term for term in terms if term in content]
            if matches:
                return ModerationVerdict(
                    level=level,
                    categories=matches,
                    confidence=_confidence(matches),
                    flagged_content=", ".join(matches),
                    action=ACTION_FOR_LEVEL[level],
                )
        return _safe()


def escalate_for_call(verdict: ModerationVerdict, end_call_on_severe: bool = True) -> ModerationVerdict:
    """Live calls cannot block a single utterance, so severe content ends the call instead."""
    if end_call_on_severe and verdict.level is ModerationLevel.SEVERE:
        return verdict.with_action(ModerationAction.END_CALL)
    return verdict


def _terms(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(v.strip().lower() for v in values if v and v.strip())


def _confidence(matches: Sequence[str]) -> float:
    return min(1.0, BASE_CONFIDENCE + 0.1 * len(matches))


def _safe() -> ModerationVerdict:
    return ModerationVerdict(
        level=ModerationLevel.SAFE,
        categories=[],
        confidence=SAFE_CONFIDENCE,
        flagged_content=None,
        action=ModerationAction.ALLOW,
    )
