from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from gigreview.moderation import (
    ContentClassifier,
    ContentType,
    ModerationAuditLog,
    ModerationLevel,
    ModerationVerdict,
    escalate_for_call,
)
from gigreview.state.sessions import ServiceSession, SessionSource, SessionTracker

MESSAGE_ALERTS = {
    ModerationLevel.SAFE: "Message sent successfully.",
    ModerationLevel.WARNING: "Warning: Your message contains potentially inappropriate content. Please be respectful.",
    ModerationLevel.VIOLATION: "Your message has been blocked due to inappropriate content. Please review our community guidelines.",
    ModerationLevel.SEVERE: "Your message has been blocked and reported due to severe violations. This incident has been logged.",
}

CALL_ALERTS = {
    ModerationLevel.SAFE: "Call proceeding normally.",
    ModerationLevel.WARNING: "Warning: Inappropriate language detected. Please be respectful during the call.",
    ModerationLevel.VIOLATION: "Inappropriate content detected. This call is being monitored.",
    ModerationLevel.SEVERE: "This call has been ended due to a severe violation. The incident has been reported.",
}


@dataclass
class GateResult:
    """Outcome of moderating one text payload."""
    verdict: ModerationVerdict
    forwarded: bool
    alert: str
    session: Optional[ServiceSession] = None

    @property
    def delivered(self) -> bool:
        return self.verdict.allows_forwarding


class ModerationGate:
    """
    Front door for chat messages and call transcripts.
    Classifies, records an audit entry, and hands allowed or warned text to the
    session tracker. Blocked, reported and call-ending text never reaches it.
    """

    def __init__(
        self,
        classifier: ContentClassifier,
        audit_log: ModerationAuditLog,
        tracker: SessionTracker,
        end_call_on_severe: bool = True,
    ):
        self.classifier = classifier
        self.audit = audit_log
        self.tracker = tracker
        self.end_call_on_severe = end_call_on_severe

    def moderate_message(
        self, text: str, sender_id: str, receiver_id: str, gig_id: Optional[str] = None
    ) -> GateResult:
        verdict = self.classifier.classify(text)
        self.audit.record(text, sender_id, ContentType.MESSAGE, verdict)
        session = self._forward(verdict, text, sender_id, receiver_id, gig_id, SessionSource.MESSAGE)
        return GateResult(
            verdict=verdict,
            forwarded=verdict.allows_forwarding and gig_id is not None,
            alert=MESSAGE_ALERTS[verdict.level],
            session=session,
        )

    def moderate_call_transcript(
        self, transcript: str, participant_id: str, other_id: str, gig_id: Optional[str] = None
    ) -> GateResult:
        verdict = escalate_for_call(self.classifier.classify(transcript), self.end_call_on_severe)
        self.audit.record(transcript, participant_id, ContentType.CALL, verdict)
        session = self._forward(verdict, transcript, participant_id, other_id, gig_id, SessionSource.VOICE)
        return GateResult(
            verdict=verdict,
            forwarded=verdict.allows_forwarding and gig_id is not None,
            alert=CALL_ALERTS[verdict.level],
            session=session,
        )

    def _forward(
        self,
        verdict: ModerationVerdict,
        text: str,
        from_id: str,
        to_id: str,
        gig_id: Optional[str],
        source: SessionSource,
    ) -> Optional[ServiceSession]:
        if not verdict.allows_forwarding or gig_id is None:
            return None
        return self.tracker.ingest_text(text, from_id, to_id, gig_id, source)
