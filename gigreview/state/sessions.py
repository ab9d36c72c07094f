from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from gigreview.errors import (
    InvalidInputError,
    InvalidTransitionError,
    SessionNotFoundError,
    require_id,
)
from gigreview.events import EventBus, SessionClosed, SessionCreated, SessionPrompted
from gigreview.utils.clock import Clock, ensure_aware, utc_now

logger = logging.getLogger(__name__)


class SessionSource(str, Enum):
    MESSAGE = "message"
    VOICE = "voice"


class SessionStatus(str, Enum):
    PENDING_REVIEW = "pending_review"
    REVIEW_PROMPTED = "review_prompted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# External transitions only; pending_review -> review_prompted goes through `promote`.
_CLOSE_FROM = {
    SessionStatus.COMPLETED: {SessionStatus.REVIEW_PROMPTED},
    SessionStatus.CANCELLED: {SessionStatus.PENDING_REVIEW, SessionStatus.REVIEW_PROMPTED},
}


@dataclass
class ServiceSession:
    """A gig that looks finished and is waiting on a review prompt."""
    id: str
    gig_id: str
    provider_id: str
    customer_id: str
    created_at: datetime
    source: SessionSource
    status: SessionStatus = SessionStatus.PENDING_REVIEW
    has_prompted_customer: bool = False
    has_prompted_provider: bool = False

    def involves(self, user_id: str) -> bool:
        return user_id in (self.customer_id, self.provider_id)

    @property
    def fully_prompted(self) -> bool:
        return self.has_prompted_customer and self.has_prompted_provider

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "gig_id": self.gig_id,
            "provider_id": self.provider_id,
            "customer_id": self.customer_id,
            "created_at": self.created_at.isoformat(),
            "source": self.source.value,
            "status": self.status.value,
            "has_prompted_customer": self.has_prompted_customer,
            "has_prompted_provider": self.has_prompted_provider,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ServiceSession":
        return cls(
            id=data["id"],
            gig_id=data["gig_id"],
            provider_id=data["provider_id"],
            customer_id=data["customer_id"],
            created_at=ensure_aware(datetime.fromisoformat(data["created_at"])),
            source=SessionSource(data.get("source", "message")),
            status=SessionStatus(data.get("status", "pending_review")),
            has_prompted_customer=data.get("has_prompted_customer", False),
            has_prompted_provider=data.get("has_prompted_provider", False),
        )


class SessionTracker:
    """
    Owns the service sessions.
    Scans inbound text for completion phrases and keeps at most one pending_review
    session per gig. All mutations go through one re-entrant lock, which callers
    such as the scheduler may hold across several calls via `lock`.
    """

    def __init__(
        self,
        completion_phrases: Iterable[str],
        clock: Clock = utc_now,
        bus: Optional[EventBus] = None,
        persistence_path: Optional[Path] = None,
    ):
        self.completion_phrases = [p.strip().lower() for p in completion_phrases if p and p.strip()]
        self.persistence_path = persistence_path
        self.lock = threading.RLock()
        self._clock = clock
        self._bus = bus
        self._sessions: Dict[str, ServiceSession] = {}
        if persistence_path and persistence_path.exists():
            self.load(persistence_path)

    def matched_phrases(self, text: str) -> List[str]:
        lowered = (text or "").lower()
        return [p for p in self.completion_phrases if p in lowered]

    def ingest_text(
        self,
        text: str,
        from_user_id: str,
        to_user_id: str,
        gig_id: str,
        source: SessionSource | str = SessionSource.MESSAGE,
    ) -> Optional[ServiceSession]:
        """
        Open a pending_review session for the gig if the text signals completion.
        The sender is recorded as provider and the receiver as customer.
        Returns the new session, or None when nothing was created.
        """
        gig_id = require_id(gig_id, "gig_id")
        provider_id = require_id(from_user_id, "from_user_id")
        customer_id = require_id(to_user_id, "to_user_id")
        source = _coerce(SessionSource, source, "source")
        if not isinstance(text, str):
            raise InvalidInputError("text must be a string")

        if not self.matched_phrases(text):
            return None

        with self.lock:
            existing = self._pending_for_gig(gig_id)
            if existing is not None:
                logger.debug("Gig %s already has pending session %s", gig_id, existing.id)
                return None
            session = ServiceSession(
                id=str(uuid.uuid4()),
                gig_id=gig_id,
                provider_id=provider_id,
                customer_id=customer_id,
                created_at=self._clock(),
                source=source,
            )
            self._sessions[session.id] = session
            created = replace(session)

        logger.info("Service session %s logged for gig %s via %s", created.id, gig_id, source.value)
        self._publish(
            SessionCreated(
                session_id=created.id,
                gig_id=created.gig_id,
                provider_id=created.provider_id,
                customer_id=created.customer_id,
                source=created.source.value,
                created_at=created.created_at,
            )
        )
        return created

    def ingest_message(self, text: str, from_user_id: str, to_user_id: str, gig_id: str) -> Optional[ServiceSession]:
        return self.ingest_text(text, from_user_id, to_user_id, gig_id, SessionSource.MESSAGE)

    def ingest_call_transcript(
        self, transcript: str, from_user_id: str, to_user_id: str, gig_id: str
    ) -> Optional[ServiceSession]:
        return self.ingest_text(transcript, from_user_id, to_user_id, gig_id, SessionSource.VOICE)

    def mark_prompted(self, session_id: str, user_id: str, notify: bool = True) -> bool:
        """
        Record that user_id has been shown the review prompt.
        Status is left alone. Unknown sessions or non-participants are a logged no-op.
        With notify=False the caller publishes SessionPrompted itself, after releasing `lock`.
        """
        with self.lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.warning("mark_prompted: no session %s", session_id)
                return False
            matched = False
            if user_id == session.customer_id:
                session.has_prompted_customer = True
                matched = True
            if user_id == session.provider_id:
                session.has_prompted_provider = True
                matched = True
            if not matched:
                logger.warning("mark_prompted: %s is not a participant of session %s", user_id, session_id)
                return False
        if notify:
            self._publish(SessionPrompted(session_id=session_id, user_id=user_id))
        return True

    def promote(self, session_id: str) -> ServiceSession:
        """Move a pending_review session to review_prompted. Used by the scheduler while holding `lock`."""
        with self.lock:
            session = self._get(session_id)
            if session.status != SessionStatus.PENDING_REVIEW:
                raise InvalidTransitionError(
                    session_id, session.status.value, SessionStatus.REVIEW_PROMPTED.value
                )
            session.status = SessionStatus.REVIEW_PROMPTED
            return replace(session)

    def complete(self, session_id: str) -> ServiceSession:
        return self._close(session_id, SessionStatus.COMPLETED)

    def cancel(self, session_id: str) -> ServiceSession:
        return self._close(session_id, SessionStatus.CANCELLED)

    def _close(self, session_id: str, target: SessionStatus) -> ServiceSession:
        with self.lock:
            session = self._get(session_id)
            if session.status not in _CLOSE_FROM[target]:
                raise InvalidTransitionError(session_id, session.status.value, target.value)
            session.status = target
            closed = replace(session)
        logger.info("Session %s closed as %s", session_id, target.value)
        self._publish(SessionClosed(session_id=session_id, status=target.value))
        return closed

    def get(self, session_id: str) -> Optional[ServiceSession]:
        with self.lock:
            session = self._sessions.get(session_id)
            return replace(session) if session else None

    def sessions(self, status: Optional[SessionStatus] = None) -> List[ServiceSession]:
        with self.lock:
            return [replace(s) for s in self._sessions.values() if status is None or s.status == status]

    def sessions_for_gig(self, gig_id: str) -> List[ServiceSession]:
        with self.lock:
            return [replace(s) for s in self._sessions.values() if s.gig_id == gig_id]

    def pending_for_user(self, user_id: str) -> List[ServiceSession]:
        with self.lock:
            return [
                replace(s)
                for s in self._sessions.values()
                if s.involves(user_id) and s.status == SessionStatus.PENDING_REVIEW
            ]

    def __len__(self) -> int:
        with self.lock:
            return len(self._sessions)

    def save(self, path: Optional[Path] = None) -> None:
        """Save sessions to a JSON snapshot."""
        save_path = path or self.persistence_path
        if not save_path:
            return
        save_path.parent.mkdir(parents=True, exist_ok=True)
        with self.lock:
            payload = [s.to_dict() for s in self._sessions.values()]
        save_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def load(self, path: Path) -> None:
        """Load sessions from a JSON snapshot, replacing sessions with the same id."""
        if not path.exists():
            return
        raw = json.loads(path.read_text(encoding="utf-8"))
        with self.lock:
            for data in raw:
                session = ServiceSession.from_dict(data)
                self._sessions[session.id] = session

    def _get(self, session_id: str) -> ServiceSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _pending_for_gig(self, gig_id: str) -> Optional[ServiceSession]:
        for session in self._sessions.values():
            if session.gig_id == gig_id and session.status == SessionStatus.PENDING_REVIEW:
                return session
        return None

    def _publish(self, event: object) -> None:
        if self._bus is not None:
            self._bus.publish(event)


def _coerce(enum_cls, value, name: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidInputError(f"{name} must be one of: {allowed}; got {value!r}") from exc
