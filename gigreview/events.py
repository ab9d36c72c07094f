from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionCreated:
    session_id: str
    gig_id: str
    provider_id: str
    customer_id: str
    source: str
    created_at: datetime


@dataclass(frozen=True)
class SessionPrompted:
    session_id: str
    user_id: str


@dataclass(frozen=True)
class PromptAvailable:
    """A review prompt for this session is ready to show to user_id."""
    session_id: str
    gig_id: str
    user_id: str


@dataclass(frozen=True)
class SessionClosed:
    session_id: str
    status: str


@dataclass(frozen=True)
class ReviewSubmitted:
    review_id: str
    gig_id: str
    reviewee_id: str
    reviewee_role: str
    rating: int


Callback = Callable[[object], None]


class EventBus:
    """
    Callback registry for mutation notifications.
    Callbacks run synchronously on the publishing thread; a failing callback is
    logged and never breaks the operation that published the event.
    """

    def __init__(self):
        self._subscribers: Dict[Type, List[Callback]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type, callback: Callback) -> Callable[[], None]:
        with self._lock:
            self._subscribers[event_type].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(event_type, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def publish(self, event: object) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(type(event), []))
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Event callback failed for %s", type(event).__name__)
