from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import List, Optional

from gigreview.config import SchedulerConfig
from gigreview.events import EventBus, PromptAvailable, SessionPrompted
from gigreview.state.sessions import ServiceSession, SessionStatus, SessionTracker
from gigreview.utils.clock import Clock, ensure_aware, utc_now

logger = logging.getLogger(__name__)


class ReviewPromptScheduler:
    """
    Promotes pending_review sessions to review_prompted once they have dwelt long enough.

    `start()` runs a tick right away and then one per interval on a background thread.
    `stop()` sets the cancellation event and joins the thread, so an in-flight tick
    always finishes before it returns.
    """

    def __init__(
        self,
        tracker: SessionTracker,
        dwell: timedelta = timedelta(hours=24),
        interval_seconds: float = 3600.0,
        clock: Clock = utc_now,
        bus: Optional[EventBus] = None,
    ):
        if dwell <= timedelta(0):
            raise ValueError("dwell must be positive")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.tracker = tracker
        self.dwell = dwell
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._bus = bus
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._tick_lock = threading.Lock()
        self.ticks = 0

    @classmethod
    def from_config(
        cls,
        tracker: SessionTracker,
        config: SchedulerConfig,
        clock: Clock = utc_now,
        bus: Optional[EventBus] = None,
    ) -> "ReviewPromptScheduler":
        return cls(
            tracker,
            dwell=timedelta(hours=config.dwell_hours),
            interval_seconds=config.tick_interval_seconds,
            clock=clock,
            bus=bus,
        )

    def tick(self, now: Optional[datetime] = None) -> List[ServiceSession]:
        """Run one scan and return the sessions promoted by it."""
        now = ensure_aware(now or self._clock())
        promoted: List[ServiceSession] = []
        prompted_events: List[SessionPrompted] = []
        with self._tick_lock:
            # Status flip and prompt flags land together with respect to ingestion.
            with self.tracker.lock:
                for session in self.tracker.sessions(SessionStatus.PENDING_REVIEW):
                    if now - session.created_at < self.dwell:
                        continue
                    self.tracker.promote(session.id)
                    unprompted = []
                    if not session.has_prompted_customer:
                        unprompted.append(session.customer_id)
                    if not session.has_prompted_provider and session.provider_id not in unprompted:
                        unprompted.append(session.provider_id)
                    for user_id in unprompted:
                        if self.tracker.mark_prompted(session.id, user_id, notify=False):
                            prompted_events.append(SessionPrompted(session_id=session.id, user_id=user_id))
                    promoted.append(self.tracker.get(session.id))
            self.ticks += 1

        # Published only once the tracker lock is released.
        for event in prompted_events:
            self._publish(event)
        for session in promoted:
            logger.info("Review prompts triggered for session %s (gig %s)", session.id, session.gig_id)
            for user_id in dict.fromkeys((session.customer_id, session.provider_id)):
                self._publish(PromptAvailable(session_id=session.id, gig_id=session.gig_id, user_id=user_id))
        logger.debug("Scheduler tick at %s promoted %d session(s)", now.isoformat(), len(promoted))
        return promoted

    def pending_prompts_for_user(self, user_id: str) -> List[ServiceSession]:
        return [s for s in self.tracker.sessions(SessionStatus.REVIEW_PROMPTED) if s.involves(user_id)]

    def pending_prompts(self) -> List[ServiceSession]:
        return self.tracker.sessions(SessionStatus.REVIEW_PROMPTED)

    @property
    def running(self) -> bool:
        """True while a loop is alive and has not been asked to stop."""
        thread, stop_event = self._thread, self._stop_event
        return thread is not None and thread.is_alive() and stop_event is not None and not stop_event.is_set()

    def start(self) -> None:
        if self.running:
            return
        previous = self._thread
        if previous is not None and previous.is_alive() and previous is not threading.current_thread():
            # A stopped loop may still be finishing its tick; let it exit before replacing it.
            previous.join()
        # Each run owns its event, so a new start can never revive an old loop.
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._run, args=(stop_event,), name="review-prompt-scheduler", daemon=True
        )
        self._thread.start()
        logger.info("Review prompt scheduler started (every %.0fs, dwell %s)", self.interval_seconds, self.dwell)

    def stop(self, timeout: Optional[float] = None) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if thread is not None and thread.is_alive():
            logger.warning("Review prompt scheduler still finishing a tick after stop timeout")
        else:
            self._thread = None
        logger.info("Review prompt scheduler stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Review prompt tick failed")
            if stop_event.wait(self.interval_seconds):
                break

    def _publish(self, event: object) -> None:
        if self._bus is not None:
            self._bus.publish(event)

    def __enter__(self) -> "ReviewPromptScheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
