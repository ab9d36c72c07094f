from __future__ import annotations

from dataclasses import dataclass

from gigreview.actions import ModerationGate
from gigreview.config import AppConfig
from gigreview.events import EventBus
from gigreview.moderation import ContentClassifier, ModerationAuditLog
from gigreview.pipeline import ReviewPromptScheduler
from gigreview.reviews import ReviewStore
from gigreview.state import SessionTracker
from gigreview.utils.clock import Clock, utc_now


@dataclass
class Services:
    """One instance of each component, built once and passed to call sites."""
    config: AppConfig
    bus: EventBus
    classifier: ContentClassifier
    audit: ModerationAuditLog
    tracker: SessionTracker
    scheduler: ReviewPromptScheduler
    reviews: ReviewStore
    gate: ModerationGate

    def start(self) -> None:
        self.scheduler.start()

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.tracker.save()
        self.reviews.save()


def build_services(config: AppConfig | None = None, clock: Clock = utc_now) -> Services:
    config = config or AppConfig()
    bus = EventBus()
    classifier = ContentClassifier.from_config(config.moderation)
    audit = ModerationAuditLog(jsonl_path=config.moderation.audit_path, clock=clock)
    tracker = SessionTracker(
        config.completion.phrases,
        clock=clock,
        bus=bus,
        persistence_path=config.persistence.sessions_path,
    )
    scheduler = ReviewPromptScheduler.from_config(tracker, config.scheduler, clock=clock, bus=bus)
    reviews = ReviewStore(clock=clock, bus=bus, persistence_path=config.persistence.reviews_path)
    gate = ModerationGate(
        classifier,
        audit,
        tracker,
        end_call_on_severe=config.moderation.end_call_on_severe,
    )
    return Services(
        config=config,
        bus=bus,
        classifier=classifier,
        audit=audit,
        tracker=tracker,
        scheduler=scheduler,
        reviews=reviews,
        gate=gate,
    )
