from datetime import datetime, timezone

import pytest

from gigreview.config import AppConfig
from gigreview.events import EventBus
from gigreview.moderation import ContentClassifier
from gigreview.pipeline import ReviewPromptScheduler
from gigreview.reviews import ReviewStore
from gigreview.service import build_services
from gigreview.state import SessionTracker
from gigreview.utils.clock import ManualClock

START = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def config():
    return AppConfig()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def classifier(config):
    return ContentClassifier.from_config(config.moderation)


@pytest.fixture
def tracker(config, clock, bus):
    return SessionTracker(config.completion.phrases, clock=clock, bus=bus)


@pytest.fixture
def scheduler(tracker, clock, bus):
    return ReviewPromptScheduler(tracker, clock=clock, bus=bus)


@pytest.fixture
def store(clock, bus):
    return ReviewStore(clock=clock, bus=bus)


@pytest.fixture
def services(config, clock):
    return build_services(config, clock=clock)
