import threading
from datetime import timedelta

import pytest

from gigreview.config import SchedulerConfig
from gigreview.events import PromptAvailable, SessionPrompted
from gigreview.pipeline import ReviewPromptScheduler
from gigreview.state import SessionStatus


def test_not_promoted_before_dwell(tracker, scheduler, clock):
    session = tracker.ingest_text("all done", "P", "C", "G")
    clock.advance(hours=23, minutes=59, seconds=59)
    assert scheduler.tick() == []
    assert scheduler.pending_prompts_for_user("C") == []
    assert tracker.get(session.id).status is SessionStatus.PENDING_REVIEW


def test_promoted_at_exactly_dwell(tracker, scheduler, clock):
    session = tracker.ingest_text("all done", "P", "C", "G")
    clock.advance(hours=24)
    promoted = scheduler.tick()
    assert [s.id for s in promoted] == [session.id]

    stored = tracker.get(session.id)
    assert stored.status is SessionStatus.REVIEW_PROMPTED
    assert stored.has_prompted_customer
    assert stored.has_prompted_provider
    assert [s.id for s in scheduler.pending_prompts_for_user("C")] == [session.id]
    assert [s.id for s in scheduler.pending_prompts_for_user("P")] == [session.id]
    assert scheduler.pending_prompts_for_user("someone-else") == []


def test_tick_is_idempotent(tracker, scheduler, clock):
    tracker.ingest_text("all done", "P", "C", "G")
    clock.advance(hours=30)
    assert len(scheduler.tick()) == 1
    assert scheduler.tick() == []
    assert len(scheduler.pending_prompts()) == 1


def test_explicit_now_overrides_clock(tracker, scheduler, clock):
    session = tracker.ingest_text("all done", "P", "C", "G")
    assert scheduler.tick(now=session.created_at + timedelta(hours=24)) != []


def test_already_prompted_participant_keeps_flag(tracker, scheduler, clock):
    session = tracker.ingest_text("all done", "P", "C", "G")
    tracker.mark_prompted(session.id, "C")
    clock.advance(days=2)
    scheduler.tick()
    assert tracker.get(session.id).fully_prompted


def test_closed_sessions_are_not_promoted(tracker, scheduler, clock):
    session = tracker.ingest_text("all done", "P", "C", "G")
    tracker.cancel(session.id)
    clock.advance(days=3)
    assert scheduler.tick() == []
    assert scheduler.pending_prompts() == []


def test_prompt_available_events(tracker, scheduler, clock, bus):
    events = []
    bus.subscribe(PromptAvailable, events.append)
    session = tracker.ingest_text("all done", "P", "C", "G")
    clock.advance(hours=24)
    scheduler.tick()
    assert {(e.session_id, e.user_id) for e in events} == {(session.id, "C"), (session.id, "P")}


def test_custom_dwell_from_config(tracker, clock):
    scheduler = ReviewPromptScheduler.from_config(
        tracker, SchedulerConfig(dwell_hours=1, tick_interval_seconds=60), clock=clock
    )
    tracker.ingest_text("all done", "P", "C", "G")
    clock.advance(minutes=59)
    assert scheduler.tick() == []
    clock.advance(minutes=1)
    assert len(scheduler.tick()) == 1


@pytest.mark.parametrize("kwargs", [{"dwell": timedelta(0)}, {"interval_seconds": 0}])
def test_rejects_non_positive_settings(tracker, kwargs):
    with pytest.raises(ValueError):
        ReviewPromptScheduler(tracker, **kwargs)


def test_start_ticks_immediately_and_stop_joins(tracker, clock):
    tracker.ingest_text("all done", "P", "C", "G")
    clock.advance(hours=25)
    scheduler = ReviewPromptScheduler(tracker, interval_seconds=3600, clock=clock)
    ticked = threading.Event()
    original_tick = scheduler.tick

    def tick(now=None):
        result = original_tick(now)
        ticked.set()
        return result

    scheduler.tick = tick
    scheduler.start()
    try:
        assert ticked.wait(5)
        assert scheduler.running
    finally:
        scheduler.stop(timeout=5)
    assert not scheduler.running
    assert len(scheduler.pending_prompts()) == 1


def test_context_manager_stops_thread(tracker, clock):
    with ReviewPromptScheduler(tracker, interval_seconds=0.01, clock=clock) as scheduler:
        assert scheduler.running
    assert not scheduler.running
    ticks_after_stop = scheduler.ticks
    threading.Event().wait(0.05)
    assert scheduler.ticks == ticks_after_stop


def test_concurrent_ingest_and_tick_keep_one_pending_session_per_gig(tracker, scheduler, clock):
    barrier = threading.Barrier(8)

    def worker(n):
        barrier.wait()
        for i in range(50):
            tracker.ingest_text("all done", f"P{n}", "C", f"G{i % 5}")
            scheduler.tick()

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for i in range(5):
        pending = [s for s in tracker.sessions_for_gig(f"G{i}") if s.status is SessionStatus.PENDING_REVIEW]
        assert len(pending) == 1
    assert len(tracker) == 5


def test_self_session_is_fully_prompted_after_tick(tracker, scheduler, clock):
    session = tracker.ingest_text("all done", "U", "U", "G")
    clock.advance(hours=24)
    scheduler.tick()
    stored = tracker.get(session.id)
    assert stored.status is SessionStatus.REVIEW_PROMPTED
    assert stored.fully_prompted
    assert len(scheduler.pending_prompts_for_user("U")) == 1


def test_session_prompted_events_fire_after_lock_release(tracker, scheduler, clock, bus):
    lock_free = []

    def on_prompted(event):
        result = []
        other = threading.Thread(target=lambda: result.append(_try_lock(tracker)))
        other.start()
        other.join(5)
        lock_free.append(result == [True])

    bus.subscribe(SessionPrompted, on_prompted)
    tracker.ingest_text("all done", "P", "C", "G")
    clock.advance(hours=24)
    scheduler.tick()
    assert lock_free == [True, True]


def _try_lock(tracker):
    acquired = tracker.lock.acquire(timeout=1)
    if acquired:
        tracker.lock.release()
    return acquired


def test_restart_after_timed_out_stop_keeps_single_loop(tracker, clock):
    scheduler = ReviewPromptScheduler(tracker, interval_seconds=0.01, clock=clock)
    in_tick = threading.Event()
    original_tick = scheduler.tick

    def slow_tick(now=None):
        in_tick.set()
        threading.Event().wait(0.3)
        return original_tick(now)

    scheduler.tick = slow_tick
    scheduler.start()
    try:
        assert in_tick.wait(5)
        scheduler.stop(timeout=0.01)
        assert not scheduler.running
        scheduler.start()
        alive = [t for t in threading.enumerate() if t.name == "review-prompt-scheduler" and t.is_alive()]
        assert len(alive) == 1
        assert scheduler.running
    finally:
        scheduler.stop(timeout=5)
    alive = [t for t in threading.enumerate() if t.name == "review-prompt-scheduler" and t.is_alive()]
    assert alive == []
