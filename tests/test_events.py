import logging

from gigreview.events import EventBus, PromptAvailable, SessionClosed


def test_subscribe_publish_unsubscribe():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(PromptAvailable, seen.append)
    event = PromptAvailable(session_id="s", gig_id="g", user_id="u")
    bus.publish(event)
    bus.publish(SessionClosed(session_id="s", status="completed"))
    unsubscribe()
    bus.publish(event)
    assert seen == [event]


def test_failing_callback_is_logged_and_isolated(caplog):
    bus = EventBus()
    seen = []

    def boom(_event):
        raise RuntimeError("listener broke")

    bus.subscribe(PromptAvailable, boom)
    bus.subscribe(PromptAvailable, seen.append)
    with caplog.at_level(logging.ERROR):
        bus.publish(PromptAvailable(session_id="s", gig_id="g", user_id="u"))
    assert len(seen) == 1
    assert "PromptAvailable" in caplog.text
