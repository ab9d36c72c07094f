from gigreview.events import PromptAvailable
from gigreview.moderation import ModerationAction
from gigreview.state import SessionStatus


def test_message_completion_to_review(services, clock):
    prompts = []
    services.bus.subscribe(PromptAvailable, prompts.append)

    first = services.gate.moderate_message("Thanks again, all done!", "P", "C", "G")
    session = first.session
    assert session.status is SessionStatus.PENDING_REVIEW

    clock.advance(hours=2)
    second = services.gate.moderate_message("we are all set", "P", "C", "G")
    assert second.forwarded
    assert second.session is None
    assert len(services.tracker.sessions_for_gig("G")) == 1

    services.scheduler.tick()
    assert services.scheduler.pending_prompts_for_user("C") == []

    clock.advance(hours=22)
    services.scheduler.tick()

    stored = services.tracker.get(session.id)
    assert stored.status is SessionStatus.REVIEW_PROMPTED
    assert stored.has_prompted_customer and stored.has_prompted_provider
    assert session.id in [s.id for s in services.scheduler.pending_prompts_for_user("C")]
    assert session.id in [s.id for s in services.scheduler.pending_prompts_for_user("P")]
    assert {e.user_id for e in prompts} == {"C", "P"}

    services.reviews.submit("G", "C", "P", "provider", 5, "Great work")
    services.reviews.submit("G", "P", "C", "customer", 4, "")
    services.tracker.complete(session.id)

    assert services.reviews.average_rating_for("P", "provider") == 5.0
    assert services.scheduler.pending_prompts_for_user("C") == []


def test_blocked_call_never_opens_session(services, clock):
    result = services.gate.moderate_call_transcript("I hate this, this is harassment", "P", "C", "G")
    assert result.verdict.action is ModerationAction.BLOCK
    clock.advance(days=2)
    services.scheduler.tick()
    assert services.tracker.sessions() == []
    assert services.scheduler.pending_prompts_for_user("C") == []
