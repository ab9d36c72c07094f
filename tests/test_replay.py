import json

from gigreview.pipeline.replay import load_conversations, replay_conversations
from gigreview.state import SessionStatus
from gigreview.utils.clock import ManualClock

from .conftest import START


def test_replay_promotes_after_idle_gap(tmp_path):
    turns = [
        {"gig": "G1", "from": "P", "to": "C", "text": "Thanks again, all done!", "channel": "message"},
        {"gig": "G1", "from": "P", "to": "C", "text": "we are all set", "after_hours": 1},
        {"gig": "G2", "from": "P", "to": "C", "text": "I hate this, all done", "channel": "call"},
        {"gig": None, "from": "sys", "to": "sys", "text": "ping", "after_hours": 24},
    ]
    path = tmp_path / "conversations.json"
    path.write_text(json.dumps(turns), encoding="utf-8")
    log_path = tmp_path / "replay.jsonl"

    services = replay_conversations(
        load_conversations(path), clock=ManualClock(START), log_path=log_path, show=False
    )

    sessions = services.tracker.sessions()
    assert len(sessions) == 1
    assert sessions[0].gig_id == "G1"
    assert sessions[0].status is SessionStatus.REVIEW_PROMPTED
    events = [json.loads(line) for line in log_path.read_text().splitlines()]
    assert len(events) == 4
    assert events[2]["action"] == "block"
    assert events[3]["promoted"] == [sessions[0].id]
