from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from gigreview.config import AppConfig
from gigreview.service import Services, build_services
from gigreview.utils.clock import ManualClock

console = Console()


def load_conversations(path: Path) -> List[Dict]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _shorten(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


def replay_conversations(
    turns: List[Dict],
    config: Optional[AppConfig] = None,
    clock: Optional[ManualClock] = None,
    log_path: Optional[Path] = None,
    show: bool = True,
) -> Services:
    """
    Push conversation turns through the gate on a simulated clock.

    Each turn is {"text", "from", "to", "gig", "channel": "message"|"call",
    "after_hours": float}. The clock advances by after_hours before the turn and
    the scheduler ticks after every turn, the way the hourly timer would.
    """
    clock = clock or ManualClock()
    services = build_services(config, clock=clock)

    table = Table(title="Conversation Replay", show_lines=True)
    table.add_column("Gig")
    table.add_column("From")
    table.add_column("Text")
    table.add_column("Verdict", style="magenta")
    table.add_column("Action", style="yellow")
    table.add_column("Session", style="green")
    table.add_column("Promoted", style="cyan")

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)

    services.scheduler.tick()
    for idx, turn in enumerate(tqdm(turns, desc="Replaying", disable=not show)):
        clock.advance(hours=float(turn.get("after_hours", 0.0)))
        if turn.get("channel", "message") == "call":
            result = services.gate.moderate_call_transcript(turn["text"], turn["from"], turn["to"], turn.get("gig"))
        else:
            result = services.gate.moderate_message(turn["text"], turn["from"], turn["to"], turn.get("gig"))
        promoted = services.scheduler.tick()

        if log_path:
            event = {
                "idx": idx,
                "at": clock().isoformat(),
                "gig": turn.get("gig"),
                "from": turn["from"],
                "channel": turn.get("channel", "message"),
                "level": result.verdict.level.value,
                "action": result.verdict.action.value,
                "categories": result.verdict.categories,
                "forwarded": result.forwarded,
                "session_created": result.session.id if result.session else None,
                "promoted": [s.id for s in promoted],
            }
            with log_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(event) + "\n")

        table.add_row(
            str(turn.get("gig") or "-"),
            str(turn["from"]),
            _shorten(turn["text"], 40),
            result.verdict.level.value,
            result.verdict.action.value,
            result.session.id[:8] if result.session else "",
            str(len(promoted)) if promoted else "",
        )

    if show:
        console.print(table)
        stats = services.audit.stats()
        console.print(
            f"\n[bold]Moderation:[/bold] {stats.total_moderated} checked, "
            f"{stats.violations} violations, {stats.warnings} warnings "
            f"({stats.violation_rate:.1%} violation rate)"
        )
        prompts = services.scheduler.pending_prompts()
        console.print(f"[bold]Sessions:[/bold] {len(services.tracker)} tracked, {len(prompts)} awaiting review")
    return services
