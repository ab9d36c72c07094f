#!/usr/bin/env python3
"""
View tracked service sessions and their review-prompt state.
"""

import argparse
from collections import Counter
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from gigreview.state import SessionStatus, SessionTracker
from rich.console import Console
from rich.table import Table

console = Console()

STATUS_STYLE = {
    SessionStatus.PENDING_REVIEW: "yellow",
    SessionStatus.REVIEW_PROMPTED: "cyan",
    SessionStatus.COMPLETED: "green",
    SessionStatus.CANCELLED: "red",
}


def main():
    parser = argparse.ArgumentParser(description="View service session snapshot.")
    parser.add_argument("--sessions", type=Path, default=Path("data/sessions.json"))
    parser.add_argument("--user", type=str, default=None, help="Only sessions involving this user")
    args = parser.parse_args()

    if not args.sessions.exists():
        console.print(f"[red]Sessions file not found: {args.sessions}[/red]")
        console.print("Run the pipeline first to generate sessions.")
        return

    tracker = SessionTracker(completion_phrases=[], persistence_path=args.sessions)
    sessions = tracker.sessions()
    if args.user:
        sessions = [s for s in sessions if s.involves(args.user)]

    if not sessions:
        console.print("[yellow]No sessions found.[/yellow]")
        return

    table = Table(title="Service Sessions", show_lines=True)
    table.add_column("Session", style="cyan")
    table.add_column("Gig")
    table.add_column("Provider")
    table.add_column("Customer")
    table.add_column("Source")
    table.add_column("Created")
    table.add_column("Status")
    table.add_column("Prompted (C/P)", justify="center")

    for s in sorted(sessions, key=lambda s: s.created_at):
        style = STATUS_STYLE[s.status]
        table.add_row(
            s.id[:8],
            s.gig_id,
            s.provider_id,
            s.customer_id,
            s.source.value,
            s.created_at.strftime("%Y-%m-%d %H:%M"),
            f"[{style}]{s.status.value}[/{style}]",
            f"{'y' if s.has_prompted_customer else 'n'}/{'y' if s.has_prompted_provider else 'n'}",
        )

    console.print(table)

    counts = Counter(s.status for s in sessions)
    console.print(f"\n[bold]Summary:[/bold]")
    console.print(f"  Total sessions: {len(sessions)}")
    for status in SessionStatus:
        console.print(f"  {status.value}: {counts.get(status, 0)}")


if __name__ == "__main__":
    main()
