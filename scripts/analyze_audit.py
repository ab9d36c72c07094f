#!/usr/bin/env python3
"""
Summarize a moderation audit log (JSONL).
Counts verdict levels and actions per content type and lists the most flagged senders.
"""

import argparse
import json
from collections import Counter, defaultdict
from pathlib import Path

from rich.console import Console
from rich.table import Table

console = Console()


def analyze_audit(log_path: Path):
    """Read the audit JSONL file and compute summary metrics."""
    if not log_path.exists():
        console.print(f"[red]Audit log not found: {log_path}[/red]")
        return None

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                entries.append(json.loads(line))

    if not entries:
        console.print("[yellow]No entries found in audit log.[/yellow]")
        return None

    levels = Counter(e["verdict"]["level"] for e in entries)
    actions = Counter(e["verdict"]["action"] for e in entries)
    by_type = defaultdict(Counter)
    flagged_senders = Counter()
    categories = Counter()
    for e in entries:
        by_type[e["content_type"]][e["verdict"]["level"]] += 1
        if e["verdict"]["level"] in ("violation", "severe"):
            flagged_senders[e["sender_id"]] += 1
        categories.update(e["verdict"]["categories"])

    total = len(entries)
    violations = levels.get("violation", 0) + levels.get("severe", 0)
    return {
        "total": total,
        "violations": violations,
        "warnings": levels.get("warning", 0),
        "violation_rate": round(violations / total, 3),
        "levels": dict(levels),
        "actions": dict(actions),
        "by_content_type": {k: dict(v) for k, v in by_type.items()},
        "top_categories": categories.most_common(10),
        "top_flagged_senders": flagged_senders.most_common(10),
    }


def main():
    parser = argparse.ArgumentParser(description="Analyze moderation audit log.")
    parser.add_argument("--log", type=Path, default=Path("logs/moderation_audit.jsonl"))
    parser.add_argument("--output", type=Path, default=None)
    args = parser.parse_args()

    metrics = analyze_audit(args.log)
    if not metrics:
        return

    console.print("\n[bold]Audit Summary[/bold]\n")

    table = Table(title="Summary Metrics", show_lines=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Total Moderated", str(metrics["total"]))
    table.add_row("Violations", str(metrics["violations"]))
    table.add_row("Warnings", str(metrics["warnings"]))
    table.add_row("Violation Rate", f"{metrics['violation_rate']:.1%}")
    console.print(table)

    action_table = Table(title="Actions", show_lines=True)
    action_table.add_column("Action", style="cyan")
    action_table.add_column("Count", style="yellow", justify="right")
    for action, count in sorted(metrics["actions"].items(), key=lambda x: x[1], reverse=True):
        action_table.add_row(action, str(count))
    console.print(action_table)

    if metrics["top_flagged_senders"]:
        sender_table = Table(title="Most Flagged Senders", show_lines=True)
        sender_table.add_column("Sender", style="cyan")
        sender_table.add_column("Violations", style="red", justify="right")
        for sender, count in metrics["top_flagged_senders"]:
            sender_table.add_row(sender, str(count))
        console.print(sender_table)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with args.output.open("w", encoding="utf-8") as f:
            json.dump(metrics, f, indent=2)
        console.print(f"\n[green]Results saved to {args.output}[/green]")


if __name__ == "__main__":
    main()
