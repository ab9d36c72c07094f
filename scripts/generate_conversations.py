from __future__ import annotations

import argparse
import json
import random
from pathlib import Path

SCRIPTS = {
    "clean_finish": [
        ("Hi, I'm on my way to the gig now", 0.0),
        ("Great, the gate code is 1234", 0.5),
        ("Thanks again, all done!", 3.0),
        ("we are all set, enjoy", 0.2),
    ],
    "rude_then_finish": [
        ("this is taking forever, stupid traffic", 0.0),
        ("Job is done, photos sent", 2.0),
    ],
    "blocked_finish": [
        ("I hate this, this is harassment. all done", 0.0),
    ],
    "no_finish": [
        ("Can we move it to Thursday?", 0.0),
        ("Sure, Thursday works", 1.0),
    ],
}


def synthesize(num_gigs: int, seed: int) -> list[dict]:
    rng = random.Random(seed)
    out = []
    for gig in range(1, num_gigs + 1):
        name = rng.choice(list(SCRIPTS.keys()))
        provider = f"provider_{rng.randint(1, 20):03d}"
        customer = f"customer_{rng.randint(1, 50):03d}"
        channel = rng.choice(["message", "message", "call"])
        for text, after_hours in SCRIPTS[name]:
            out.append(
                {
                    "gig": f"gig_{gig:03d}",
                    "from": provider,
                    "to": customer,
                    "text": text,
                    "channel": channel,
                    "after_hours": after_hours,
                    "script": name,
                }
            )
    # Let the dwell time elapse for everything opened above.
    if out:
        out.append(
            {
                "gig": None,
                "from": "system",
                "to": "system",
                "text": "ping",
                "channel": "message",
                "after_hours": 25.0,
                "script": "idle",
            }
        )
    return out


def main():
    parser = argparse.ArgumentParser(description="Generate synthetic marketplace conversations.")
    parser.add_argument("--output", type=Path, default=Path("data/conversations.json"))
    parser.add_argument("--num-gigs", type=int, default=10)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    args.output.parent.mkdir(parents=True, exist_ok=True)
    data = synthesize(args.num_gigs, args.seed)
    with args.output.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    print(f"Wrote {len(data)} turns to {args.output}")


if __name__ == "__main__":
    main()
