from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv(project_root / ".env")

from gigreview.config import load_config
from gigreview.pipeline.replay import load_conversations, replay_conversations
from gigreview.utils import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Replay conversations through moderation and review scheduling.")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.getenv("GIGREVIEW_CONFIG", "configs/default.yaml")),
    )
    parser.add_argument("--conversations", type=Path, default=Path("data/conversations.json"))
    parser.add_argument("--log", type=Path, default=None, help="Optional JSONL log of each replayed turn")
    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(config.logging.level)

    turns = load_conversations(args.conversations)
    services = replay_conversations(turns, config=config, log_path=args.log)
    services.tracker.save()
    services.reviews.save()


if __name__ == "__main__":
    main()
