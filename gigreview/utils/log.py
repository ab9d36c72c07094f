from __future__ import annotations

import logging

from rich.logging import RichHandler


def setup_logging(level: str | int = "INFO") -> None:
    """Route library logging through a single RichHandler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else level.upper())
    if any(isinstance(h, RichHandler) for h in root.handlers):
        return
    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
