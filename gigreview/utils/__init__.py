from .clock import Clock, ManualClock, utc_now
from .log import setup_logging

__all__ = ["Clock", "ManualClock", "utc_now", "setup_logging"]
