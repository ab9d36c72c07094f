from .sessions import ServiceSession, SessionSource, SessionStatus, SessionTracker

__all__ = ["ServiceSession", "SessionSource", "SessionStatus", "SessionTracker"]
