from __future__ import annotations

from typing import Optional


class GigReviewError(Exception):
    """Base error for the review pipeline. Carries an optional recovery hint for the UI."""

    def __init__(self, message: str, recovery_suggestion: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        return self.message


class InvalidInputError(GigReviewError, ValueError):
    pass


class InvalidRatingError(InvalidInputError):
    def __init__(self, rating: object):
        super().__init__(
            f"Rating must be an integer between 1 and 5, got {rating!r}",
            recovery_suggestion="Choose between one and five stars.",
        )
        self.rating = rating


class ConfigError(GigReviewError):
    pass


class SessionNotFoundError(GigReviewError, KeyError):
    def __init__(self, session_id: str):
        super().__init__(f"No service session with id {session_id}")
        self.session_id = session_id


class InvalidTransitionError(GigReviewError):
    def __init__(self, session_id: str, current: str, target: str):
        super().__init__(f"Session {session_id} cannot move from {current} to {target}")
        self.session_id = session_id
        self.current = current
        self.target = target


def require_id(value: object, name: str) -> str:
    """Return a stripped id, raising InvalidInputError if it is missing or blank."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(
            f"{name} must be a non-empty string",
            recovery_suggestion=f"Provide a valid {name.replace('_', ' ')}.",
        )
    return value.strip()
