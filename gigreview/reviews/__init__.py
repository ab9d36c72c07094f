from .store import AppReview, RatingSummary, RevieweeRole, ReviewStore, prioritized, validate_rating

__all__ = [
    "AppReview",
    "RatingSummary",
    "RevieweeRole",
    "ReviewStore",
    "prioritized",
    "validate_rating",
]
