from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from gigreview.errors import InvalidInputError, InvalidRatingError, require_id
from gigreview.events import EventBus, ReviewSubmitted
from gigreview.utils.clock import Clock, ensure_aware, utc_now

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class RevieweeRole(str, Enum):
    PROVIDER = "provider"
    CUSTOMER = "customer"


@dataclass(frozen=True)
class AppReview:
    id: str
    gig_id: str
    reviewer_id: str
    reviewee_id: str
    reviewee_role: RevieweeRole
    rating: int
    comment: str
    timestamp: datetime

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "gig_id": self.gig_id,
            "reviewer_id": self.reviewer_id,
            "reviewee_id": self.reviewee_id,
            "reviewee_role": self.reviewee_role.value,
            "rating": self.rating,
            "comment": self.comment,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "AppReview":
        return cls(
            id=data["id"],
            gig_id=data["gig_id"],
            reviewer_id=data["reviewer_id"],
            reviewee_id=data["reviewee_id"],
            reviewee_role=RevieweeRole(data["reviewee_role"]),
            rating=int(data["rating"]),
            comment=data.get("comment", ""),
            timestamp=ensure_aware(datetime.fromisoformat(data["timestamp"])),
        )


@dataclass(frozen=True)
class RatingSummary:
    count: int
    average: float
    distribution: Dict[int, int] = field(default_factory=dict)


def validate_rating(rating: object) -> int:
    # bool is an int subclass; True must not count as one star.
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRatingError(rating)
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidRatingError(rating)
    return rating


def parse_role(value: object) -> RevieweeRole:
    try:
        return RevieweeRole(value)
    except ValueError as exc:
        raise InvalidInputError(f"reviewee_role must be 'provider' or 'customer', got {value!r}") from exc


def prioritized(reviews: Iterable[AppReview], connections: Iterable[str]) -> List[AppReview]:
    """Reviews written by a connection come first; each group is newest first."""
    connected = set(connections)
    return sorted(
        reviews,
        key=lambda r: (r.reviewer_id not in connected, -r.timestamp.timestamp()),
    )


class ReviewStore:
    """
    Submitted reviews, kept in insertion order.
    Reviews are immutable once stored; every query returns a new list.
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        bus: Optional[EventBus] = None,
        persistence_path: Optional[Path] = None,
    ):
        self.persistence_path = persistence_path
        self._clock = clock
        self._bus = bus
        self._reviews: List[AppReview] = []
        self._lock = threading.Lock()
        if persistence_path and persistence_path.exists():
            self.load(persistence_path)

    def submit(
        self,
        gig_id: str,
        reviewer_id: str,
        reviewee_id: str,
        reviewee_role: RevieweeRole | str,
        rating: int,
        comment: Optional[str] = "",
    ) -> AppReview:
        rating = validate_rating(rating)
        role = parse_role(reviewee_role)
        review = AppReview(
            id=str(uuid.uuid4()),
            gig_id=require_id(gig_id, "gig_id"),
            reviewer_id=require_id(reviewer_id, "reviewer_id"),
            reviewee_id=require_id(reviewee_id, "reviewee_id"),
            reviewee_role=role,
            rating=rating,
            comment=comment or "",
            timestamp=self._clock(),
        )
        with self._lock:
            self._reviews.append(review)

        logger.info("Review %s submitted for %s %s on gig %s", review.id, role.value, review.reviewee_id, review.gig_id)
        if self._bus is not None:
            self._bus.publish(
                ReviewSubmitted(
                    review_id=review.id,
                    gig_id=review.gig_id,
                    reviewee_id=review.reviewee_id,
                    reviewee_role=role.value,
                    rating=rating,
                )
            )
        return review

    def all(self) -> List[AppReview]:
        with self._lock:
            return list(self._reviews)

    def reviews_for_gig(self, gig_id: str) -> List[AppReview]:
        with self._lock:
            return [r for r in self._reviews if r.gig_id == gig_id]

    def reviews_for_reviewee(self, reviewee_id: str, role: Optional[RevieweeRole | str] = None) -> List[AppReview]:
        role = parse_role(role) if role is not None else None
        with self._lock:
            return [
                r
                for r in self._reviews
                if r.reviewee_id == reviewee_id and (role is None or r.reviewee_role == role)
            ]

    def reviews_for_provider(self, provider_id: str) -> List[AppReview]:
        return self.reviews_for_reviewee(provider_id, RevieweeRole.PROVIDER)

    def average_rating_for(self, reviewee_id: str, role: RevieweeRole | str) -> float:
        """Mean rating for reviewee in role, or 0.0 if there are no reviews yet."""
        ratings = [r.rating for r in self.reviews_for_reviewee(reviewee_id, role)]
        if not ratings:
            return 0.0
        return float(sum(ratings)) / len(ratings)

    def average_rating_for_provider(self, provider_id: str) -> float:
        return self.average_rating_for(provider_id, RevieweeRole.PROVIDER)

    def rating_summary(self, reviewee_id: str, role: RevieweeRole | str) -> RatingSummary:
        ratings = [r.rating for r in self.reviews_for_reviewee(reviewee_id, role)]
        distribution = {star: 0 for star in range(MIN_RATING, MAX_RATING + 1)}
        for rating in ratings:
            distribution[rating] += 1
        average = float(sum(ratings)) / len(ratings) if ratings else 0.0
        return RatingSummary(count=len(ratings), average=average, distribution=distribution)

    def prioritized_for_gig(self, gig_id: str, connections: Iterable[str]) -> List[AppReview]:
        return prioritized(self.reviews_for_gig(gig_id), connections)

    def prioritized_for_reviewee(
        self, reviewee_id: str, connections: Iterable[str], role: Optional[RevieweeRole | str] = None
    ) -> List[AppReview]:
        return prioritized(self.reviews_for_reviewee(reviewee_id, role), connections)

    def __len__(self) -> int:
        with self._lock:
            return len(self._reviews)

    def save(self, path: Optional[Path] = None) -> None:
        save_path = path or self.persistence_path
        if not save_path:
            return
        save_path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.to_dict() for r in self.all()]
        save_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def load(self, path: Path) -> None:
        if not path.exists():
            return
        raw = json.loads(path.read_text(encoding="utf-8"))
        loaded = [AppReview.from_dict(r) for r in raw]
        with self._lock:
            known = {r.id for r in self._reviews}
            self._reviews.extend(r for r in loaded if r.id not in known)
