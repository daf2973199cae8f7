"""
Analytics snapshot data model.

A derived, non-persisted aggregate view over a review collection.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from src.models.review import Review, ReviewStatus, Sentiment


@dataclass
class AnalyticsSnapshot:
    """
    Aggregate metrics for a set of reviews.

    Every distribution lists all known categories, zero-filled.
    """
    total_reviews: int = 0
    average_rating: float = 0.0  # Rounded to one decimal for display
    average_rating_exact: float = 0.0
    sentiment_distribution: Dict[Sentiment, int] = field(default_factory=dict)
    status_distribution: Dict[ReviewStatus, int] = field(default_factory=dict)
    rating_distribution: Dict[int, int] = field(default_factory=dict)
    response_rate: float = 0.0  # Percent of reviews RESPONDED, one decimal
    recent_reviews: List[Review] = field(default_factory=list)

    @property
    def pending_count(self) -> int:
        return self.status_distribution.get(ReviewStatus.PENDING, 0)

    @property
    def responded_count(self) -> int:
        return self.status_distribution.get(ReviewStatus.RESPONDED, 0)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for the serving layer."""
        return {
            "total_reviews": self.total_reviews,
            "average_rating": self.average_rating,
            "sentiment_distribution": {
                sentiment.value: count
                for sentiment, count in self.sentiment_distribution.items()
            },
            "status_distribution": {
                status.value: count
                for status, count in self.status_distribution.items()
            },
            "rating_distribution": {
                str(rating): count
                for rating, count in self.rating_distribution.items()
            },
            "response_rate": f"{self.response_rate:.1f}",
            "pending_count": self.pending_count,
            "recent_reviews": [review.to_dict() for review in self.recent_reviews],
        }
