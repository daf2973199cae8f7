"""
Review data model.

Represents one already-ingested customer review of one location,
plus the location (restaurant) it belongs to.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from src.utils.timestamps import format_timestamp, parse_timestamp, utc_now


class Sentiment(str, Enum):
    """Precomputed polarity attached to a review at ingestion."""
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class ReviewStatus(str, Enum):
    """Workflow annotation owned by the review lifecycle manager."""
    PENDING = "PENDING"
    RESPONDED = "RESPONDED"
    IGNORED = "IGNORED"


def _pick(data: dict, *keys, default=None):
    """Return the first present key, tolerating camelCase/snake_case drift."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def enum_name(value, default: Enum) -> str:
    """Normalize an enum member or case-insensitive name to its stored value."""
    if value is None or value == "":
        return default.value
    if isinstance(value, Enum):
        return value.value
    return str(value).strip().upper()


@dataclass
class Restaurant:
    """A business location whose reviews are tracked."""
    restaurant_id: str
    name: str
    address: str = ""
    external_id: Optional[str] = None  # Listing provider place id
    phone_number: Optional[str] = None
    website: Optional[str] = None
    owner_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Restaurant":
        return cls(
            restaurant_id=_pick(data, "restaurant_id", "id"),
            name=data["name"],
            address=data.get("address", ""),
            external_id=_pick(data, "external_id", "googleId"),
            phone_number=_pick(data, "phone_number", "phoneNumber"),
            website=data.get("website"),
            owner_id=_pick(data, "owner_id", "userId"),
        )

    def to_dict(self) -> dict:
        return {
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "address": self.address,
            "external_id": self.external_id,
            "phone_number": self.phone_number,
            "website": self.website,
            "owner_id": self.owner_id,
        }


@dataclass
class Review:
    """
    One customer review of one location.

    restaurant_id and published_at are fixed once the review exists.
    status starts PENDING and is only changed by ReviewLifecycleManager.
    """
    review_id: str
    restaurant_id: str
    rating: int  # 1-5 star rating
    author_name: str
    published_at: datetime
    text: Optional[str] = None
    author_url: Optional[str] = None
    profile_photo: Optional[str] = None
    sentiment: Sentiment = Sentiment.NEUTRAL
    sentiment_score: Optional[float] = None
    keywords: List[str] = field(default_factory=list)
    status: ReviewStatus = ReviewStatus.PENDING
    external_id: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        # Validate rating
        if isinstance(self.rating, bool) or not isinstance(self.rating, int):
            raise ValueError(f"Invalid rating: {self.rating!r}. Must be an integer 1-5")
        if not (1 <= self.rating <= 5):
            raise ValueError(f"Invalid rating: {self.rating}. Must be 1-5")

        self.sentiment = Sentiment(self.sentiment)
        self.status = ReviewStatus(self.status)
        self.published_at = parse_timestamp(self.published_at)
        if self.published_at is None:
            raise ValueError(f"Review {self.review_id} has no published_at")
        self.created_at = parse_timestamp(self.created_at)
        self.updated_at = parse_timestamp(self.updated_at)

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        """
        Create Review from a stored or ingested record.

        The canonical body field is ``text``; records carrying the legacy
        ``content`` key are mapped onto it.
        """
        created_at = _pick(data, "created_at", "createdAt")
        updated_at = _pick(data, "updated_at", "updatedAt")
        return cls(
            review_id=_pick(data, "review_id", "id"),
            restaurant_id=_pick(data, "restaurant_id", "restaurantId"),
            rating=int(data["rating"]),
            author_name=_pick(data, "author_name", "authorName", default=""),
            published_at=_pick(data, "published_at", "publishedAt"),
            text=_pick(data, "text", "content"),
            author_url=_pick(data, "author_url", "authorUrl"),
            profile_photo=_pick(data, "profile_photo", "profilePhoto"),
            sentiment=enum_name(data.get("sentiment"), Sentiment.NEUTRAL),
            sentiment_score=_pick(data, "sentiment_score", "sentimentScore"),
            keywords=list(data.get("keywords") or []),
            status=enum_name(data.get("status"), ReviewStatus.PENDING),
            external_id=_pick(data, "external_id", "googleId"),
            created_at=created_at or utc_now(),
            updated_at=updated_at or created_at or utc_now(),
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "review_id": self.review_id,
            "restaurant_id": self.restaurant_id,
            "rating": self.rating,
            "text": self.text,
            "author_name": self.author_name,
            "author_url": self.author_url,
            "profile_photo": self.profile_photo,
            "published_at": format_timestamp(self.published_at),
            "sentiment": self.sentiment.value,
            "sentiment_score": self.sentiment_score,
            "keywords": list(self.keywords),
            "status": self.status.value,
            "external_id": self.external_id,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }
