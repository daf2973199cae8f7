"""
Review filter evaluator.

Composable AND-predicate over reviews (search, rating, sentiment,
status, date range), used for listing and for scoping analytics.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Iterator, Optional

from src.errors import ValidationError
from src.models.review import Review, ReviewStatus, Sentiment
from src.utils.timestamps import format_timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


class DateRange(str, Enum):
    """Rolling publication windows ending at the evaluation instant."""
    ALL_TIME = ""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def window(self) -> Optional[timedelta]:
        return DATE_RANGE_WINDOWS[self]


DATE_RANGE_WINDOWS = {
    DateRange.ALL_TIME: None,
    DateRange.TODAY: timedelta(days=1),
    DateRange.WEEK: timedelta(days=7),
    DateRange.MONTH: timedelta(days=30),
    DateRange.QUARTER: timedelta(days=90),
    DateRange.YEAR: timedelta(days=365),
}


@dataclass(frozen=True)
class ReviewFilters:
    """
    Filter criteria. None (or ALL_TIME) means "does not narrow".

    Build from UI-style values with from_dict.
    """
    search: Optional[str] = None
    rating: Optional[int] = None
    sentiment: Optional[Sentiment] = None
    status: Optional[ReviewStatus] = None
    date_range: DateRange = DateRange.ALL_TIME

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ReviewFilters":
        """
        Parse filter values as sent by a list/analytics page.

        Empty strings mean "absent"; ratings may arrive as strings and
        enum values in any case. "all" is accepted for the date range.

        Raises:
            ValidationError: If a value is not a known rating/enum member
        """
        data = data or {}

        search = (data.get("search") or "").strip() or None

        rating = data.get("rating")
        if rating in (None, ""):
            rating = None
        else:
            try:
                rating = int(rating)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid rating filter: {rating!r}")
            if not (1 <= rating <= 5):
                raise ValidationError(f"Invalid rating filter: {rating}. Must be 1-5")

        sentiment = _parse_enum(Sentiment, data.get("sentiment"), "sentiment")
        status = _parse_enum(ReviewStatus, data.get("status"), "status")

        date_range = data.get("date_range", data.get("dateRange")) or ""
        if isinstance(date_range, str) and date_range.strip().lower() == "all":
            date_range = ""
        try:
            date_range = DateRange(date_range.strip().lower() if isinstance(date_range, str) else date_range)
        except ValueError:
            raise ValidationError(f"Invalid date range filter: {date_range!r}")

        return cls(
            search=search,
            rating=rating,
            sentiment=sentiment,
            status=status,
            date_range=date_range
        )

    @property
    def is_empty(self) -> bool:
        return (
            not self.search
            and self.rating is None
            and self.sentiment is None
            and self.status is None
            and self.date_range == DateRange.ALL_TIME
        )


def _parse_enum(enum_cls, value, name: str):
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid {name} filter: {value!r}")


def published_window(
    date_range: DateRange,
    now: Optional[datetime] = None
) -> Optional[tuple]:
    """
    Half-open [start, end) publication window, or None for all time.
    """
    window = DateRange(date_range).window
    if window is None:
        return None
    end = parse_timestamp(now) if now is not None else utc_now()
    return end - window, end


def matches(
    review: Review,
    filters: Optional[ReviewFilters],
    now: Optional[datetime] = None
) -> bool:
    """
    Check whether a review satisfies every provided criterion.

    Args:
        review: Review to test
        filters: Criteria; None matches everything
        now: Evaluation instant for the date range (defaults to current time)

    Returns:
        True if all non-empty criteria match
    """
    if filters is None:
        return True

    if filters.search:
        needle = filters.search.lower()
        haystacks = (review.text or "", review.author_name or "")
        if not any(needle in h.lower() for h in haystacks):
            return False

    if filters.rating is not None and review.rating != filters.rating:
        return False

    if filters.sentiment is not None and review.sentiment != filters.sentiment:
        return False

    if filters.status is not None and review.status != filters.status:
        return False

    window = published_window(filters.date_range, now)
    if window is not None:
        start, end = window
        if not (start <= review.published_at < end):
            return False

    return True


def apply(
    reviews: Iterable[Review],
    filters: Optional[ReviewFilters],
    now: Optional[datetime] = None
) -> Iterator[Review]:
    """Lazily yield the reviews matching filters, evaluated at one fixed instant."""
    # Pin "now" once so every review is tested against the same window
    instant = parse_timestamp(now) if now is not None else utc_now()
    for review in reviews:
        if matches(review, filters, now=instant):
            yield review


def to_query(filters: Optional[ReviewFilters], now: Optional[datetime] = None) -> dict:
    """
    Render filters as storage-query criteria.

    Keys: search (case-insensitive substring over text and author_name),
    rating, sentiment, status (exact), published_at_gte / published_at_lt
    (ISO-8601 bounds of the half-open window). Absent criteria are omitted.
    """
    if filters is None:
        return {}

    query = {}
    if filters.search:
        query["search"] = filters.search
    if filters.rating is not None:
        query["rating"] = filters.rating
    if filters.sentiment is not None:
        query["sentiment"] = filters.sentiment.value
    if filters.status is not None:
        query["status"] = filters.status.value

    window = published_window(filters.date_range, now)
    if window is not None:
        start, end = window
        query["published_at_gte"] = format_timestamp(start)
        query["published_at_lt"] = format_timestamp(end)

    logger.debug(f"Translated filters to query: {query}")
    return query
