"""
Analytics Aggregator and Report Writer.

Folds a review collection into an AnalyticsSnapshot and exports
snapshots as CSV tables for reporting.
"""

import heapq
import json
import logging
import os
from collections import Counter
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

import pandas as pd

from src.analytics.filters import DateRange, ReviewFilters, apply
from src.models.analytics import AnalyticsSnapshot
from src.models.review import Review, ReviewStatus, Sentiment
from src.utils.timestamps import format_timestamp, utc_now
import config.settings as settings

logger = logging.getLogger(__name__)

RATING_BUCKETS = (1, 2, 3, 4, 5)


def round_half_up(value: float, places: int = 1) -> float:
    """Round for display the way a dashboard reader expects (2.25 -> 2.3)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class AnalyticsAggregator:
    """
    Computes aggregate metrics over a review collection.

    Stateless: safe to recompute on every request.
    """

    def __init__(self, recent_limit: int = settings.RECENT_REVIEWS_LIMIT):
        """
        Initialize aggregator.

        Args:
            recent_limit: Number of newest reviews kept on the snapshot
        """
        self.recent_limit = recent_limit

    def aggregate(self, reviews: Iterable[Review]) -> AnalyticsSnapshot:
        """
        Fold reviews into a snapshot in a single pass.

        Args:
            reviews: Any iterable of reviews (generators included)

        Returns:
            AnalyticsSnapshot; all-zero for an empty input
        """
        total = 0
        rating_sum = 0
        sentiment_counts = Counter()
        status_counts = Counter()
        rating_counts = Counter()
        # Min-heap of (published_at, seq, review) holding the newest reviews
        recent = []

        for seq, review in enumerate(reviews):
            total += 1
            rating_sum += review.rating
            sentiment_counts[review.sentiment] += 1
            status_counts[review.status] += 1
            rating_counts[review.rating] += 1

            if self.recent_limit > 0:
                entry = (review.published_at, seq, review)
                if len(recent) < self.recent_limit:
                    heapq.heappush(recent, entry)
                elif entry[:2] > recent[0][:2]:
                    heapq.heapreplace(recent, entry)

        average_exact = rating_sum / total if total else 0.0
        responded = status_counts[ReviewStatus.RESPONDED]
        response_rate = responded * 100 / total if total else 0.0

        snapshot = AnalyticsSnapshot(
            total_reviews=total,
            average_rating=round_half_up(average_exact),
            average_rating_exact=average_exact,
            sentiment_distribution={s: sentiment_counts[s] for s in Sentiment},
            status_distribution={s: status_counts[s] for s in ReviewStatus},
            rating_distribution={r: rating_counts[r] for r in RATING_BUCKETS},
            response_rate=round_half_up(response_rate),
            recent_reviews=[
                entry[2] for entry in sorted(recent, key=lambda e: e[:2], reverse=True)
            ]
        )

        logger.info(
            f"Aggregated {total} reviews: avg rating {snapshot.average_rating}, "
            f"response rate {snapshot.response_rate:.1f}%"
        )
        return snapshot

    def aggregate_period(
        self,
        reviews: Iterable[Review],
        date_range: DateRange = DateRange.ALL_TIME,
        now: Optional[datetime] = None,
        restaurant_id: Optional[str] = None
    ) -> AnalyticsSnapshot:
        """
        Aggregate only reviews published in a period (and optionally one location).

        Args:
            reviews: Review collection
            date_range: Publication window ending at now
            now: Evaluation instant (defaults to current time)
            restaurant_id: Restrict to one location
        """
        filters = ReviewFilters(date_range=DateRange(date_range))
        if restaurant_id is not None:
            reviews = (r for r in reviews if r.restaurant_id == restaurant_id)
        return self.aggregate(apply(reviews, filters, now=now))


class AnalyticsReportWriter:
    """
    Exports analytics snapshots as tidy CSV tables plus a metadata file.
    """

    def write(
        self,
        snapshot: AnalyticsSnapshot,
        output_dir: str = str(settings.OUTPUT_ROOT),
        label: str = "all"
    ) -> str:
        """
        Write a snapshot report.

        The CSV has one row per (metric, category) pair:
        metric in {sentiment, status, rating}, with count and share columns.

        Args:
            snapshot: Snapshot to export
            output_dir: Directory to save CSV output
            label: Scope label used in file names (e.g. period or restaurant)

        Returns:
            Path to generated CSV file
        """
        rows = []
        for metric, distribution in (
            ("sentiment", snapshot.sentiment_distribution),
            ("status", snapshot.status_distribution),
            ("rating", snapshot.rating_distribution),
        ):
            for category, count in distribution.items():
                rows.append({
                    "Metric": metric,
                    "Category": category.value if hasattr(category, "value") else str(category),
                    "Count": count,
                })

        df = pd.DataFrame(rows, columns=["Metric", "Category", "Count"])
        if snapshot.total_reviews:
            df["Share"] = (df["Count"] / snapshot.total_reviews * 100).round(1)
        else:
            df["Share"] = 0.0

        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, f"analytics_{label}.csv")
        df.to_csv(output_path, index=False)

        logger.info(f"Analytics report saved to {output_path} ({len(df)} rows)")

        metadata_path = os.path.join(output_dir, f"analytics_{label}_metadata.json")
        metadata = {
            "label": label,
            "total_reviews": snapshot.total_reviews,
            "average_rating": snapshot.average_rating,
            "response_rate": f"{snapshot.response_rate:.1f}",
            "pending_count": snapshot.pending_count,
            "recent_review_ids": [r.review_id for r in snapshot.recent_reviews],
            "generated_at": format_timestamp(utc_now()),
        }
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f"Metadata saved to {metadata_path}")

        return output_path
