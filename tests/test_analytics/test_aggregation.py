"""
Unit tests for the Analytics Aggregator and report writer.
"""

import pytest
import json
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pandas as pd

from src.analytics.aggregation import (
    AnalyticsAggregator,
    AnalyticsReportWriter,
    round_half_up,
)
from src.analytics.filters import DateRange
from src.models.review import Review, ReviewStatus, Sentiment

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def make_review(i, rating=5, status=ReviewStatus.PENDING, sentiment=Sentiment.NEUTRAL,
                days_ago=0, restaurant_id="rest-1"):
    return Review(
        review_id=f"rev-{i}",
        restaurant_id=restaurant_id,
        rating=rating,
        author_name=f"Author {i}",
        published_at=NOW - timedelta(days=days_ago, minutes=i),
        status=status,
        sentiment=sentiment
    )


@pytest.fixture
def aggregator():
    return AnalyticsAggregator(recent_limit=3)


def test_empty_collection(aggregator):
    """No reviews means all-zero metrics, never a division error."""
    snapshot = aggregator.aggregate([])

    assert snapshot.total_reviews == 0
    assert snapshot.average_rating == 0
    assert snapshot.response_rate == 0.0
    assert snapshot.to_dict()["response_rate"] == "0.0"
    assert snapshot.rating_distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    assert snapshot.recent_reviews == []


def test_rating_distribution_and_average(aggregator):
    """Test rating distribution and average rating."""
    reviews = [make_review(i, rating=r) for i, r in enumerate([5, 5, 4, 3, 1])]

    snapshot = aggregator.aggregate(reviews)

    assert snapshot.rating_distribution == {5: 2, 4: 1, 3: 1, 2: 0, 1: 1}
    assert snapshot.average_rating == 3.6
    assert snapshot.average_rating_exact == pytest.approx(3.6)


def test_response_rate(aggregator):
    """4 of 10 responded renders as "40.0"."""
    reviews = [
        make_review(i, status=ReviewStatus.RESPONDED if i < 4 else ReviewStatus.PENDING)
        for i in range(10)
    ]

    snapshot = aggregator.aggregate(reviews)

    assert snapshot.response_rate == 40.0
    assert snapshot.to_dict()["response_rate"] == "40.0"
    assert snapshot.responded_count == 4
    assert snapshot.pending_count == 6


def test_response_rate_one_decimal(aggregator):
    """Test response rate is rounded to one decimal."""
    reviews = [
        make_review(i, status=ReviewStatus.RESPONDED if i == 0 else ReviewStatus.IGNORED)
        for i in range(3)
    ]
    assert aggregator.aggregate(reviews).to_dict()["response_rate"] == "33.3"


def test_distributions_include_zero_categories(aggregator):
    """Test empty ratings and statuses still appear with zero counts."""
    reviews = [
        make_review(0, sentiment=Sentiment.POSITIVE),
        make_review(1, sentiment=Sentiment.POSITIVE),
    ]

    snapshot = aggregator.aggregate(reviews)

    assert snapshot.sentiment_distribution == {
        Sentiment.POSITIVE: 2, Sentiment.NEGATIVE: 0, Sentiment.NEUTRAL: 0
    }
    assert snapshot.status_distribution[ReviewStatus.IGNORED] == 0
    assert snapshot.to_dict()["rating_distribution"]["5"] == 2


def test_average_rounds_half_up(aggregator):
    """Test average rating rounds half up."""
    # 2.25 -> 2.3
    reviews = [make_review(i, rating=r) for i, r in enumerate([1, 2, 3, 3])]
    assert aggregator.aggregate(reviews).average_rating == 2.3
    assert round_half_up(2.25) == 2.3
    assert round_half_up(0.05) == 0.1


def test_accepts_generator_input(aggregator):
    """Test aggregation over a one-shot generator."""
    snapshot = aggregator.aggregate(make_review(i) for i in range(4))
    assert snapshot.total_reviews == 4


def test_recent_reviews_newest_first(aggregator):
    """Test recent reviews are newest first."""
    reviews = [make_review(i, days_ago=d) for i, d in enumerate([5, 1, 9, 0, 3])]

    snapshot = aggregator.aggregate(reviews)

    assert [r.review_id for r in snapshot.recent_reviews] == ["rev-3", "rev-1", "rev-4"]


def test_aggregate_period_scopes_by_window_and_restaurant(aggregator):
    """Test period aggregation scoped by window and restaurant."""
    reviews = [
        make_review(0, days_ago=2),
        make_review(1, days_ago=8),
        make_review(2, days_ago=1, restaurant_id="rest-2"),
    ]

    week = aggregator.aggregate_period(reviews, DateRange.WEEK, now=NOW)
    scoped = aggregator.aggregate_period(reviews, DateRange.WEEK, now=NOW, restaurant_id="rest-1")
    everything = aggregator.aggregate_period(reviews, DateRange.ALL_TIME, now=NOW)

    assert week.total_reviews == 2
    assert scoped.total_reviews == 1
    assert everything.total_reviews == 3


def test_report_writer_outputs_csv_and_metadata(aggregator):
    """Test report writer output files."""
    reviews = [
        make_review(0, rating=5, status=ReviewStatus.RESPONDED, sentiment=Sentiment.POSITIVE),
        make_review(1, rating=1, sentiment=Sentiment.NEGATIVE),
    ]
    snapshot = aggregator.aggregate(reviews)

    with tempfile.TemporaryDirectory() as tmpdir:
        output_path = AnalyticsReportWriter().write(snapshot, output_dir=tmpdir, label="week")

        assert output_path == os.path.join(tmpdir, "analytics_week.csv")
        df = pd.read_csv(output_path)
        assert list(df.columns) == ["Metric", "Category", "Count", "Share"]
        # 3 sentiments + 3 statuses + 5 ratings
        assert len(df) == 11

        rating_five = df[(df["Metric"] == "rating") & (df["Category"].astype(str) == "5")]
        assert rating_five["Count"].iloc[0] == 1
        assert rating_five["Share"].iloc[0] == 50.0

        with open(os.path.join(tmpdir, "analytics_week_metadata.json")) as f:
            metadata = json.load(f)
        assert metadata["total_reviews"] == 2
        assert metadata["response_rate"] == "50.0"
        assert metadata["pending_count"] == 1


def test_report_writer_empty_snapshot(aggregator):
    """Test report writer with no reviews."""
    with tempfile.TemporaryDirectory() as tmpdir:
        output_path = AnalyticsReportWriter().write(aggregator.aggregate([]), output_dir=tmpdir)

        df = pd.read_csv(output_path)
        assert (df["Share"] == 0.0).all()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
