"""
End-to-end tests for the ReplyDesk service with an in-memory store
and a mocked completion client.
"""

import pytest
import os
import tempfile
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from src.desk import ReplyDesk
from src.errors import AlreadyPosted, GenerationFailed, ValidationError
from src.models.audit import Caller, TransitionTrigger
from src.models.response import Tone
from src.models.review import ReviewStatus, Sentiment
from src.utils.storage import ReviewStore
import config.settings as settings

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    store = ReviewStore()
    store.add_restaurant(name="Luigi's", restaurant_id="rest-1")
    store.add_review("rest-1", 5, "Sam", NOW - timedelta(days=2), text="Great pizza",
                     sentiment=Sentiment.POSITIVE)
    store.add_review("rest-1", 1, "Priya", NOW - timedelta(days=10), text="Cold food",
                     sentiment=Sentiment.NEGATIVE)
    return store


@pytest.fixture
def completion_client():
    client = MagicMock()
    client.complete.return_value = "We're sorry, Priya. Please get in touch."
    return client


@pytest.fixture
def desk(store, completion_client):
    return ReplyDesk(store=store, completion_client=completion_client)


@pytest.fixture
def caller():
    return Caller("u-1")


def _review_id(desk, author):
    return next(r.review_id for r in desk.list_reviews() if r.author_name == author)


def test_generate_save_and_post(desk, caller):
    """Full flow: draft with AI, save, post, review becomes RESPONDED."""
    review_id = _review_id(desk, "Priya")

    session = desk.open_draft(review_id)
    desk.generate_draft(session, tone="apologetic")
    response = desk.save_draft(session, caller)

    assert response.is_ai_generated is True
    assert response.model == settings.GENERATION_MODEL
    assert response.tone == Tone.APOLOGETIC
    assert response.is_posted is False

    posted = desk.post_response(response.response_id, caller)

    assert posted.is_posted is True
    assert desk.store.get_review(review_id).status == ReviewStatus.RESPONDED
    history = desk.lifecycle.history(review_id)
    assert history[-1].trigger == TransitionTrigger.AUTOMATIC
    assert history[-1].user_id == "u-1"

    with pytest.raises(AlreadyPosted):
        desk.post_response(response.response_id, caller)


def test_generation_prompt_uses_restaurant_name(desk, completion_client):
    """Test generation prompt includes the restaurant name."""
    session = desk.open_draft(_review_id(desk, "Sam"))
    desk.generate_draft(session, tone=Tone.GRATEFUL)

    context = completion_client.complete.call_args[0][0]
    assert "Restaurant: Luigi's" in context.user_prompt


def test_generation_failure_leaves_nothing_saved(desk, completion_client, caller):
    """Test failed generation saves no response."""
    review_id = _review_id(desk, "Priya")
    completion_client.complete.side_effect = RuntimeError("quota exceeded")

    session = desk.open_draft(review_id)
    with pytest.raises(GenerationFailed):
        desk.generate_draft(session)

    assert session.content == ""
    assert desk.responses_for(review_id) == []


def test_desk_without_client_cannot_generate(store):
    """Test generation without a configured client."""
    desk = ReplyDesk(store=store)
    session = desk.open_draft(next(iter(store.reviews)))

    with pytest.raises(RuntimeError):
        desk.generate_draft(session)


def test_template_seeded_draft(desk, caller):
    """Test drafting from a template."""
    template = desk.store.create_template(
        title="Thanks",
        content="Thank you {{customer_name}} for the {{rating}} stars at {{restaurant_name}}!",
        tone=Tone.GRATEFUL
    )
    review_id = _review_id(desk, "Sam")

    session = desk.open_draft(review_id, template_id=template.template_id)
    response = desk.save_draft(session, caller)

    assert response.content == "Thank you Sam for the 5 stars at Luigi's!"
    assert response.tone == Tone.GRATEFUL
    assert response.is_ai_generated is False


def test_manual_response_edit_and_delete(desk, caller):
    """Test manual response edit and delete."""
    review_id = _review_id(desk, "Sam")
    response = desk.respond_manually(review_id, caller, "Thanks Sam", tone="friendly")

    edited = desk.edit_response(response.response_id, content="Thanks so much, Sam")
    assert edited.content == "Thanks so much, Sam"

    desk.delete_response(response.response_id)
    assert desk.responses_for(review_id) == []
    assert desk.store.get_review(review_id).status == ReviewStatus.PENDING


def test_posting_over_limit_rejected(desk, caller):
    """Test posting a response over the character limit."""
    review_id = _review_id(desk, "Sam")
    response = desk.respond_manually(review_id, caller, "x" * 501)

    with pytest.raises(ValidationError):
        desk.post_response(response.response_id, caller)

    assert desk.store.get_review(review_id).status == ReviewStatus.PENDING


def test_list_reviews_with_ui_filters(desk):
    """Test listing reviews with UI filters."""
    reviews = desk.list_reviews(filters={"date_range": "week", "rating": ""}, now=NOW)
    assert [r.author_name for r in reviews] == ["Sam"]

    reviews = desk.list_reviews(filters={"search": "cold"})
    assert [r.author_name for r in reviews] == ["Priya"]


def test_manual_status_override(desk, caller):
    """Test manual status override."""
    review_id = _review_id(desk, "Priya")

    transition = desk.set_status(review_id, "ignored", caller, reason="Competitor spam")

    assert transition.changed is True
    assert desk.store.get_review(review_id).status == ReviewStatus.IGNORED


def test_analytics_by_period(desk, caller):
    """Test analytics for a period."""
    review_id = _review_id(desk, "Sam")
    response = desk.respond_manually(review_id, caller, "Thanks!")
    desk.post_response(response.response_id, caller)

    all_time = desk.analytics(now=NOW)
    week = desk.analytics(restaurant_id="rest-1", date_range="week", now=NOW)

    assert all_time.total_reviews == 2
    assert all_time.average_rating == 3.0
    assert all_time.to_dict()["response_rate"] == "50.0"
    assert week.total_reviews == 1
    assert week.to_dict()["response_rate"] == "100.0"


def test_export_analytics(store):
    """Test exporting analytics reports."""
    with tempfile.TemporaryDirectory() as tmpdir:
        desk = ReplyDesk(store=store, output_dir=tmpdir)

        output_path = desk.export_analytics(restaurant_id="rest-1", date_range="month", now=NOW)

        assert output_path == os.path.join(tmpdir, "analytics_rest-1_month.csv")
        assert os.path.exists(output_path)
        assert os.path.exists(os.path.join(tmpdir, "analytics_rest-1_month_metadata.json"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
