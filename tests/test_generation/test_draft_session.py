"""
Unit tests for DraftSession: template seeding, regeneration and
last-write-wins handling of generation results.
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from src.errors import GenerationFailed
from src.generation.draft_session import DraftSession
from src.generation.response_generator import GeneratedResponse, GenerationOptions
from src.models.response import ResponseTemplate, Tone
from src.models.review import Review


@pytest.fixture
def session():
    review = Review(
        review_id="rev-1",
        restaurant_id="rest-1",
        rating=5,
        author_name="Sam",
        published_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        text="Best tiramisu in town"
    )
    return DraftSession(review, restaurant_name="Luigi's", character_limit=50)


def _result(content, model="gemini-test", tone=Tone.FRIENDLY):
    return GeneratedResponse(content=content, model_id=model, tone=tone)


def test_new_session_is_empty_manual_draft(session):
    """Test new session starts as an empty manual draft."""
    assert session.content == ""
    assert session.tone == Tone.PROFESSIONAL
    assert session.provenance.is_ai_generated is False
    assert session.provenance.model is None


def test_latest_generation_wins(session):
    """A result for a superseded request is discarded."""
    first = session.begin_generation()
    second = session.begin_generation()

    assert session.accept_generation(second, _result("Second draft")) is True
    assert session.accept_generation(first, _result("First draft")) is False

    assert session.content == "Second draft"
    assert session.is_ai_generated is True
    assert session.model == "gemini-test"


def test_stale_result_arriving_first_is_discarded(session):
    """Test a stale generation result is discarded."""
    first = session.begin_generation()
    second = session.begin_generation()

    assert session.accept_generation(first, _result("Stale")) is False
    assert session.content == ""
    assert session.accept_generation(second, _result("Fresh")) is True
    assert session.content == "Fresh"


def test_regenerate_uses_generator(session):
    """Test regenerating a draft."""
    generator = MagicMock()
    generator.generate.return_value = _result("Thanks Sam!", tone=Tone.GRATEFUL)

    applied = session.regenerate(generator, GenerationOptions(tone=Tone.GRATEFUL))

    assert applied is True
    assert session.content == "Thanks Sam!"
    assert session.tone == Tone.GRATEFUL
    generator.generate.assert_called_once_with(
        session.review, GenerationOptions(tone=Tone.GRATEFUL), restaurant_name="Luigi's"
    )


def test_failed_regenerate_keeps_previous_draft(session):
    """Test failed regeneration keeps the previous draft."""
    session.edit(content="My own words")
    generator = MagicMock()
    generator.generate.side_effect = GenerationFailed("quota exceeded")

    with pytest.raises(GenerationFailed):
        session.regenerate(generator, GenerationOptions())

    assert session.content == "My own words"
    assert session.is_ai_generated is False


def test_apply_template_resets_provenance(session):
    """Test applying a template clears AI provenance."""
    ticket = session.begin_generation()
    session.accept_generation(ticket, _result("AI text"))

    template = ResponseTemplate(
        template_id="tpl-1",
        title="Thanks",
        content="Thanks {{customer_name}}!",
        tone=Tone.FRIENDLY
    )
    session.apply_template(template)

    assert session.content == "Thanks Sam!"
    assert session.tone == Tone.FRIENDLY
    assert session.template_id == "tpl-1"
    assert session.is_ai_generated is False
    assert session.model is None


def test_hand_edit_keeps_ai_provenance(session):
    """Test hand edits keep AI provenance."""
    ticket = session.begin_generation()
    session.accept_generation(ticket, _result("AI text"))

    session.edit(content="AI text, tweaked", tone="professional")

    assert session.content == "AI text, tweaked"
    assert session.tone == Tone.PROFESSIONAL
    assert session.provenance.is_ai_generated is True
    assert session.provenance.model == "gemini-test"


def test_character_count_and_limit(session):
    """Test character count and over-limit flag."""
    session.edit(content="x" * 50)
    assert session.character_count == 50
    assert session.is_over_limit is False

    session.edit(content="x" * 51)
    assert session.is_over_limit is True


def test_save_delegates_to_coordinator(session):
    """Test saving a draft through the coordinator."""
    coordinator = MagicMock()
    caller = MagicMock(user_id="u-1")
    session.edit(content="Thanks!")

    session.save(coordinator, caller)

    coordinator.create.assert_called_once_with(
        review_id="rev-1",
        caller=caller,
        content="Thanks!",
        tone=Tone.PROFESSIONAL,
        provenance=session.provenance
    )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
