"""
Unit tests for the Template Engine.
"""

import pytest
from datetime import datetime, timezone

from src.generation.template_engine import (
    find_placeholders,
    interpolate,
    review_variables,
    seed_from_template,
)
from src.models.response import ResponseTemplate, Tone
from src.models.review import Review


@pytest.fixture
def review():
    return Review(
        review_id="rev-1",
        restaurant_id="rest-1",
        rating=4,
        author_name="Sam",
        published_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        text="Lovely pasta"
    )


def test_interpolate_replaces_known_placeholder():
    """Test replacing a known placeholder."""
    assert interpolate("Hi {{name}}", {"name": "Sam"}) == "Hi Sam"


def test_interpolate_leaves_unknown_placeholder():
    """Placeholders without a value stay visible."""
    assert interpolate("Hi {{name}}", {}) == "Hi {{name}}"


def test_interpolate_tolerates_whitespace_in_braces():
    """Test placeholders with whitespace inside braces."""
    assert interpolate("Hi {{ name }} and {{name  }}", {"name": "Sam"}) == "Hi Sam and Sam"


def test_interpolate_replaces_every_occurrence():
    """Test every occurrence of a placeholder is replaced."""
    result = interpolate("{{a}}-{{b}}-{{a}}", {"a": "1", "b": "2"})
    assert result == "1-2-1"


def test_interpolate_value_is_plain_text():
    """Regex replacement syntax inside values is not interpreted."""
    result = interpolate("Total: {{price}}", {"price": r"$5 \1 \g<0>"})
    assert result == r"Total: $5 \1 \g<0>"


def test_interpolate_key_is_not_a_regex():
    """Test placeholder keys are matched literally."""
    assert interpolate("{{a.b}} {{axb}}", {"a.b": "X"}) == "X {{axb}}"


def test_interpolate_is_idempotent_with_same_variables():
    """Test interpolating twice gives the same result."""
    variables = {"name": "Sam"}
    once = interpolate("Hi {{name}}, {{other}}", variables)
    assert interpolate(once, variables) == once


def test_find_placeholders_in_order_without_duplicates():
    """Test finding placeholders in order of appearance."""
    text = "Dear {{customer_name}}, thanks for {{ rating }} stars at {{customer_name}}"
    assert find_placeholders(text) == ["customer_name", "rating"]


def test_review_variables_defaults_restaurant_name(review):
    """Test default restaurant name in review variables."""
    variables = review_variables(review)

    assert variables["customer_name"] == "Sam"
    assert variables["rating"] == "4"
    assert variables["restaurant_name"] == "our restaurant"


def test_seed_from_template(review):
    """Seeding interpolates known variables and reports the rest."""
    template = ResponseTemplate(
        template_id="tpl-1",
        title="Thanks",
        content="Dear {{customer_name}}, thanks for visiting {{restaurant_name}}! {{signature}}",
        tone=Tone.GRATEFUL
    )

    seed = seed_from_template(template, review, restaurant_name="Luigi's")

    assert seed.content == "Dear Sam, thanks for visiting Luigi's! {{signature}}"
    assert seed.tone == Tone.GRATEFUL
    assert seed.template_id == "tpl-1"
    assert seed.unresolved == ["signature"]
    # Template is untouched
    assert "{{customer_name}}" in template.content


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
