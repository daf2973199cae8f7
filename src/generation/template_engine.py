"""
Template Engine.

Fills {{variable}} placeholders in response templates with
review-derived values.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.models.response import ResponseTemplate, Tone
from src.models.review import Review
import config.settings as settings

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def interpolate(template: str, variables: Dict[str, str]) -> str:
    """
    Replace every {{ key }} placeholder with its value.

    Whitespace inside the braces is ignored. Placeholders without a
    matching key are left verbatim so they stay visible in the draft.
    Values are inserted as plain text; a value that itself contains
    placeholder syntax is not protected against a later pass.

    Args:
        template: Text containing placeholders
        variables: Placeholder name -> replacement text

    Returns:
        Interpolated text
    """
    result = template
    for key, value in variables.items():
        pattern = re.compile(r"\{\{\s*" + re.escape(key) + r"\s*\}\}")
        replacement = str(value)
        result = pattern.sub(lambda _match: replacement, result)
    return result


def find_placeholders(template: str) -> List[str]:
    """Placeholder names present in template, in order of first appearance."""
    names = []
    for name in PLACEHOLDER_PATTERN.findall(template):
        if name not in names:
            names.append(name)
    return names


def review_variables(review: Review, restaurant_name: Optional[str] = None) -> Dict[str, str]:
    """Standard variable map offered to every template."""
    return {
        "customer_name": review.author_name,
        "restaurant_name": restaurant_name or settings.DEFAULT_RESTAURANT_NAME,
        "rating": str(review.rating),
    }


@dataclass
class TemplateSeed:
    """Initial draft content produced from a template."""
    content: str
    tone: Tone
    template_id: str
    unresolved: List[str] = field(default_factory=list)


def seed_from_template(
    template: ResponseTemplate,
    review: Review,
    restaurant_name: Optional[str] = None
) -> TemplateSeed:
    """
    Interpolate a template against a review to seed a draft.

    The template itself is not modified.
    """
    content = interpolate(template.content, review_variables(review, restaurant_name))
    return TemplateSeed(
        content=content,
        tone=template.tone,
        template_id=template.template_id,
        unresolved=find_placeholders(content)
    )
