"""
Response data models.

Represents written replies to reviews (drafts and posted) and the
reusable templates used to seed them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from src.errors import ValidationError
from src.models.review import enum_name
from src.utils.timestamps import format_timestamp, parse_timestamp, utc_now
import config.settings as settings


class Tone(str, Enum):
    """Fixed categorical style applied to a response's phrasing."""
    PROFESSIONAL = "PROFESSIONAL"
    FRIENDLY = "FRIENDLY"
    APOLOGETIC = "APOLOGETIC"
    GRATEFUL = "GRATEFUL"

    @property
    def description(self) -> str:
        return TONE_DESCRIPTIONS[self]


TONE_DESCRIPTIONS = {
    Tone.PROFESSIONAL: "Formal, courteous, and business-appropriate",
    Tone.FRIENDLY: "Warm, conversational, and personable",
    Tone.APOLOGETIC: "Understanding and genuinely concerned",
    Tone.GRATEFUL: "Appreciative and thankful for feedback",
}


def parse_tone(tone) -> Tone:
    """Accept a Tone or its case-insensitive name."""
    if isinstance(tone, Tone):
        return tone
    try:
        return Tone(str(tone).strip().upper())
    except ValueError:
        raise ValidationError(
            f"Invalid tone: {tone!r}. Must be one of {', '.join(t.value for t in Tone)}"
        )


@dataclass(frozen=True)
class Provenance:
    """How a response's content came to be."""
    is_ai_generated: bool = False
    model: Optional[str] = None  # Generation backend, only kept for AI content


@dataclass
class Response:
    """
    One reply tied to exactly one review.

    Drafts (is_posted=False) may be edited. Once posted, content and tone
    are frozen and posted_at records when that happened.
    """
    response_id: str
    review_id: str
    user_id: str
    content: str
    tone: Tone = Tone.PROFESSIONAL
    is_ai_generated: bool = False
    model: Optional[str] = None
    is_posted: bool = False
    posted_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.tone = Tone(self.tone)
        self.posted_at = parse_timestamp(self.posted_at)
        self.created_at = parse_timestamp(self.created_at)
        self.updated_at = parse_timestamp(self.updated_at)

    @property
    def character_count(self) -> int:
        return len(self.content)

    @property
    def is_over_limit(self) -> bool:
        return self.character_count > settings.RESPONSE_CHARACTER_LIMIT

    @classmethod
    def from_dict(cls, data: dict) -> "Response":
        return cls(
            response_id=data.get("response_id") or data["id"],
            review_id=data.get("review_id") or data["reviewId"],
            user_id=data.get("user_id") or data.get("userId", ""),
            content=data["content"],
            tone=enum_name(data.get("tone"), Tone.PROFESSIONAL),
            is_ai_generated=bool(data.get("is_ai_generated", data.get("isAIGenerated", False))),
            model=data.get("model"),
            is_posted=bool(data.get("is_posted", data.get("isPosted", False))),
            posted_at=data.get("posted_at") or data.get("postedAt"),
            created_at=data.get("created_at") or data.get("createdAt") or utc_now(),
            updated_at=data.get("updated_at") or data.get("updatedAt") or utc_now(),
        )

    def to_dict(self) -> dict:
        return {
            "response_id": self.response_id,
            "review_id": self.review_id,
            "user_id": self.user_id,
            "content": self.content,
            "tone": self.tone.value,
            "is_ai_generated": self.is_ai_generated,
            "model": self.model,
            "is_posted": self.is_posted,
            "posted_at": format_timestamp(self.posted_at),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }


@dataclass
class ResponseTemplate:
    """Reusable content skeleton with {{variable}} placeholders."""
    template_id: str
    title: str
    content: str
    tone: Tone = Tone.PROFESSIONAL
    category: str = "general"
    variables: List[str] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.tone = Tone(self.tone)
        self.created_at = parse_timestamp(self.created_at)
        self.updated_at = parse_timestamp(self.updated_at)

    @classmethod
    def from_dict(cls, data: dict) -> "ResponseTemplate":
        return cls(
            template_id=data.get("template_id") or data["id"],
            title=data["title"],
            content=data["content"],
            tone=enum_name(data.get("tone"), Tone.PROFESSIONAL),
            category=data.get("category", "general"),
            variables=list(data.get("variables") or []),
            is_active=bool(data.get("is_active", data.get("isActive", True))),
            created_at=data.get("created_at") or data.get("createdAt") or utc_now(),
            updated_at=data.get("updated_at") or data.get("updatedAt") or utc_now(),
        )

    def to_dict(self) -> dict:
        return {
            "template_id": self.template_id,
            "title": self.title,
            "content": self.content,
            "tone": self.tone.value,
            "category": self.category,
            "variables": list(self.variables),
            "is_active": self.is_active,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }
