"""
Caller and audit data models.

Operations are attributed to an explicit Caller instead of an ambient
session, and every review status change leaves a StatusTransition.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from src.models.review import ReviewStatus
from src.utils.timestamps import format_timestamp, parse_timestamp, utc_now


@dataclass(frozen=True)
class Caller:
    """The identified user an operation is attributed to."""
    user_id: str

    def __post_init__(self):
        if not self.user_id or not str(self.user_id).strip():
            raise ValueError("Caller requires a non-empty user_id")


class TransitionTrigger(str, Enum):
    AUTOMATIC = "AUTOMATIC"  # Fired by a response being posted
    MANUAL_OVERRIDE = "MANUAL_OVERRIDE"  # Explicit user correction


@dataclass
class StatusTransition:
    """One recorded change (or no-op override) of a review's status."""
    review_id: str
    from_status: ReviewStatus
    to_status: ReviewStatus
    trigger: TransitionTrigger
    user_id: Optional[str] = None
    reason: str = ""
    occurred_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.from_status = ReviewStatus(self.from_status)
        self.to_status = ReviewStatus(self.to_status)
        self.trigger = TransitionTrigger(self.trigger)
        self.occurred_at = parse_timestamp(self.occurred_at)

    @property
    def changed(self) -> bool:
        return self.from_status != self.to_status

    @classmethod
    def from_dict(cls, data: dict) -> "StatusTransition":
        return cls(
            review_id=data["review_id"],
            from_status=data["from_status"],
            to_status=data["to_status"],
            trigger=data["trigger"],
            user_id=data.get("user_id"),
            reason=data.get("reason", ""),
            occurred_at=data.get("occurred_at") or utc_now(),
        )

    def to_dict(self) -> dict:
        return {
            "review_id": self.review_id,
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "trigger": self.trigger.value,
            "user_id": self.user_id,
            "reason": self.reason,
            "occurred_at": format_timestamp(self.occurred_at),
        }
