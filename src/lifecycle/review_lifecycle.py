"""
Review Lifecycle Manager.

Owns the review status state machine: PENDING -> RESPONDED when a
response is posted, plus explicit manual overrides in any direction.
"""

import logging
from typing import List, Optional

from src.errors import ValidationError
from src.models.audit import Caller, StatusTransition, TransitionTrigger
from src.models.review import ReviewStatus
from src.utils.storage import ReviewStore

logger = logging.getLogger(__name__)


def parse_status(status) -> ReviewStatus:
    """Accept a ReviewStatus or its case-insensitive name."""
    if isinstance(status, ReviewStatus):
        return status
    try:
        return ReviewStatus(str(status).strip().upper())
    except ValueError:
        raise ValidationError(
            f"Invalid status: {status!r}. Must be one of "
            f"{', '.join(s.value for s in ReviewStatus)}"
        )


class ReviewLifecycleManager:
    """
    Transitions review status and records every change.

    Status is an editable annotation, not a workflow lock: manual
    overrides may move a review to any status. Overrides never touch
    responses, so posted replies stay posted.
    """

    def __init__(self, store: ReviewStore):
        self.store = store

    def set_status(
        self,
        review_id: str,
        status,
        caller: Optional[Caller] = None,
        reason: str = ""
    ) -> StatusTransition:
        """
        Manually override a review's status.

        Args:
            review_id: Target review
            status: New status (enum member or name)
            caller: User making the correction
            reason: Free-text audit note

        Returns:
            The recorded transition (changed is False if status was already set)

        Raises:
            ValidationError: If status is not a known value
            NotFound: If review_id doesn't exist
        """
        target = parse_status(status)
        review = self.store.get_review(review_id)

        transition = StatusTransition(
            review_id=review_id,
            from_status=review.status,
            to_status=target,
            trigger=TransitionTrigger.MANUAL_OVERRIDE,
            user_id=caller.user_id if caller else None,
            reason=reason
        )

        if transition.changed:
            self.store.update_review_status(review_id, target)
            logger.info(
                f"Review {review_id}: {review.status.value} -> {target.value} "
                f"(manual override by {transition.user_id or 'unknown'})"
            )
        else:
            logger.debug(f"Review {review_id} already {target.value}, override is a no-op")

        self.store.record_transition(transition)
        return transition

    def ignore(
        self,
        review_id: str,
        caller: Optional[Caller] = None,
        reason: str = ""
    ) -> StatusTransition:
        """Mark a review as not needing a reply."""
        return self.set_status(review_id, ReviewStatus.IGNORED, caller=caller, reason=reason)

    def on_response_posted(
        self,
        review_id: str,
        caller: Optional[Caller] = None
    ) -> Optional[StatusTransition]:
        """
        Hook fired when a response for review_id is marked posted.

        Moves the review to RESPONDED unless it is already there.
        Idempotent: later postings on a RESPONDED review change nothing.

        Returns:
            The automatic transition, or None if no change was needed
        """
        review = self.store.get_review(review_id)

        if review.status == ReviewStatus.RESPONDED:
            logger.debug(f"Review {review_id} already RESPONDED, no transition")
            return None

        transition = StatusTransition(
            review_id=review_id,
            from_status=review.status,
            to_status=ReviewStatus.RESPONDED,
            trigger=TransitionTrigger.AUTOMATIC,
            user_id=caller.user_id if caller else None,
            reason="response posted"
        )
        self.store.update_review_status(review_id, ReviewStatus.RESPONDED)
        self.store.record_transition(transition)

        logger.info(f"Review {review_id}: {review.status.value} -> RESPONDED (response posted)")
        return transition

    def history(self, review_id: str) -> List[StatusTransition]:
        """Recorded transitions for a review, oldest first."""
        self.store.get_review(review_id)
        return self.store.list_transitions(review_id)
