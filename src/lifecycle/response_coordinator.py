"""
Response Store Coordinator.

Creates, edits, posts and deletes the responses attached to a review,
enforcing the draft/posted rules.
"""

import logging
from typing import List, Optional

from src.errors import AlreadyPosted, InvalidState, ValidationError
from src.lifecycle.review_lifecycle import ReviewLifecycleManager
from src.models.audit import Caller
from src.models.response import Provenance, Response, Tone, parse_tone
from src.utils.storage import ReviewStore
from src.utils.timestamps import utc_now
import config.settings as settings

logger = logging.getLogger(__name__)


def _require_content(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise ValidationError("Response content cannot be empty")
    return content


class ResponseStoreCoordinator:
    """
    Manages the set of responses for each review.

    Rules:
    - New responses are drafts (is_posted=False)
    - Only drafts may be edited
    - Posting is one-way, checks the platform character limit, and
      notifies the lifecycle manager
    - Deleting never changes the parent review's status
    """

    def __init__(
        self,
        store: ReviewStore,
        lifecycle: ReviewLifecycleManager,
        character_limit: int = settings.RESPONSE_CHARACTER_LIMIT
    ):
        self.store = store
        self.lifecycle = lifecycle
        self.character_limit = character_limit

    def create(
        self,
        review_id: str,
        caller: Caller,
        content: str,
        tone=Tone.PROFESSIONAL,
        provenance: Provenance = Provenance()
    ) -> Response:
        """
        Create a draft response for a review.

        Args:
            review_id: Parent review
            caller: Attributed author
            content: Reply text (must be non-empty after trimming)
            tone: Reply tone
            provenance: Manual or AI-generated, and which model

        Returns:
            The new draft Response

        Raises:
            ValidationError: If content is empty or tone unknown
            NotFound: If review_id doesn't exist
        """
        _require_content(content)
        tone = parse_tone(tone)
        self.store.get_review(review_id)

        model = provenance.model if provenance.is_ai_generated else None
        if provenance.model and not provenance.is_ai_generated:
            logger.debug("Dropping model name on manually authored response")

        response = self.store.create_response(
            review_id=review_id,
            user_id=caller.user_id,
            content=content,
            tone=tone,
            is_ai_generated=provenance.is_ai_generated,
            model=model
        )

        if response.is_over_limit:
            logger.warning(
                f"Draft {response.response_id} is {response.character_count} chars, "
                f"over the {self.character_limit}-char posting limit"
            )

        logger.info(
            f"Created {'AI' if response.is_ai_generated else 'manual'} draft "
            f"{response.response_id} for review {review_id} by {caller.user_id}"
        )
        return response

    def edit(
        self,
        response_id: str,
        content: Optional[str] = None,
        tone=None
    ) -> Response:
        """
        Edit a draft's content and/or tone.

        Raises:
            InvalidState: If the response is already posted
            ValidationError: If new content is empty or tone unknown
            NotFound: If response_id doesn't exist
        """
        response = self.store.get_response(response_id)
        if response.is_posted:
            raise InvalidState(
                f"Response {response_id} was posted and can no longer be edited"
            )

        patch = {}
        if content is not None:
            patch["content"] = _require_content(content)
        if tone is not None:
            patch["tone"] = parse_tone(tone)

        if not patch:
            return response

        patch["updated_at"] = utc_now()
        updated = self.store.update_response(response_id, patch)

        if updated.is_over_limit:
            logger.warning(
                f"Draft {response_id} is {updated.character_count} chars, "
                f"over the {self.character_limit}-char posting limit"
            )
        logger.info(f"Edited response {response_id} ({', '.join(sorted(patch))})")
        return updated

    def mark_posted(self, response_id: str, caller: Optional[Caller] = None) -> Response:
        """
        Mark a response as sent to the review platform.

        Raises:
            AlreadyPosted: If it was already posted (safe to ignore)
            ValidationError: If content exceeds the character limit
            NotFound: If the response or its review doesn't exist
        """
        response = self.store.get_response(response_id)
        if response.is_posted:
            raise AlreadyPosted(f"Response {response_id} is already posted")

        if len(response.content) > self.character_limit:
            raise ValidationError(
                f"Response is {len(response.content)} characters; "
                f"the platform limit is {self.character_limit}"
            )

        # Resolve the parent first so a missing review rejects the whole operation
        self.store.get_review(response.review_id)

        posted = self.store.update_response(response_id, {
            "is_posted": True,
            "posted_at": utc_now()
        })
        try:
            self.lifecycle.on_response_posted(response.review_id, caller=caller)
        except Exception as e:
            logger.error(
                f"Status update failed for review {response.review_id}, "
                f"reverting response {response_id} to draft: {e}"
            )
            self.store.update_response(response_id, {
                "is_posted": False,
                "posted_at": None
            })
            raise

        logger.info(f"Response {response_id} marked posted for review {response.review_id}")
        return posted

    def delete(self, response_id: str) -> None:
        """
        Delete a response, posted or not.

        The parent review's status is left as it is.
        """
        response = self.store.get_response(response_id)
        self.store.delete_response(response_id)
        logger.info(
            f"Deleted {'posted' if response.is_posted else 'draft'} response "
            f"{response_id} of review {response.review_id}"
        )

    def get(self, response_id: str) -> Response:
        return self.store.get_response(response_id)

    def list_by_review(self, review_id: str) -> List[Response]:
        """Responses for a review, most recently created first."""
        self.store.get_review(review_id)
        responses = self.store.list_responses(review_id)
        # Insertion order breaks created_at ties, newest insert first
        ordered = sorted(
            enumerate(responses),
            key=lambda pair: (pair[1].created_at, pair[0]),
            reverse=True
        )
        return [response for _, response in ordered]
