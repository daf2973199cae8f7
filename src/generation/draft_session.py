"""
Draft session.

Editable reply state for one review-editing session: seeded from a
template, generated, regenerated or typed, then saved as a draft.
"""

import itertools
import logging
from typing import Optional

from src.generation.response_generator import (
    GeneratedResponse,
    GenerationOptions,
    ResponseGenerator,
)
from src.generation.template_engine import TemplateSeed, seed_from_template
from src.models.audit import Caller
from src.models.response import Provenance, Response, ResponseTemplate, Tone, parse_tone
from src.models.review import Review
import config.settings as settings

logger = logging.getLogger(__name__)


class DraftSession:
    """
    One user's in-progress reply to one review.

    Generation requests are ticketed. Only the result of the most
    recently issued ticket is applied; a result arriving for an older
    ticket is stale and discarded (last write wins).
    """

    def __init__(
        self,
        review: Review,
        restaurant_name: Optional[str] = None,
        character_limit: int = settings.RESPONSE_CHARACTER_LIMIT
    ):
        self.review = review
        self.restaurant_name = restaurant_name
        self.character_limit = character_limit

        self.content = ""
        self.tone = Tone.PROFESSIONAL
        self.is_ai_generated = False
        self.model: Optional[str] = None
        self.template_id: Optional[str] = None

        self._tickets = itertools.count(1)
        self._latest_ticket = 0

    @property
    def character_count(self) -> int:
        return len(self.content)

    @property
    def is_over_limit(self) -> bool:
        return self.character_count > self.character_limit

    @property
    def provenance(self) -> Provenance:
        return Provenance(is_ai_generated=self.is_ai_generated, model=self.model)

    def begin_generation(self) -> int:
        """Issue a ticket for a new generation request, superseding earlier ones."""
        ticket = next(self._tickets)
        self._latest_ticket = ticket
        return ticket

    def accept_generation(self, ticket: int, result: GeneratedResponse) -> bool:
        """
        Apply a generation result if it belongs to the latest request.

        Returns:
            True if applied, False if the result was stale
        """
        if ticket != self._latest_ticket:
            logger.debug(
                f"Discarding stale generation #{ticket} for review "
                f"{self.review.review_id} (latest is #{self._latest_ticket})"
            )
            return False

        self.content = result.content
        self.tone = result.tone
        self.is_ai_generated = True
        self.model = result.model_id
        self.template_id = None
        return True

    def regenerate(self, generator: ResponseGenerator, options: GenerationOptions) -> bool:
        """
        Generate (or regenerate) the draft synchronously.

        Raises:
            GenerationFailed: Propagated from the generator; the draft is unchanged
        """
        ticket = self.begin_generation()
        result = generator.generate(self.review, options, restaurant_name=self.restaurant_name)
        return self.accept_generation(ticket, result)

    def apply_template(self, template: ResponseTemplate) -> TemplateSeed:
        """Replace the draft with an interpolated template and adopt its tone."""
        seed = seed_from_template(template, self.review, self.restaurant_name)
        self.content = seed.content
        self.tone = seed.tone
        self.is_ai_generated = False
        self.model = None
        self.template_id = seed.template_id
        if seed.unresolved:
            logger.info(
                f"Template {template.template_id} left placeholders unresolved: "
                f"{', '.join(seed.unresolved)}"
            )
        return seed

    def edit(self, content: Optional[str] = None, tone=None) -> None:
        """Hand edits keep the draft's provenance."""
        if content is not None:
            self.content = content
        if tone is not None:
            self.tone = parse_tone(tone)

    def save(self, coordinator, caller: Caller) -> Response:
        """
        Persist the draft through the response store coordinator.

        Raises:
            ValidationError: If the draft is empty
            NotFound: If the review no longer exists
        """
        return coordinator.create(
            review_id=self.review.review_id,
            caller=caller,
            content=self.content,
            tone=self.tone,
            provenance=self.provenance
        )
