"""
ReplyDesk service.

Wires storage, lifecycle, generation and analytics components together
and exposes the operations a thin serving layer calls.
"""

import logging
from datetime import datetime
from typing import List, Optional

from src.analytics.aggregation import AnalyticsAggregator, AnalyticsReportWriter
from src.analytics.filters import DateRange, ReviewFilters
from src.generation.draft_session import DraftSession
from src.generation.response_generator import GenerationOptions, ResponseGenerator
from src.lifecycle.response_coordinator import ResponseStoreCoordinator
from src.lifecycle.review_lifecycle import ReviewLifecycleManager
from src.models.analytics import AnalyticsSnapshot
from src.models.audit import Caller, StatusTransition
from src.models.response import Provenance, Response, Tone, parse_tone
from src.models.review import Review
from src.utils.storage import ReviewStore
import config.settings as settings

logger = logging.getLogger(__name__)


class ReplyDesk:
    """
    Facade over the review-response lifecycle.

    Every mutating operation takes an explicit Caller.
    """

    def __init__(
        self,
        store: ReviewStore,
        completion_client=None,
        output_dir: str = str(settings.OUTPUT_ROOT)
    ):
        """
        Initialize the desk.

        Args:
            store: Storage collaborator
            completion_client: Generation backend (complete(PromptContext) -> str);
                generation operations are unavailable without one
            output_dir: Directory for exported analytics reports
        """
        self.store = store
        self.output_dir = output_dir

        logger.info("Initializing ReplyDesk components...")

        self.lifecycle = ReviewLifecycleManager(store)
        self.coordinator = ResponseStoreCoordinator(
            store=store,
            lifecycle=self.lifecycle,
            character_limit=settings.RESPONSE_CHARACTER_LIMIT
        )
        self.generator = None
        if completion_client is not None:
            self.generator = ResponseGenerator(
                completion_client=completion_client,
                model_name=settings.GENERATION_MODEL,
                advanced_model_name=settings.GENERATION_MODEL_ADVANCED,
                character_limit=settings.RESPONSE_CHARACTER_LIMIT
            )
        self.aggregator = AnalyticsAggregator(recent_limit=settings.RECENT_REVIEWS_LIMIT)
        self.report_writer = AnalyticsReportWriter()

        logger.info("ReplyDesk initialized successfully")

    # Reviews

    def list_reviews(
        self,
        restaurant_id: Optional[str] = None,
        filters: Optional[dict] = None,
        now: Optional[datetime] = None
    ) -> List[Review]:
        """List reviews matching UI-style filter values, newest first."""
        return self.store.list_reviews(
            restaurant_id=restaurant_id,
            filters=ReviewFilters.from_dict(filters),
            now=now
        )

    def set_status(
        self,
        review_id: str,
        status,
        caller: Caller,
        reason: str = ""
    ) -> StatusTransition:
        return self.lifecycle.set_status(review_id, status, caller=caller, reason=reason)

    # Drafting

    def open_draft(self, review_id: str, template_id: Optional[str] = None) -> DraftSession:
        """
        Start an editing session for a review, optionally seeded from a template.
        """
        review = self.store.get_review(review_id)
        restaurant = self.store.find_restaurant(review.restaurant_id)
        session = DraftSession(
            review,
            restaurant_name=restaurant.name if restaurant else None,
            character_limit=settings.RESPONSE_CHARACTER_LIMIT
        )
        if template_id:
            session.apply_template(self.store.get_template(template_id))
        return session

    def generate_draft(
        self,
        session: DraftSession,
        tone=Tone.PROFESSIONAL,
        custom_instructions: Optional[str] = None,
        use_model_variant: bool = False
    ) -> DraftSession:
        """
        Fill (or refill) a session's draft with generated content.

        Raises:
            GenerationFailed: If generation fails; the draft keeps its content
            RuntimeError: If the desk was built without a completion client
        """
        if self.generator is None:
            raise RuntimeError("ReplyDesk has no completion client configured")

        options = GenerationOptions(
            tone=parse_tone(tone),
            custom_instructions=custom_instructions,
            use_model_variant=use_model_variant
        )
        session.regenerate(self.generator, options)
        return session

    def save_draft(self, session: DraftSession, caller: Caller) -> Response:
        return session.save(self.coordinator, caller)

    # Responses

    def respond_manually(
        self,
        review_id: str,
        caller: Caller,
        content: str,
        tone=Tone.PROFESSIONAL
    ) -> Response:
        return self.coordinator.create(
            review_id, caller, content, tone, provenance=Provenance(is_ai_generated=False)
        )

    def edit_response(
        self,
        response_id: str,
        content: Optional[str] = None,
        tone=None
    ) -> Response:
        return self.coordinator.edit(response_id, content=content, tone=tone)

    def post_response(self, response_id: str, caller: Caller) -> Response:
        return self.coordinator.mark_posted(response_id, caller=caller)

    def delete_response(self, response_id: str) -> None:
        self.coordinator.delete(response_id)

    def responses_for(self, review_id: str) -> List[Response]:
        return self.coordinator.list_by_review(review_id)

    # Analytics

    def analytics(
        self,
        restaurant_id: Optional[str] = None,
        date_range=DateRange.ALL_TIME,
        now: Optional[datetime] = None
    ) -> AnalyticsSnapshot:
        """Snapshot of reviews for one location (or all) in a period."""
        period = ReviewFilters.from_dict({"date_range": date_range}).date_range
        reviews = self.store.list_reviews(restaurant_id=restaurant_id)
        return self.aggregator.aggregate_period(reviews, date_range=period, now=now)

    def export_analytics(
        self,
        restaurant_id: Optional[str] = None,
        date_range=DateRange.ALL_TIME,
        now: Optional[datetime] = None
    ) -> str:
        """Write the analytics snapshot report and return the CSV path."""
        snapshot = self.analytics(restaurant_id=restaurant_id, date_range=date_range, now=now)
        period = ReviewFilters.from_dict({"date_range": date_range}).date_range
        label = f"{restaurant_id or 'all'}_{period.value or 'all-time'}"
        return self.report_writer.write(snapshot, output_dir=self.output_dir, label=label)
