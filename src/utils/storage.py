"""
Storage utility.

JSON-file backed store for restaurants, reviews, responses, templates
and the status transition log.
"""

import copy
import json
import os
import shutil
import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional

from src.errors import NotFound
from src.models.audit import StatusTransition
from src.models.response import Response, ResponseTemplate, Tone
from src.models.review import Restaurant, Review, ReviewStatus, Sentiment
from src.utils.timestamps import format_timestamp, utc_now

logger = logging.getLogger(__name__)

# Fields of a response that update_response may change
RESPONSE_PATCH_FIELDS = ("content", "tone", "is_posted", "posted_at", "updated_at")
TEMPLATE_PATCH_FIELDS = ("title", "content", "tone", "category", "variables", "is_active")


class ReviewStore:
    """
    Storage collaborator for the response lifecycle.

    Handles:
    - Restaurants, reviews, responses and templates keyed by id
    - Status transition log (append-only)
    - Write-through persistence to a single JSON file (atomic rename + backup)

    With path=None the store is purely in-memory. Getters hand out copies,
    so records only change through the store's own methods.
    """

    def __init__(self, path: Optional[str] = None):
        """
        Initialize store from disk or start empty.

        Args:
            path: Path to the store JSON file, or None for in-memory only
        """
        self.path = path
        self.restaurants: Dict[str, Restaurant] = {}
        self.reviews: Dict[str, Review] = {}
        self.responses: Dict[str, Response] = {}
        self.templates: Dict[str, ResponseTemplate] = {}
        self.transitions: List[StatusTransition] = []
        self.version = "1.0.0"

        if path:
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            if os.path.exists(path):
                self._load()
            else:
                logger.info(f"No existing store found at {path}, initializing empty store")

    # ------------------------------------------------------------------
    # Restaurants
    # ------------------------------------------------------------------

    def add_restaurant(
        self,
        name: str,
        address: str = "",
        external_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        restaurant_id: Optional[str] = None
    ) -> Restaurant:
        restaurant = Restaurant(
            restaurant_id=restaurant_id or str(uuid.uuid4()),
            name=name,
            address=address,
            external_id=external_id,
            owner_id=owner_id
        )
        self.restaurants[restaurant.restaurant_id] = restaurant
        self._persist()
        logger.info(f"Added restaurant {restaurant.restaurant_id} - '{name}'")
        return copy.deepcopy(restaurant)

    def get_restaurant(self, restaurant_id: str) -> Restaurant:
        if restaurant_id not in self.restaurants:
            raise NotFound("Restaurant", restaurant_id)
        return copy.deepcopy(self.restaurants[restaurant_id])

    def find_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        """Like get_restaurant, but returns None for unknown ids."""
        restaurant = self.restaurants.get(restaurant_id)
        return copy.deepcopy(restaurant) if restaurant else None

    def list_restaurants(self) -> List[Restaurant]:
        return [copy.deepcopy(r) for r in self.restaurants.values()]

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def add_review(
        self,
        restaurant_id: str,
        rating: int,
        author_name: str,
        published_at: datetime,
        text: Optional[str] = None,
        sentiment: Sentiment = Sentiment.NEUTRAL,
        sentiment_score: Optional[float] = None,
        keywords: Optional[List[str]] = None,
        external_id: Optional[str] = None
    ) -> Review:
        """
        Add a manually entered (or freshly ingested) review.

        New reviews always start PENDING.

        Raises:
            NotFound: If restaurant_id is unknown
            ValueError: If rating is outside 1-5
        """
        if restaurant_id not in self.restaurants:
            raise NotFound("Restaurant", restaurant_id)

        review = Review(
            review_id=str(uuid.uuid4()),
            restaurant_id=restaurant_id,
            rating=rating,
            author_name=author_name,
            published_at=published_at,
            text=text,
            sentiment=sentiment,
            sentiment_score=sentiment_score,
            keywords=keywords or [],
            status=ReviewStatus.PENDING,
            external_id=external_id
        )
        self.reviews[review.review_id] = review
        self._persist()
        logger.info(f"Added review {review.review_id} for restaurant {restaurant_id}")
        return copy.deepcopy(review)

    def import_reviews(self, records: Iterable[dict]) -> List[Review]:
        """
        Load already-ingested review records.

        Records go through Review.from_dict, so legacy field names are
        accepted. Records whose external_id is already stored are skipped.
        Imported reviews start PENDING regardless of the incoming status.

        Returns:
            The newly stored reviews
        """
        known_external = {
            r.external_id for r in self.reviews.values() if r.external_id
        }
        staged: Dict[str, Review] = {}

        # Stage everything first so a bad record imports nothing
        for record in records:
            record = dict(record)
            record.setdefault("review_id", record.get("id") or str(uuid.uuid4()))
            review = Review.from_dict(record)

            if review.external_id and review.external_id in known_external:
                logger.debug(f"Skipping duplicate review {review.external_id}")
                continue
            if review.restaurant_id not in self.restaurants:
                raise NotFound("Restaurant", review.restaurant_id)
            if review.review_id in self.reviews or review.review_id in staged:
                logger.debug(f"Skipping already stored review {review.review_id}")
                continue

            review.status = ReviewStatus.PENDING
            staged[review.review_id] = review
            if review.external_id:
                known_external.add(review.external_id)

        self.reviews.update(staged)
        imported = [copy.deepcopy(r) for r in staged.values()]
        self._persist()
        logger.info(f"Imported {len(imported)} reviews")
        return imported

    def get_review(self, review_id: str) -> Review:
        """
        Retrieve review by ID.

        Raises:
            NotFound: If review_id doesn't exist
        """
        if review_id not in self.reviews:
            raise NotFound("Review", review_id)
        return copy.deepcopy(self.reviews[review_id])

    def list_reviews(
        self,
        restaurant_id: Optional[str] = None,
        filters=None,
        now: Optional[datetime] = None
    ) -> List[Review]:
        """
        List reviews, newest published first.

        Args:
            restaurant_id: Restrict to one location
            filters: Optional ReviewFilters applied in memory
            now: Evaluation instant for date-range filters
        """
        # Imported here to keep analytics independent of storage
        from src.analytics.filters import apply

        reviews = (
            r for r in self.reviews.values()
            if restaurant_id is None or r.restaurant_id == restaurant_id
        )
        if filters is not None:
            reviews = apply(reviews, filters, now=now)

        result = [copy.deepcopy(r) for r in reviews]
        result.sort(key=lambda r: r.published_at, reverse=True)
        return result

    def update_review_status(self, review_id: str, status: ReviewStatus) -> Review:
        if review_id not in self.reviews:
            raise NotFound("Review", review_id)

        review = self.reviews[review_id]
        review.status = ReviewStatus(status)
        review.updated_at = utc_now()
        self._persist()
        return copy.deepcopy(review)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def create_response(
        self,
        review_id: str,
        user_id: str,
        content: str,
        tone: Tone,
        is_ai_generated: bool = False,
        model: Optional[str] = None
    ) -> Response:
        if review_id not in self.reviews:
            raise NotFound("Review", review_id)

        now = utc_now()
        response = Response(
            response_id=str(uuid.uuid4()),
            review_id=review_id,
            user_id=user_id,
            content=content,
            tone=tone,
            is_ai_generated=is_ai_generated,
            model=model,
            is_posted=False,
            created_at=now,
            updated_at=now
        )
        self.responses[response.response_id] = response
        self._persist()
        return copy.deepcopy(response)

    def get_response(self, response_id: str) -> Response:
        if response_id not in self.responses:
            raise NotFound("Response", response_id)
        return copy.deepcopy(self.responses[response_id])

    def list_responses(self, review_id: str) -> List[Response]:
        """All responses for a review, in insertion order."""
        return [
            copy.deepcopy(r) for r in self.responses.values()
            if r.review_id == review_id
        ]

    def update_response(self, response_id: str, patch: dict) -> Response:
        """
        Apply a field patch to a response.

        Raises:
            NotFound: If response_id doesn't exist
            ValueError: If the patch names a field that may not change
        """
        if response_id not in self.responses:
            raise NotFound("Response", response_id)

        unknown = set(patch) - set(RESPONSE_PATCH_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update response fields: {sorted(unknown)}")

        # Build the updated record first so a bad value leaves the stored one intact
        current = self.responses[response_id]
        updated = Response.from_dict({**current.to_dict(), **_serialize_patch(patch)})
        self.responses[response_id] = updated
        self._persist()
        return copy.deepcopy(updated)

    def delete_response(self, response_id: str) -> None:
        if response_id not in self.responses:
            raise NotFound("Response", response_id)

        del self.responses[response_id]
        self._persist()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def create_template(
        self,
        title: str,
        content: str,
        tone: Tone = Tone.PROFESSIONAL,
        category: str = "general",
        variables: Optional[List[str]] = None
    ) -> ResponseTemplate:
        template = ResponseTemplate(
            template_id=str(uuid.uuid4()),
            title=title,
            content=content,
            tone=tone,
            category=category,
            variables=variables or [],
            is_active=True
        )
        self.templates[template.template_id] = template
        self._persist()
        logger.info(f"Created template {template.template_id} - '{title}'")
        return copy.deepcopy(template)

    def get_template(self, template_id: str) -> ResponseTemplate:
        if template_id not in self.templates:
            raise NotFound("Template", template_id)
        return copy.deepcopy(self.templates[template_id])

    def list_templates(
        self,
        tone: Optional[Tone] = None,
        category: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> List[ResponseTemplate]:
        templates = []
        for template in self.templates.values():
            if tone is not None and template.tone != Tone(tone):
                continue
            if category is not None and template.category != category:
                continue
            if is_active is not None and template.is_active != is_active:
                continue
            templates.append(copy.deepcopy(template))
        return templates

    def update_template(self, template_id: str, patch: dict) -> ResponseTemplate:
        if template_id not in self.templates:
            raise NotFound("Template", template_id)

        unknown = set(patch) - set(TEMPLATE_PATCH_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update template fields: {sorted(unknown)}")

        current = self.templates[template_id]
        data = {**current.to_dict(), **_serialize_patch(patch)}
        data["updated_at"] = format_timestamp(utc_now())
        updated = ResponseTemplate.from_dict(data)
        self.templates[template_id] = updated
        self._persist()
        return copy.deepcopy(updated)

    def delete_template(self, template_id: str) -> None:
        if template_id not in self.templates:
            raise NotFound("Template", template_id)

        del self.templates[template_id]
        self._persist()

    # ------------------------------------------------------------------
    # Status transition log
    # ------------------------------------------------------------------

    def record_transition(self, transition: StatusTransition) -> None:
        self.transitions.append(copy.deepcopy(transition))
        self._persist()

    def list_transitions(self, review_id: Optional[str] = None) -> List[StatusTransition]:
        return [
            copy.deepcopy(t) for t in self.transitions
            if review_id is None or t.review_id == review_id
        ]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """
        Persist store to disk with atomic write pattern.
        Creates backup before write.
        """
        if not self.path:
            return

        # Create backup if store file exists
        if os.path.exists(self.path):
            backup_path = f"{self.path}.backup"
            shutil.copy(self.path, backup_path)
            logger.debug(f"Created backup: {backup_path}")

        data = {
            "version": self.version,
            "last_updated": format_timestamp(utc_now()),
            "restaurants": [r.to_dict() for r in self.restaurants.values()],
            "reviews": [r.to_dict() for r in self.reviews.values()],
            "responses": [r.to_dict() for r in self.responses.values()],
            "templates": [t.to_dict() for t in self.templates.values()],
            "transitions": [t.to_dict() for t in self.transitions],
        }

        # Atomic write: write to temp file, then rename
        temp_path = f"{self.path}.tmp"
        try:
            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)

            os.replace(temp_path, self.path)
            logger.debug(f"Store saved: {len(self.reviews)} reviews, {len(self.responses)} responses")

        except Exception as e:
            logger.error(f"Failed to save store: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    def _persist(self) -> None:
        if self.path:
            self.save()

    def _load(self, allow_restore: bool = True) -> None:
        """Load store from disk."""
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)

            self.version = data.get("version", "1.0.0")
            self.restaurants = {
                r.restaurant_id: r
                for r in (Restaurant.from_dict(d) for d in data.get("restaurants", []))
            }
            self.reviews = {
                r.review_id: r
                for r in (Review.from_dict(d) for d in data.get("reviews", []))
            }
            self.responses = {
                r.response_id: r
                for r in (Response.from_dict(d) for d in data.get("responses", []))
            }
            self.templates = {
                t.template_id: t
                for t in (ResponseTemplate.from_dict(d) for d in data.get("templates", []))
            }
            self.transitions = [
                StatusTransition.from_dict(d) for d in data.get("transitions", [])
            ]

            logger.info(
                f"Loaded store: {len(self.restaurants)} restaurants, "
                f"{len(self.reviews)} reviews, {len(self.responses)} responses"
            )

        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.error(f"Failed to load store: {e}")
            if not allow_restore:
                raise
            self._try_restore_from_backup()

    def _try_restore_from_backup(self) -> None:
        """Attempt to restore from backup file if main store is corrupted."""
        backup_path = f"{self.path}.backup"
        if os.path.exists(backup_path):
            logger.warning(f"Attempting to restore from backup: {backup_path}")
            shutil.copy(backup_path, self.path)
            self._load(allow_restore=False)
            logger.info("Successfully restored from backup")
        else:
            raise ValueError(f"Store file {self.path} is corrupt and no backup exists")


def _serialize_patch(patch: dict) -> dict:
    """Render patch values the way to_dict stores them."""
    serialized = {}
    for key, value in patch.items():
        if isinstance(value, datetime):
            value = format_timestamp(value)
        elif isinstance(value, Enum):
            value = value.value
        serialized[key] = value
    return serialized
