"""
Response Generator.

Builds a generation prompt from a review, a tone and optional custom
instructions, and asks the completion backend for a reply draft.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.errors import GenerationFailed
from src.models.response import Tone
from src.models.review import Review
from src.utils.completion import PromptContext
import config.settings as settings

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a customer care assistant writing public replies to reviews of a restaurant.

Your task:
1. Read the customer's review, rating and name
2. Write one reply on behalf of the restaurant
3. Follow the requested tone and any additional instructions

Rules:
- Address the customer by name when one is given
- Acknowledge specifics the customer mentioned; do not invent details
- For low ratings, apologize for the experience and invite them to get in touch
- Never promise refunds, compensation or discounts
- Keep the reply under {limit} characters
- Output only the reply text, without quotes, headings or signatures"""


def _construct_user_prompt(
    review: Review,
    tone: Tone,
    restaurant_name: str,
    custom_instructions: Optional[str]
) -> str:
    """Construct user prompt from review and options."""
    review_text = review.text.strip() if review.text and review.text.strip() else "(no text, rating only)"
    prompt = f"""Restaurant: {restaurant_name}
Customer: {review.author_name or "Anonymous"}
Rating: {review.rating}/5
Review Text: "{review_text}"

Tone: {tone.value.title()} - {tone.description}"""

    if custom_instructions and custom_instructions.strip():
        prompt += f"\nAdditional instructions: {custom_instructions.strip()}"

    return prompt + "\n\nWrite the reply:"


@dataclass(frozen=True)
class GenerationOptions:
    """Caller choices for one generation request."""
    tone: Tone = Tone.PROFESSIONAL
    custom_instructions: Optional[str] = None
    use_model_variant: bool = False  # Use the advanced model instead of the standard one


@dataclass(frozen=True)
class GeneratedResponse:
    """Candidate reply content plus the model that produced it."""
    content: str
    model_id: str
    tone: Tone


class ResponseGenerator:
    """
    Generates reply drafts for reviews.

    Persists nothing and never retries: a failed call surfaces as
    GenerationFailed and the caller decides whether to regenerate.
    """

    def __init__(
        self,
        completion_client,
        model_name: str = settings.GENERATION_MODEL,
        advanced_model_name: str = settings.GENERATION_MODEL_ADVANCED,
        character_limit: int = settings.RESPONSE_CHARACTER_LIMIT
    ):
        """
        Initialize response generator.

        Args:
            completion_client: Object exposing complete(PromptContext) -> str
            model_name: Standard generation model
            advanced_model_name: Model used when use_model_variant is set
            character_limit: Limit quoted to the model in the instructions
        """
        self.completion_client = completion_client
        self.model_name = model_name
        self.advanced_model_name = advanced_model_name
        self.system_prompt = SYSTEM_PROMPT.format(limit=character_limit)

        logger.info(
            f"Initialized ResponseGenerator with model={model_name}, "
            f"advanced={advanced_model_name}"
        )

    def build_context(
        self,
        review: Review,
        options: GenerationOptions,
        restaurant_name: Optional[str] = None
    ) -> PromptContext:
        tone = Tone(options.tone)
        model_name = self.advanced_model_name if options.use_model_variant else self.model_name
        return PromptContext(
            model_name=model_name,
            system_instruction=self.system_prompt,
            user_prompt=_construct_user_prompt(
                review,
                tone,
                restaurant_name or settings.DEFAULT_RESTAURANT_NAME,
                options.custom_instructions
            )
        )

    def generate(
        self,
        review: Review,
        options: GenerationOptions,
        restaurant_name: Optional[str] = None
    ) -> GeneratedResponse:
        """
        Generate a reply draft for a review.

        Args:
            review: Review being answered
            options: Tone, custom instructions and model choice
            restaurant_name: Owning location's name for the prompt

        Returns:
            GeneratedResponse with content and model id

        Raises:
            GenerationFailed: If the backend errors or returns empty text
        """
        context = self.build_context(review, options, restaurant_name)

        try:
            text = self.completion_client.complete(context)
        except Exception as e:
            logger.error(f"Generation failed for review {review.review_id}: {e}")
            raise GenerationFailed(str(e) or e.__class__.__name__) from e

        content = _clean_completion(text)
        if not content:
            logger.error(f"Empty completion for review {review.review_id}")
            raise GenerationFailed("Model returned an empty response")

        logger.info(
            f"Generated {len(content)}-char {Tone(options.tone).value} reply "
            f"for review {review.review_id} with {context.model_name}"
        )
        return GeneratedResponse(
            content=content,
            model_id=context.model_name,
            tone=Tone(options.tone)
        )


def _clean_completion(text: Optional[str]) -> str:
    """Strip whitespace and wrapping quotes models sometimes add."""
    if not text:
        return ""
    content = text.strip()
    if len(content) >= 2 and content[0] == content[-1] and content[0] in ('"', "'"):
        content = content[1:-1].strip()
    return content
