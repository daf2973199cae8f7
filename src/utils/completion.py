"""
Completion client utility.

Wraps the Gemini text-generation API behind a single complete() call.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import google.generativeai as genai

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptContext:
    """Everything the generation backend needs for one completion."""
    model_name: str
    system_instruction: str
    user_prompt: str


class GeminiCompletionClient:
    """
    Text completion via Google's Gemini models.

    One GenerativeModel is created per (model, system instruction) pair
    and reused across calls.
    """

    def __init__(
        self,
        api_key: str,
        temperature: float = 0.7,
        max_output_tokens: int = 300,
        timeout_seconds: int = 30
    ):
        """
        Initialize completion client.

        Args:
            api_key: Google API key
            temperature: Sampling temperature
            max_output_tokens: Upper bound on completion length
            timeout_seconds: API request timeout
        """
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_seconds = timeout_seconds
        self._models: Dict[tuple, object] = {}

        # Configure Gemini
        genai.configure(api_key=api_key)

        logger.info(f"Initialized GeminiCompletionClient with temp={temperature}")

    def complete(self, context: PromptContext) -> str:
        """
        Generate text for a prompt.

        Args:
            context: Model name, system instruction and user prompt

        Returns:
            Raw completion text

        Raises:
            Exception: Whatever the provider raises (quota, timeout, blocked output)
        """
        model = self._model_for(context)
        response = model.generate_content(
            context.user_prompt,
            request_options={"timeout": self.timeout_seconds}
        )
        return response.text

    def _model_for(self, context: PromptContext):
        key = (context.model_name, context.system_instruction)
        if key not in self._models:
            self._models[key] = genai.GenerativeModel(
                model_name=context.model_name,
                generation_config={
                    "temperature": self.temperature,
                    "max_output_tokens": self.max_output_tokens
                },
                system_instruction=context.system_instruction
            )
            logger.debug(f"Created GenerativeModel for {context.model_name}")
        return self._models[key]
