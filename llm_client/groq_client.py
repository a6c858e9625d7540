"""Async Groq API client"""

import asyncio
import logging
import os
from typing import Optional

from .exceptions import RateLimitError, APIKeyError, LLMError, ModelError

logger = logging.getLogger(__name__)


class GroqClient:
    """Client for Groq API"""

    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize the Groq client

        Args:
            api_key: Groq API key. If not provided, reads from GROQ_API_KEY env var.
            model: Default model for requests

        Raises:
            APIKeyError: If no API key is provided or found in environment
        """
        self.api_key = api_key or os.getenv("GROQ_API_KEY")
        if not self.api_key:
            raise APIKeyError(
                "GROQ_API_KEY not found. Set it as an environment variable or pass it to the constructor."
            )
        self.model = model or self.DEFAULT_MODEL
        self._client = None

    def _get_client(self):
        """Lazy initialization of the async Groq client"""
        if self._client is None:
            from groq import AsyncGroq
            self._client = AsyncGroq(api_key=self.api_key)
        return self._client

    async def get_response(
        self,
        prompt: str,
        system_prompt: str,
        max_tokens: int = 200,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
        max_retries: int = 3,
    ) -> str:
        """Get a response from Groq API

        Args:
            prompt: User prompt
            system_prompt: System prompt
            max_tokens: Maximum tokens in response
            model: Model to use (defaults to the client's model)
            temperature: Sampling temperature (provider default if None)
            json_mode: Ask the model for a JSON object
            max_retries: Number of retries on rate limit

        Returns:
            Response text, empty if the model returned nothing

        Raises:
            RateLimitError: If rate limited after all retries
            APIKeyError: If the API key is rejected
            LLMError: For other API errors
        """
        client = self._get_client()
        options = {}
        if temperature is not None:
            options["temperature"] = temperature
        if json_mode:
            options["response_format"] = {"type": "json_object"}

        for attempt in range(max_retries):
            try:
                response = await client.chat.completions.create(
                    model=model or self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": prompt},
                    ],
                    max_tokens=max_tokens,
                    **options,
                )
                if not response.choices:
                    raise ModelError(f"Model {model or self.model} returned no choices")
                return response.choices[0].message.content or ""

            except LLMError:
                raise
            except Exception as e:
                error_msg = str(e).lower()

                # Check for rate limit errors
                if "rate" in error_msg or "limit" in error_msg or "429" in error_msg:
                    wait_time = 5 * (attempt + 1)
                    if attempt < max_retries - 1:
                        logger.warning(
                            "Groq rate limit hit, retrying in %ss (attempt %d/%d)",
                            wait_time, attempt + 1, max_retries,
                        )
                        await asyncio.sleep(wait_time)
                        continue
                    else:
                        raise RateLimitError(
                            f"API rate limit exceeded after {max_retries} retries",
                            retry_after=60,
                        ) from e

                # Check for auth errors
                if "auth" in error_msg or "api key" in error_msg or "401" in error_msg:
                    raise APIKeyError("Invalid API key") from e

                # Other errors
                raise LLMError(f"Groq API error: {e}") from e

        # Only reachable with max_retries < 1
        raise LLMError("Unexpected error in get_response")
