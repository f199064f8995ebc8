# classvoice/utils/ai.py
"""
AI utility for connecting with an OpenAI-compatible chat completions API
Used for summarizing the feedback of an ended lecture
"""

import logging
from typing import Dict, List, Optional

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    RateLimitError,
)

from classvoice.core.config import settings
from classvoice.core.exceptions import UpstreamError
from classvoice.utils.prompts import get_lecture_summary_system_message

logger = logging.getLogger(__name__)


class AIService:
    """Service to interact with the summarization model"""

    def __init__(self):
        self.api_key = settings.ai_api_key
        self.api_endpoint = settings.ai_api_endpoint
        self.model = settings.ai_model
        self._client: Optional[AsyncOpenAI] = None

        if not self.api_key:
            logger.warning("AI_API_KEY not configured. Summaries will be disabled.")

    @property
    def client(self) -> AsyncOpenAI:
        """Created on first use so an unset key only disables summaries"""
        if self._client is None:
            # One bounded attempt per call; the auto-summarize job is the retry loop
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=(
                    self.api_endpoint.replace("/chat/completions", "")
                    if self.api_endpoint
                    else None
                ),
                timeout=settings.ai_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def close(self):
        """Close the OpenAI client and release resources"""
        if self._client is not None:
            await self._client.close()
            self._client = None

    def is_configured(self) -> bool:
        """Check if AI service is properly configured"""
        return bool(self.api_key and self.model)

    async def _make_request(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> Dict:
        """
        Make a chat completion request

        Raises:
            UpstreamError: If the service is unconfigured or the request fails
        """
        if not self.is_configured():
            raise UpstreamError("AI service is not configured. Please check API key.")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except APITimeoutError:
            logger.error("AI API request timed out")
            raise UpstreamError("AI service request timed out")
        except RateLimitError:
            logger.error("AI API rate limit exceeded")
            raise UpstreamError("AI service rate limit exceeded")
        except AuthenticationError:
            logger.error("AI API rejected the API key")
            raise UpstreamError("AI service rejected the API key")
        except (APIConnectionError, APIStatusError) as e:
            logger.error(f"AI API request error: {e}")
            raise UpstreamError(f"Failed to connect to AI service: {e}")

        return response.model_dump()

    async def generate_completion(
        self,
        prompt: str,
        system_message: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate a text completion

        Args:
            prompt: The user prompt
            system_message: Optional system message to set context
            temperature: Controls randomness (0.0 to 2.0)
            max_tokens: Maximum tokens in response

        Returns:
            Generated text response
        """
        messages = []

        if system_message:
            messages.append({"role": "system", "content": system_message})

        messages.append({"role": "user", "content": prompt})

        response = await self._make_request(
            messages=messages, temperature=temperature, max_tokens=max_tokens
        )

        try:
            completion = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Failed to parse AI response: {e}")
            raise UpstreamError(f"Failed to parse AI response from {self.model}")

        return (completion or "").strip()

    async def summarize(self, text: str) -> str:
        """Summarize a rendered block of lecture posts"""
        return await self.generate_completion(
            prompt=text,
            system_message=get_lecture_summary_system_message(
                settings.ai_summary_language
            ),
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
        )


ai_service = AIService()


def get_summarizer() -> AIService:
    """FastAPI dependency; tests override it with a fake summarizer."""
    return ai_service
