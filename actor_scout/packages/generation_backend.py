"""
OpenAI-compatible generation backend (OpenRouter through the Apify proxy by default).
"""

import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI, OpenAIError

from actor_scout.packages.errors import GenerationBackendError
from actor_scout.packages.interfaces import GenerationBackend

logger = logging.getLogger(__name__)


def create_openai_client(base_url: str, apify_token: str, api_key: Optional[str] = None) -> AsyncOpenAI:
    """Create an async OpenAI client.

    Without an explicit API key the Apify token is sent as the bearer token,
    which is what the Apify OpenRouter proxy expects.
    """
    if api_key:
        return AsyncOpenAI(base_url=base_url, api_key=api_key)
    return AsyncOpenAI(
        base_url=base_url,
        api_key="apify",
        default_headers={"Authorization": f"Bearer {apify_token}"},
    )


class OpenAIGenerationBackend(GenerationBackend):
    """Single-message chat completions against one model."""

    def __init__(self, openai_client: AsyncOpenAI, model: str, temperature: Optional[float] = None):
        """Initialize generation backend."""
        self.client = openai_client
        self.model = model
        self.temperature = temperature
        logger.info(f"Initialized generation backend with model: {model}")

    async def complete(self, prompt: str) -> str:
        """Return the completion text for a prompt."""
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.temperature is not None:
            request["temperature"] = self.temperature

        try:
            response = await self.client.chat.completions.create(**request)
        except OpenAIError as e:
            logger.error(f"Completion call to {self.model} failed: {e}")
            raise GenerationBackendError(str(e)) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
