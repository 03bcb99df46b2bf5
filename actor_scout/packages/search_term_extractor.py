"""
Extract catalog search keywords from a user request.
"""

import logging
import re
from pathlib import Path
from typing import List

from actor_scout.packages.errors import GenerationBackendError, ResponseParseError
from actor_scout.packages.interfaces import GenerationBackend, SearchTermExtractor
from actor_scout.packages.json_response import parse_json_response

logger = logging.getLogger(__name__)

# Load prompt template from file
PROMPT_TEMPLATE_PATH = Path(__file__).parent.parent / "prompts" / "extract_search_terms.md"
PROMPT_TEMPLATE = PROMPT_TEMPLATE_PATH.read_text()

MAX_TERMS = 4
MIN_FALLBACK_WORD_LENGTH = 4


def fallback_search_terms(user_intent: str) -> List[str]:
    """Use the first few words of the request longer than three characters."""
    words = [w for w in user_intent.lower().split() if len(w) >= MIN_FALLBACK_WORD_LENGTH]
    return words[:MAX_TERMS]


class LLMSearchTermExtractor(SearchTermExtractor):
    """Ask the LLM for 2-4 keywords, falling back to plain words from the request."""

    def __init__(self, generation_backend: GenerationBackend):
        """Initialize search term extractor."""
        self.generation_backend = generation_backend

    async def extract(self, user_intent: str) -> List[str]:
        """Extract search terms for a user request."""
        prompt = PROMPT_TEMPLATE.format(user_intent=user_intent)

        try:
            content = await self.generation_backend.complete(prompt)
            terms = parse_json_response(content)
        except (GenerationBackendError, ResponseParseError) as e:
            logger.warning(f"Search term extraction failed, using fallback: {e}")
            return fallback_search_terms(user_intent)

        if not isinstance(terms, list):
            logger.warning(f"Expected a JSON array of terms, got {type(terms).__name__}")
            return fallback_search_terms(user_intent)

        # Normalize multiple spaces to single space
        cleaned_terms = [re.sub(r'\s+', ' ', str(t)).strip() for t in terms if t]
        cleaned_terms = [t for t in cleaned_terms if t]
        if not cleaned_terms:
            return fallback_search_terms(user_intent)

        return cleaned_terms[:MAX_TERMS]
