"""Generate run input for a candidate from its declared input schema."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from actor_scout.packages.errors import (
    GenerationBackendError,
    ResponseParseError,
    SynthesisFailure,
    SynthesisParseFailure,
)
from actor_scout.packages.interfaces import GenerationBackend
from actor_scout.packages.json_response import parse_json_object
from actor_scout.packages.models import MAX_ATTEMPTS, Candidate

logger = logging.getLogger(__name__)

# Load prompt templates from file
PROMPTS_DIR = Path(__file__).parent.parent / "prompts"
INPUT_PROMPT_TEMPLATE = (PROMPTS_DIR / "generate_input.md").read_text()
RETRY_FEEDBACK_TEMPLATE = (PROMPTS_DIR / "retry_feedback.md").read_text()


class InputSynthesizer:
    """Ask the LLM for an input instance, feeding back the previous failure verbatim."""

    def __init__(self, generation_backend: GenerationBackend, max_attempts: int = MAX_ATTEMPTS):
        """Initialize input synthesizer."""
        self.generation_backend = generation_backend
        self.max_attempts = max_attempts

    async def synthesize(
        self,
        candidate: Candidate,
        declared_schema: Dict[str, Any],
        user_intent: str,
        prior_failure_reason: Optional[str] = None,
        attempt_number: int = 1
    ) -> Dict[str, Any]:
        """Make one generation call and return the parsed input object.

        Raises SynthesisFailure when the call fails and SynthesisParseFailure when
        the response is not a JSON object.
        """
        prompt = self.build_prompt(
            candidate, declared_schema, user_intent, prior_failure_reason, attempt_number)

        try:
            text = await self.generation_backend.complete(prompt)
        except GenerationBackendError as e:
            raise SynthesisFailure(f"Input generation failed: {e}") from e

        try:
            return parse_json_object(text)
        except ResponseParseError as e:
            raise SynthesisParseFailure(str(e), raw_text=e.raw_text) from e

    def build_prompt(
        self,
        candidate: Candidate,
        declared_schema: Dict[str, Any],
        user_intent: str,
        prior_failure_reason: Optional[str],
        attempt_number: int
    ) -> str:
        """Build the generation prompt; from attempt 2 on it carries the prior failure."""
        prompt = INPUT_PROMPT_TEMPLATE.format(
            display_name=candidate.display_name,
            description=candidate.description or "No description",
            schema_json=json.dumps(declared_schema, indent=2),
            user_intent=user_intent,
        ).rstrip()

        if prior_failure_reason and attempt_number > 1:
            prompt += RETRY_FEEDBACK_TEMPLATE.format(
                previous_attempt=attempt_number - 1,
                max_attempts=self.max_attempts,
                failure_reason=prior_failure_reason,
            ).rstrip()

        return prompt + "\n\nJSON:"
