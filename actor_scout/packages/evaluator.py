"""Score candidates against the user's intent with a fixed seven-criterion rubric."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from actor_scout.packages.errors import (
    EvaluationFailure,
    GenerationBackendError,
    ResponseParseError,
)
from actor_scout.packages.interfaces import GenerationBackend
from actor_scout.packages.json_response import parse_json_object
from actor_scout.packages.models import Candidate, CandidateScore
from actor_scout.packages.scoring import CRITERIA, clamp_criterion_score, weighted_score

logger = logging.getLogger(__name__)

# Load prompt template from file
EVALUATION_PROMPT_PATH = Path(__file__).parent.parent / "prompts" / "evaluate_candidate.md"
EVALUATION_PROMPT_TEMPLATE = EVALUATION_PROMPT_PATH.read_text()

DETAIL_EXCERPT_CHARS = 2500


class CandidateEvaluator:
    """Score a candidate with the LLM and combine criteria into one weighted score."""

    def __init__(self, generation_backend: GenerationBackend):
        """Initialize candidate evaluator."""
        self.generation_backend = generation_backend

    async def evaluate(self, candidate: Candidate, user_intent: str) -> CandidateScore:
        """Evaluate one candidate. Raises EvaluationFailure."""
        logger.info(f"Evaluating: {candidate.display_name}")

        prompt = self._build_evaluation_prompt(candidate, user_intent)

        try:
            content = await self.generation_backend.complete(prompt)
        except GenerationBackendError as e:
            raise EvaluationFailure(candidate.id, f"completion failed: {e}") from e

        try:
            parsed = parse_json_object(content)
        except ResponseParseError as e:
            raise EvaluationFailure(candidate.id, f"unparsable response: {e}") from e

        criterion_scores = self._parse_criterion_scores(candidate.id, parsed.get("scores"))
        overall_score = weighted_score(criterion_scores)

        score = CandidateScore(
            candidate_id=candidate.id,
            criterion_scores=criterion_scores,
            overall_score=overall_score,
            strengths=self._parse_string_list(parsed.get("strengths")),
            weaknesses=self._parse_string_list(parsed.get("weaknesses")),
            narrative=str(parsed.get("summary") or ""),
            recommendation=str(parsed.get("recommendation") or ""),
        )
        logger.info(f"Scored {candidate.display_name}: {score.overall_score}/10")
        return score

    def _build_evaluation_prompt(self, candidate: Candidate, user_intent: str) -> str:
        """Build prompt for rubric evaluation."""
        last_activity = candidate.popularity.last_activity_at
        return EVALUATION_PROMPT_TEMPLATE.format(
            user_intent=user_intent,
            display_name=candidate.display_name,
            owner=candidate.owner,
            description=candidate.description or "No description",
            url=candidate.url or "N/A",
            usage_count=candidate.popularity.usage_count,
            run_count=candidate.popularity.run_count,
            last_activity=last_activity.strftime('%Y-%m-%d') if last_activity else "Unknown",
            categories=", ".join(candidate.categories) or "None",
            pricing=candidate.pricing_hint or "Unknown",
            input_fields=self._describe_input_fields(candidate.declared_schema),
            deprecated=str(candidate.deprecated).lower(),
            detail_excerpt=candidate.detail_text[:DETAIL_EXCERPT_CHARS] or "No README available",
        )

    def _describe_input_fields(self, declared_schema: Optional[Dict[str, Any]]) -> str:
        if not declared_schema:
            return "Unknown"
        properties = declared_schema.get("properties") or {}
        required = declared_schema.get("required") or []
        return f"{len(properties)} fields ({len(required)} required)"

    def _parse_criterion_scores(self, candidate_id: str, raw_scores: Any) -> Dict[str, int]:
        """Validate the scores object. Integers outside 1-10 are clamped, anything else is rejected."""
        if not isinstance(raw_scores, dict):
            raise EvaluationFailure(candidate_id, "response has no 'scores' object")

        scores: Dict[str, int] = {}
        for criterion in CRITERIA:
            value = raw_scores.get(criterion)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise EvaluationFailure(
                    candidate_id, f"criterion '{criterion}' has non-numeric value {value!r}")
            if isinstance(value, float) and not value.is_integer():
                raise EvaluationFailure(
                    candidate_id, f"criterion '{criterion}' is not an integer: {value}")

            clamped = clamp_criterion_score(int(value))
            if clamped != value:
                logger.warning(
                    f"Clamped {criterion} for {candidate_id} from {value} to {clamped}")
            scores[criterion] = clamped
        return scores

    def _parse_string_list(self, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item]
