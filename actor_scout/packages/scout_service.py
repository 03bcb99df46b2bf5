"""Orchestrate candidate discovery, evaluation, ranking and execution."""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from actor_scout.packages.errors import EvaluationFailure, SourceUnavailable
from actor_scout.packages.evaluator import CandidateEvaluator
from actor_scout.packages.execution_controller import ExecutionController
from actor_scout.packages.interfaces import (
    CandidateRunner,
    CandidateSource,
    DetailEnricher,
    SearchTermExtractor,
)
from actor_scout.packages.models import Candidate, CandidateDetails, CandidateScore, FinalRecord
from actor_scout.packages.ranker import ScoredCandidate, rank
from actor_scout.packages.result_aggregator import merge, sort_records

logger = logging.getLogger(__name__)

DEFAULT_MAX_ACTORS = 3
# Search wider than needed, then score a couple more than will be executed
SEARCH_LIMIT_FACTOR = 2
EXTRA_EVALUATED_CANDIDATES = 2


class ActorScoutService:
    """Find, score and test-run candidates for a user request."""

    def __init__(
        self,
        search_term_extractor: SearchTermExtractor,
        candidate_source: CandidateSource,
        detail_enricher: DetailEnricher,
        candidate_runner: CandidateRunner,
        evaluator: CandidateEvaluator,
        execution_controller: ExecutionController
    ):
        """Initialize actor scout service."""
        self.search_term_extractor = search_term_extractor
        self.candidate_source = candidate_source
        self.detail_enricher = detail_enricher
        self.candidate_runner = candidate_runner
        self.evaluator = evaluator
        self.execution_controller = execution_controller

    async def scout(
        self,
        user_intent: str,
        max_actors: int = DEFAULT_MAX_ACTORS,
        skip_evaluation: bool = False
    ) -> List[FinalRecord]:
        """Return final records for the best candidates, best first."""
        if not user_intent or not user_intent.strip():
            raise ValueError("Query is required")
        if max_actors < 1:
            raise ValueError(f"max_actors must be at least 1, got {max_actors}")

        logger.info(f"Starting Actor Scout for query: '{user_intent}' (max {max_actors} actors)")

        logger.info("Step 1: Analyzing query...")
        search_terms = await self.search_term_extractor.extract(user_intent)
        logger.info(f"Search terms extracted: {search_terms}")

        logger.info("Step 2: Searching candidates...")
        try:
            raw_candidates = await self.candidate_source.search(
                search_terms, max_actors * SEARCH_LIMIT_FACTOR)
        except SourceUnavailable as e:
            logger.error(f"Candidate source unavailable, continuing with no candidates: {e}")
            raw_candidates = []
        logger.info(f"Found {len(raw_candidates)} candidates")

        if not raw_candidates:
            return []

        logger.info("Step 3: Fetching candidate details...")
        if skip_evaluation:
            candidates = await self._assemble_candidates(raw_candidates[:max_actors])
            selected: List[Tuple[Candidate, Optional[CandidateScore]]] = [
                (candidate, None) for candidate in candidates]
        else:
            candidates = await self._assemble_candidates(
                raw_candidates[:max_actors + EXTRA_EVALUATED_CANDIDATES])

            logger.info("Step 4: Evaluating candidates...")
            scored = await self._evaluate_all(candidates, user_intent)
            selected = list(rank(scored, max_actors))

        logger.info("Step 5: Running selected candidates...")
        outcomes = await self.execution_controller.execute_all(
            [candidate for candidate, _ in selected], user_intent)

        records = [merge(candidate, score, outcome)
                   for (candidate, score), outcome in zip(selected, outcomes)]
        return sort_records(records)

    async def _assemble_candidates(self, raw_candidates: Sequence[Candidate]) -> List[Candidate]:
        """Attach details and declared schemas; each candidate is read-only afterwards."""
        return list(await asyncio.gather(
            *(self._assemble_candidate(candidate) for candidate in raw_candidates)))

    async def _assemble_candidate(self, candidate: Candidate) -> Candidate:
        try:
            details = await self.detail_enricher.fetch(candidate)
        except Exception as e:
            logger.warning(f"Detail fetch failed for {candidate.id}, continuing without: {e}")
            details = CandidateDetails()

        declared_schema = await self.candidate_runner.get_input_schema(candidate.id)

        return candidate.model_copy(update={
            "detail_text": details.detail_text,
            "pricing_hint": details.pricing_hint,
            "declared_schema": declared_schema,
        })

    async def _evaluate_all(self, candidates: Sequence[Candidate], user_intent: str) -> List[ScoredCandidate]:
        """Score candidates one at a time; failed evaluations are dropped."""
        scored: List[ScoredCandidate] = []
        for candidate in candidates:
            try:
                score = await self.evaluator.evaluate(candidate, user_intent)
            except EvaluationFailure as e:
                logger.warning(str(e))
                continue
            scored.append((candidate, score))

        logger.info(f"Evaluated {len(scored)}/{len(candidates)} candidates")
        return scored
