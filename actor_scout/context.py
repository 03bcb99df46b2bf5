"""
Wire the scout pipeline from configuration.
"""

import logging
from dataclasses import dataclass

import httpx
from apify_client import ApifyClientAsync

from actor_scout.config import Config
from actor_scout.packages.apify_runner import ApifyCandidateRunner
from actor_scout.packages.apify_store import ApifyStoreCandidateSource
from actor_scout.packages.evaluator import CandidateEvaluator
from actor_scout.packages.execution_controller import ExecutionController
from actor_scout.packages.generation_backend import OpenAIGenerationBackend, create_openai_client
from actor_scout.packages.input_synthesizer import InputSynthesizer
from actor_scout.packages.scout_service import ActorScoutService
from actor_scout.packages.search_term_extractor import LLMSearchTermExtractor
from actor_scout.packages.store_page_enricher import StorePageDetailEnricher

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application context with typed dependencies."""

    scout_service: ActorScoutService
    http_client: httpx.AsyncClient

    async def aclose(self):
        await self.http_client.aclose()


def create_app_context(config: Config) -> AppContext:
    """Create all collaborators and the scout service."""
    apify_client = ApifyClientAsync(token=config.APIFY_TOKEN)
    openai_client = create_openai_client(
        base_url=config.LLM_BASE_URL,
        apify_token=config.APIFY_TOKEN,
        api_key=config.LLM_API_KEY,
    )
    http_client = httpx.AsyncClient(timeout=config.DETAIL_FETCH_TIMEOUT_SECS)

    evaluation_backend = OpenAIGenerationBackend(
        openai_client, config.EVALUATION_MODEL, temperature=config.EVALUATION_TEMPERATURE)
    search_terms_backend = OpenAIGenerationBackend(
        openai_client, config.SEARCH_TERMS_MODEL or config.EVALUATION_MODEL, temperature=0.0)
    synthesis_backend = OpenAIGenerationBackend(openai_client, config.SYNTHESIS_MODEL)

    runner = ApifyCandidateRunner(apify_client)
    execution_controller = ExecutionController(
        runner=runner,
        input_synthesizer=InputSynthesizer(synthesis_backend),
        timeout_seconds=config.RUN_TIMEOUT_SECS,
        memory_mbytes=config.RUN_MEMORY_MBYTES,
    )

    scout_service = ActorScoutService(
        search_term_extractor=LLMSearchTermExtractor(search_terms_backend),
        candidate_source=ApifyStoreCandidateSource(apify_client),
        detail_enricher=StorePageDetailEnricher(http_client),
        candidate_runner=runner,
        evaluator=CandidateEvaluator(evaluation_backend),
        execution_controller=execution_controller,
    )
    logger.info("Actor Scout pipeline created")

    return AppContext(scout_service=scout_service, http_client=http_client)
