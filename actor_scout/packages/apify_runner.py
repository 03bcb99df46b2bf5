"""
Run Apify Actors and read their output.
"""

import logging
from typing import Any, Dict, List, Optional

from apify_client import ApifyClientAsync

from actor_scout.packages.errors import InvocationFailure
from actor_scout.packages.interfaces import CandidateRunner
from actor_scout.packages.models import RunResult

logger = logging.getLogger(__name__)


class ApifyCandidateRunner(CandidateRunner):
    """Candidate runner backed by the Apify API."""

    def __init__(self, apify_client: ApifyClientAsync):
        """Initialize Apify runner."""
        self.client = apify_client

    async def get_input_schema(self, candidate_id: str) -> Optional[Dict[str, Any]]:
        """Read the input schema from the Actor's default build definition."""
        try:
            build_client = await self.client.actor(candidate_id).default_build()
            build = await build_client.get()
        except Exception as e:
            logger.warning(f"[{candidate_id}] Could not load default build: {e}")
            return None

        if not build:
            return None
        actor_definition = build.get("actorDefinition") or {}
        return actor_definition.get("input") or None

    async def invoke(
        self,
        candidate_id: str,
        run_input: Dict[str, Any],
        timeout_seconds: int,
        memory_mbytes: int
    ) -> RunResult:
        """Start the Actor and wait up to the timeout for it to finish."""
        try:
            run = await self.client.actor(candidate_id).call(
                run_input=run_input,
                timeout_secs=timeout_seconds,
                memory_mbytes=memory_mbytes,
                wait_secs=timeout_seconds,
            )
        except Exception as e:
            raise InvocationFailure(str(e) or type(e).__name__) from e

        if run is None:
            raise InvocationFailure(f"Run of {candidate_id} could not be started")

        stats = run.get("stats") or {}
        duration_millis = stats.get("durationMillis")
        return RunResult(
            status=run.get("status") or "UNKNOWN",
            run_id=run.get("id"),
            duration_seconds=duration_millis / 1000 if duration_millis else None,
            output_location=run.get("defaultDatasetId"),
        )

    async def list_output_sample(self, output_location: str, limit: int) -> List[Any]:
        """List the first items of the run's default dataset."""
        try:
            page = await self.client.dataset(output_location).list_items(limit=limit)
        except Exception as e:
            raise InvocationFailure(f"Could not list dataset {output_location}: {e}") from e
        return list(page.items)[:limit]
