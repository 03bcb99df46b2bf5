"""
Search the Apify Store for candidate Actors.
"""

import logging
from typing import Any, Dict, List, Sequence

from apify_client import ApifyClientAsync

from actor_scout.packages.errors import SourceUnavailable
from actor_scout.packages.interfaces import CandidateSource
from actor_scout.packages.models import Candidate, PopularitySignals

logger = logging.getLogger(__name__)

STORE_BASE_URL = "https://apify.com"
# Monthly rentals cannot be tried without a subscription
EXCLUDED_PRICING_MODELS = frozenset({"FLAT_PRICE_PER_MONTH"})


def candidate_from_store_item(item: Dict[str, Any]) -> Candidate:
    """Map an Apify Store list item to a Candidate."""
    username = item.get("username") or ""
    name = item.get("name") or ""
    stats = item.get("stats") or {}
    pricing_info = item.get("currentPricingInfo") or {}

    return Candidate(
        id=f"{username}/{name}",
        display_name=item.get("title") or name,
        owner=username,
        description=item.get("description") or "",
        url=f"{STORE_BASE_URL}/{username}/{name}",
        categories=list(item.get("categories") or []),
        popularity=PopularitySignals(
            usage_count=stats.get("totalUsers") or 0,
            run_count=stats.get("totalRuns") or 0,
            last_activity_at=stats.get("lastRunStartedAt"),
        ),
        pricing_model=pricing_info.get("pricingModel"),
        deprecated=bool(item.get("isDeprecated", False)),
    )


class ApifyStoreCandidateSource(CandidateSource):
    """Candidate source backed by the Apify Store search API."""

    def __init__(self, apify_client: ApifyClientAsync):
        """Initialize Apify Store candidate source."""
        self.client = apify_client

    async def search(self, terms: Sequence[str], limit: int) -> List[Candidate]:
        """Search the store by relevance and drop Actors that cannot be tried per run."""
        search_query = " ".join(terms)
        logger.info(f"Searching Apify Store for: '{search_query}' (limit {limit})")

        try:
            page = await self.client.store().list(search=search_query, limit=limit, sort_by="relevance")
        except Exception as e:
            logger.error(f"Store API error: {e}")
            raise SourceUnavailable(f"Store API error: {e}") from e

        candidates: List[Candidate] = []
        for item in page.items:
            candidate = candidate_from_store_item(item)
            if candidate.pricing_model in EXCLUDED_PRICING_MODELS:
                logger.debug(f"Skipping {candidate.id}: {candidate.pricing_model}")
                continue
            candidates.append(candidate)

        logger.info(f"Found {len(page.items)} actors, {len(candidates)} after filtering")
        return candidates
