"""
Enrich candidates with README text and a pricing hint scraped from their store page.
"""

import logging
import re

import httpx
from bs4 import BeautifulSoup

from actor_scout.packages.interfaces import DetailEnricher
from actor_scout.packages.models import Candidate, CandidateDetails

logger = logging.getLogger(__name__)

README_MAX_CHARS = 4000
README_MIN_CHARS = 100
DEFAULT_PRICING_HINT = "See pricing tab"
PRICING_PATTERN = re.compile(
    r"\$[\d.]+\s*(?:per|/)\s*\d*\s*(?:result|run|item|request|1[,\d]*)", re.IGNORECASE)

# Tried in order; the first one whose first match holds enough text wins
README_SELECTORS = [
    '[data-testid="actor-readme"]',
    '.actor-readme',
    'article',
    '.markdown-body',
]
NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]


def _element_text(element) -> str:
    return re.sub(r"\s+", " ", element.get_text()).strip()


def extract_details(html: str) -> CandidateDetails:
    """Extract README text and a pricing hint from a store page."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()

    readme = ""
    for selector in README_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = _element_text(element)
        if len(text) > README_MIN_CHARS:
            readme = text
            break

    page_text = _element_text(soup.body or soup)
    pricing_match = PRICING_PATTERN.search(page_text)

    return CandidateDetails(
        detail_text=readme[:README_MAX_CHARS],
        pricing_hint=pricing_match.group(0) if pricing_match else DEFAULT_PRICING_HINT,
    )


class StorePageDetailEnricher(DetailEnricher):
    """Detail enricher that scrapes the candidate's public store page."""

    def __init__(self, http_client: httpx.AsyncClient):
        """Initialize store page enricher."""
        self.http_client = http_client

    async def fetch(self, candidate: Candidate) -> CandidateDetails:
        """Fetch details for a candidate. Failures yield empty details."""
        if not candidate.url:
            return CandidateDetails()

        try:
            response = await self.http_client.get(candidate.url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch: {candidate.url} ({e})")
            return CandidateDetails()

        details = extract_details(response.text)
        logger.info(
            f"Fetched details for {candidate.id}: {len(details.detail_text)} chars, "
            f"pricing: {details.pricing_hint}")
        return details
