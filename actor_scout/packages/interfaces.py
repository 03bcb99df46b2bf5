"""
Abstract interfaces for the external collaborators used by the scout pipeline.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from actor_scout.packages.models import Candidate, CandidateDetails, RunResult

logger = logging.getLogger(__name__)


class GenerationBackend(ABC):
    """LLM completion endpoint shared by the evaluator and the input synthesizer."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the raw completion text for a prompt.

        Raises GenerationBackendError when the call itself fails.
        """
        pass


class SearchTermExtractor(ABC):
    """Turns a free-text user intent into catalog search keywords."""

    @abstractmethod
    async def extract(self, user_intent: str) -> List[str]:
        pass


class CandidateSource(ABC):
    """Catalog of invocable candidates."""

    @abstractmethod
    async def search(self, terms: Sequence[str], limit: int) -> List[Candidate]:
        """Return raw candidates for the search terms. Raises SourceUnavailable."""
        pass


class DetailEnricher(ABC):
    """Fetches unstructured descriptive text and a pricing hint for a candidate."""

    @abstractmethod
    async def fetch(self, candidate: Candidate) -> CandidateDetails:
        pass


class CandidateRunner(ABC):
    """Runs candidates and reads back their output."""

    @abstractmethod
    async def get_input_schema(self, candidate_id: str) -> Optional[Dict[str, Any]]:
        """Return the declared input schema, or None when the candidate declares none."""
        pass

    @abstractmethod
    async def invoke(
        self,
        candidate_id: str,
        run_input: Dict[str, Any],
        timeout_seconds: int,
        memory_mbytes: int
    ) -> RunResult:
        """Start a run and wait for it to finish. Raises InvocationFailure."""
        pass

    @abstractmethod
    async def list_output_sample(self, output_location: str, limit: int) -> List[Any]:
        """Return at most `limit` output items. Raises InvocationFailure."""
        pass
