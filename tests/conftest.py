import json
from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

from actor_scout.packages.errors import GenerationBackendError
from actor_scout.packages.interfaces import (
    CandidateRunner,
    CandidateSource,
    DetailEnricher,
    GenerationBackend,
    SearchTermExtractor,
)
from actor_scout.packages.models import Candidate, CandidateDetails, PopularitySignals, RunResult
from actor_scout.packages.scoring import CRITERIA

SIMPLE_SCHEMA = {
    "title": "Input",
    "type": "object",
    "properties": {
        "startUrls": {"type": "array", "editor": "requestListSources"},
        "maxItems": {"type": "integer", "minimum": 1},
    },
    "required": ["startUrls"],
}


def make_candidate(candidate_id: str = "apify/web-scraper", **overrides) -> Candidate:
    owner, _, name = candidate_id.partition("/")
    fields: Dict[str, Any] = {
        "id": candidate_id,
        "display_name": name.replace("-", " ").title(),
        "owner": owner,
        "description": f"Scrapes things with {name}",
        "url": f"https://apify.com/{candidate_id}",
        "popularity": PopularitySignals(usage_count=1200, run_count=50000),
        "declared_schema": SIMPLE_SCHEMA,
    }
    fields.update(overrides)
    return Candidate(**fields)


def evaluation_response(score: int = 7, **criterion_overrides) -> str:
    scores = {criterion: score for criterion in CRITERIA}
    scores.update(criterion_overrides)
    return json.dumps({
        "scores": scores,
        "strengths": ["Well documented"],
        "weaknesses": ["Pricey at scale"],
        "summary": "Solid scraper.",
        "recommendation": "Try it.",
    })


class FakeGenerationBackend(GenerationBackend):
    """Returns queued responses in order; queued exceptions are raised."""

    def __init__(self, responses: Sequence[Union[str, Exception]] = (), default: Optional[str] = None):
        self.responses = list(responses)
        self.default = default
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.responses:
            response = self.responses.pop(0)
        elif self.default is not None:
            response = self.default
        else:
            raise GenerationBackendError("no response queued")
        if isinstance(response, Exception):
            raise response
        return response


class PromptRoutedBackend(GenerationBackend):
    """Picks the response by looking for a marker (e.g. the candidate name) in the prompt."""

    def __init__(self, routes: Dict[str, Union[str, Exception]], default: str = "{}"):
        self.routes = routes
        self.default = default
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for marker, response in self.routes.items():
            if marker in prompt:
                if isinstance(response, Exception):
                    raise response
                return response
        return self.default


class FakeRunner(CandidateRunner):
    """Per-candidate queues of run results; exceptions in a queue are raised."""

    def __init__(
        self,
        results: Optional[Dict[str, List[Union[RunResult, Exception]]]] = None,
        schemas: Optional[Dict[str, Optional[dict]]] = None,
        items: Optional[List[Any]] = None,
        list_error: Optional[Exception] = None
    ):
        self.results = {key: list(value) for key, value in (results or {}).items()}
        self.schemas = schemas or {}
        self.items = items if items is not None else [{"n": i} for i in range(20)]
        self.list_error = list_error
        self.invocations: List[tuple] = []

    async def get_input_schema(self, candidate_id: str) -> Optional[dict]:
        return self.schemas.get(candidate_id, SIMPLE_SCHEMA)

    async def invoke(self, candidate_id, run_input, timeout_seconds, memory_mbytes) -> RunResult:
        self.invocations.append((candidate_id, run_input, timeout_seconds, memory_mbytes))
        queue = self.results.get(candidate_id) or []
        if not queue:
            return RunResult(status="SUCCEEDED", run_id=f"run-{len(self.invocations)}",
                             duration_seconds=1.5, output_location="dataset-1")
        result = queue.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def list_output_sample(self, output_location: str, limit: int) -> List[Any]:
        if self.list_error is not None:
            raise self.list_error
        return self.items[:limit]


class FakeSource(CandidateSource):
    def __init__(self, candidates: Sequence[Candidate] = (), error: Optional[Exception] = None):
        self.candidates = list(candidates)
        self.error = error
        self.calls: List[tuple] = []

    async def search(self, terms, limit):
        self.calls.append((list(terms), limit))
        if self.error is not None:
            raise self.error
        return self.candidates[:limit]


class FakeEnricher(DetailEnricher):
    def __init__(self, fail_for: Sequence[str] = ()):
        self.fail_for = set(fail_for)
        self.fetched: List[str] = []

    async def fetch(self, candidate: Candidate) -> CandidateDetails:
        self.fetched.append(candidate.id)
        if candidate.id in self.fail_for:
            raise RuntimeError("page down")
        return CandidateDetails(detail_text=f"README of {candidate.id}", pricing_hint="$1 per 1,000 results")


class FakeExtractor(SearchTermExtractor):
    async def extract(self, user_intent: str) -> List[str]:
        return user_intent.split()[:3]


def succeeded(run_id: str = "run-ok", duration: float = 12.5, dataset: Optional[str] = "dataset-ok") -> RunResult:
    return RunResult(status="SUCCEEDED", run_id=run_id, duration_seconds=duration, output_location=dataset)


def failed(status: str = "FAILED", run_id: str = "run-failed") -> RunResult:
    return RunResult(status=status, run_id=run_id, duration_seconds=3.0)


@pytest.fixture
def candidate() -> Candidate:
    return make_candidate()
