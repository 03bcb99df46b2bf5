"""
Data models for candidates, scores, execution attempts and final records.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from actor_scout.packages.scoring import CRITERIA, MAX_CRITERION_SCORE, MIN_CRITERION_SCORE

MAX_ATTEMPTS = 5
OUTPUT_SAMPLE_LIMIT = 5


class PopularitySignals(BaseModel):
    """Usage statistics reported by the catalog."""
    model_config = ConfigDict(frozen=True)

    usage_count: int = Field(default=0, description="Total number of distinct users")
    run_count: int = Field(default=0, description="Total number of runs")
    last_activity_at: Optional[datetime] = Field(default=None, description="Start of the latest run")

    @field_serializer('last_activity_at', when_used='json')
    def serialize_last_activity_at(self, value: Optional[datetime]) -> Optional[str]:
        """Serialize datetime to ISO 8601 with timezone, assuming UTC for naive values."""
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()


class Candidate(BaseModel):
    """A third-party Actor considered for the user's task."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Actor identifier in the form username/name")
    display_name: str = Field(description="Human readable Actor title")
    owner: str = Field(description="Username of the Actor developer")
    description: str = Field(default="", description="Short catalog description")
    url: Optional[str] = Field(default=None, description="Store page URL")
    categories: List[str] = Field(default_factory=list)
    popularity: PopularitySignals = Field(default_factory=PopularitySignals)
    declared_schema: Optional[Dict[str, Any]] = Field(
        default=None, description="Input schema declared by the Actor's default build")
    detail_text: str = Field(default="", description="README text scraped from the store page")
    pricing_hint: Optional[str] = Field(default=None, description="Pricing extracted from the store page")
    pricing_model: Optional[str] = Field(default=None, description="Catalog pricing model")
    deprecated: bool = False


class CandidateDetails(BaseModel):
    """Partial update produced by a detail enricher."""
    detail_text: str = ""
    pricing_hint: Optional[str] = None


class CandidateScore(BaseModel):
    """Rubric evaluation of one candidate."""
    model_config = ConfigDict(frozen=True)

    candidate_id: str
    criterion_scores: Dict[str, int] = Field(description="Score 1-10 for each fixed criterion")
    overall_score: float = Field(ge=1.0, le=10.0, description="Weighted sum of criterion scores")
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    narrative: str = ""
    recommendation: str = ""

    @field_validator('criterion_scores')
    @classmethod
    def validate_criterion_scores(cls, value: Dict[str, int]) -> Dict[str, int]:
        if set(value) != set(CRITERIA):
            raise ValueError(f"criterion_scores must have exactly {list(CRITERIA)}, got {sorted(value)}")
        for name, score in value.items():
            if not MIN_CRITERION_SCORE <= score <= MAX_CRITERION_SCORE:
                raise ValueError(f"Criterion {name} out of range: {score}")
        return value


class AttemptStatus(str, Enum):
    SUCCESS = "success"
    RUNTIME_FAILURE = "runtime_failure"
    MALFORMED_OUTPUT = "malformed_output"
    NON_RETRYABLE_FAILURE = "non_retryable_failure"


class LoopState(str, Enum):
    """States of the per-candidate execution loop."""
    IDLE = "idle"
    SYNTHESIZING = "synthesizing"
    INVOKING = "invoking"
    RETRYABLE = "retryable"
    SUCCEEDED = "succeeded"
    NON_RETRYABLE = "non_retryable"
    EXHAUSTED_ATTEMPTS = "exhausted_attempts"
    SKIPPED = "skipped"
    ERRORED = "errored"


TERMINAL_STATES = frozenset({
    LoopState.SUCCEEDED,
    LoopState.NON_RETRYABLE,
    LoopState.EXHAUSTED_ATTEMPTS,
    LoopState.SKIPPED,
    LoopState.ERRORED,
})


class ExecutionAttempt(BaseModel):
    """One synthesize + invoke cycle."""
    model_config = ConfigDict(frozen=True)

    attempt_number: int = Field(ge=1, le=MAX_ATTEMPTS)
    synthesized_input: Optional[Dict[str, Any]] = None
    status: AttemptStatus
    reason: Optional[str] = Field(default=None, description="Failure reason fed back to the next attempt")
    raw_text: Optional[str] = Field(default=None, description="Unparsable generation output")
    run_id: Optional[str] = None
    run_status: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.status in (AttemptStatus.SUCCESS, AttemptStatus.NON_RETRYABLE_FAILURE)


class ExecutionOutcome(BaseModel):
    """Result of driving one candidate through the execution loop."""
    candidate_id: str
    attempts: List[ExecutionAttempt] = Field(default_factory=list)
    succeeded: bool = False
    terminal_state: LoopState = LoopState.IDLE
    final_input: Optional[Dict[str, Any]] = None
    sample_output: Optional[List[Any]] = Field(default=None, max_length=OUTPUT_SAMPLE_LIMIT)
    duration_seconds: Optional[float] = None
    run_id: Optional[str] = None
    run_status: Optional[str] = None
    error: Optional[str] = Field(default=None, description="Reason the loop never ran or aborted")


class RunResult(BaseModel):
    """Terminal state of one candidate run as reported by the runner."""
    status: str
    run_id: Optional[str] = None
    duration_seconds: Optional[float] = None
    output_location: Optional[str] = None


class FinalRecord(BaseModel):
    """Candidate merged with its optional score and its execution outcome."""
    model_config = ConfigDict(frozen=True)

    rank: int = 0
    candidate: Candidate
    score: Optional[CandidateScore] = None
    execution: ExecutionOutcome

    @property
    def overall_score(self) -> Optional[float]:
        return self.score.overall_score if self.score is not None else None
