"""
Core scout pipeline: rubric evaluation, ranking, input synthesis and the
bounded-attempt execution loop.
"""

from .errors import (
    ActorScoutError,
    EvaluationFailure,
    GenerationBackendError,
    InvocationFailure,
    ResponseParseError,
    SourceUnavailable,
    SynthesisFailure,
    SynthesisParseFailure,
)
from .evaluator import CandidateEvaluator
from .execution_controller import ExecutionController, classify_run_status
from .input_synthesizer import InputSynthesizer
from .models import (
    MAX_ATTEMPTS,
    AttemptStatus,
    Candidate,
    CandidateScore,
    ExecutionAttempt,
    ExecutionOutcome,
    FinalRecord,
    LoopState,
)
from .ranker import rank
from .result_aggregator import merge, sort_records
from .scoring import CRITERION_WEIGHTS, weighted_score
from .scout_service import ActorScoutService

__all__ = [
    "ActorScoutError",
    "EvaluationFailure",
    "GenerationBackendError",
    "InvocationFailure",
    "ResponseParseError",
    "SourceUnavailable",
    "SynthesisFailure",
    "SynthesisParseFailure",
    "CandidateEvaluator",
    "ExecutionController",
    "classify_run_status",
    "InputSynthesizer",
    "MAX_ATTEMPTS",
    "AttemptStatus",
    "Candidate",
    "CandidateScore",
    "ExecutionAttempt",
    "ExecutionOutcome",
    "FinalRecord",
    "LoopState",
    "rank",
    "merge",
    "sort_records",
    "CRITERION_WEIGHTS",
    "weighted_score",
    "ActorScoutService",
]
