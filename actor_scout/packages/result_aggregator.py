"""Merge scores and execution outcomes into final records."""

import logging
from typing import List, Optional, Sequence

from actor_scout.packages.models import Candidate, CandidateScore, ExecutionOutcome, FinalRecord

logger = logging.getLogger(__name__)


def merge(candidate: Candidate, score: Optional[CandidateScore], outcome: ExecutionOutcome) -> FinalRecord:
    """Combine a candidate with its optional score and its execution outcome."""
    if outcome.candidate_id != candidate.id:
        raise ValueError(
            f"Outcome for {outcome.candidate_id} does not belong to candidate {candidate.id}")
    if score is not None and score.candidate_id != candidate.id:
        raise ValueError(
            f"Score for {score.candidate_id} does not belong to candidate {candidate.id}")
    return FinalRecord(candidate=candidate, score=score, execution=outcome)


def sort_records(records: Sequence[FinalRecord]) -> List[FinalRecord]:
    """Order by overall score descending, unscored last, ties in encounter order; assign ranks."""
    ordered = sorted(
        records,
        key=lambda record: (record.score is None,
                            -record.score.overall_score if record.score is not None else 0.0))
    ranked = [record.model_copy(update={"rank": rank}) for rank, record in enumerate(ordered, start=1)]
    logger.info(f"Aggregated {len(ranked)} final records")
    return ranked
