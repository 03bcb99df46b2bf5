"""Rank scored candidates."""

import logging
from typing import List, Sequence, Tuple

from actor_scout.packages.models import Candidate, CandidateScore

logger = logging.getLogger(__name__)

ScoredCandidate = Tuple[Candidate, CandidateScore]


def rank(scored_candidates: Sequence[ScoredCandidate], top_k: int) -> List[ScoredCandidate]:
    """Sort by overall score descending and keep the top K.

    sorted() is stable, so tied candidates keep their evaluation order.
    """
    ranked = sorted(scored_candidates, key=lambda item: item[1].overall_score, reverse=True)
    logger.info(f"Ranked {len(ranked)} candidates, keeping top {top_k}")
    return ranked[:top_k]
