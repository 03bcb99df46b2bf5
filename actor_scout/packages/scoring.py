"""
Fixed weighted rubric used to turn per-criterion scores into one overall score.
"""

from typing import Dict, Mapping

MIN_CRITERION_SCORE = 1
MAX_CRITERION_SCORE = 10

# Criterion name -> weight. Order is the order criteria are presented to the LLM.
CRITERION_WEIGHTS: Dict[str, float] = {
    "intent_match": 0.30,
    "documentation": 0.15,
    "pricing": 0.15,
    "reliability": 0.20,
    "maintenance": 0.10,
    "community_trust": 0.05,
    "input_simplicity": 0.05,
}

CRITERIA = tuple(CRITERION_WEIGHTS.keys())


def weighted_score(criterion_scores: Mapping[str, int],
                   weights: Mapping[str, float] = CRITERION_WEIGHTS) -> float:
    """Weighted sum of criterion scores, rounded half-up to one decimal."""
    missing = set(weights) - set(criterion_scores)
    if missing:
        raise ValueError(f"Missing criterion scores: {sorted(missing)}")

    # Weights are whole hundredths, so summing in integer hundredths keeps
    # the rounding exact.
    hundredths = sum(round(weight * 100) * criterion_scores[name]
                     for name, weight in weights.items())
    tenths = (hundredths + 5) // 10
    return tenths / 10


def clamp_criterion_score(value: int) -> int:
    """Clamp an integer criterion score into the 1-10 range."""
    return max(MIN_CRITERION_SCORE, min(MAX_CRITERION_SCORE, value))
