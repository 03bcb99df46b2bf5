"""
Write and summarize final records.
"""

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from actor_scout.packages.models import FinalRecord

logger = logging.getLogger(__name__)


class JSONResultWriter:
    """Write results to formatted JSON file."""

    def write_results(
        self,
        query: str,
        records: Sequence[FinalRecord],
        output_path: str,
        duration_seconds: Optional[float] = None,
        model: Optional[str] = None
    ):
        """Write results to a formatted JSON file."""
        logger.info(f"Writing results to {output_path}")

        output_data = {
            "query": query,
            "results": [record.model_dump(mode="json") for record in records],
            "metadata": {
                "evaluated_count": sum(1 for record in records if record.score is not None),
                "succeeded_count": sum(1 for record in records if record.execution.succeeded),
                "duration_seconds": round(duration_seconds, 1) if duration_seconds is not None else None,
                "model": model,
                "generated_at": datetime.now(timezone.utc).isoformat(),
            },
        }

        # Write to file (one line per top-level key)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write('{\n')
            keys = list(output_data.keys())
            for i, key in enumerate(keys):
                f.write(f'  "{key}": {json.dumps(output_data[key], default=str)}')
                if i < len(keys) - 1:
                    f.write(',\n')
                else:
                    f.write('\n')
            f.write('}\n')

        logger.info(f"Results written to {output_path}")


def _score_bar(score: int) -> str:
    return "#" * score + "." * (10 - score)


def log_summary(query: str, records: List[FinalRecord]):
    """Log query, ranked candidates with their criterion scores and run results."""
    logger.info("=" * 80)
    logger.info("ACTOR SCOUT RESULTS")
    logger.info("=" * 80)
    logger.info(f"Query: {query}")

    if not records:
        logger.info("No candidates found.")
        logger.info("=" * 80)
        return

    for record in records:
        candidate = record.candidate
        execution = record.execution
        overall = f"{record.overall_score}/10" if record.score is not None else "not scored"
        logger.info("-" * 80)
        logger.info(f"#{record.rank}  {candidate.display_name} ({candidate.id})  Score: {overall}")
        logger.info(f"    by {candidate.owner} | {candidate.url or 'N/A'}")

        if record.score is not None:
            for criterion, value in record.score.criterion_scores.items():
                logger.info(f"    {criterion:<18} {_score_bar(value)} {value}/10")
            if record.score.recommendation:
                logger.info(f"    {record.score.recommendation}")

        run_state = "succeeded" if execution.succeeded else f"failed ({execution.terminal_state.value})"
        logger.info(f"    Test run: {run_state} after {len(execution.attempts)} attempt(s)")
        for attempt in execution.attempts:
            if attempt.reason:
                logger.info(f"      attempt {attempt.attempt_number}: {attempt.reason[:120]}")
        if execution.error:
            logger.info(f"      {execution.error}")

    logger.info("=" * 80)
