"""
Command line entry point: find, score and test-run Apify Actors for a request.
"""

import argparse
import asyncio
import logging
import time
from typing import List, Optional

from actor_scout.config import Config
from actor_scout.context import create_app_context
from actor_scout.packages.models import FinalRecord
from actor_scout.packages.result_writer import JSONResultWriter, log_summary
from actor_scout.server import load_local_env

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Find Apify Actors for a request, score them and test-run the best ones.")
    parser.add_argument("--query", required=True, help="What you want to do, in plain words")
    parser.add_argument(
        "--max-actors",
        type=int,
        help="Number of top ranked Actors to test-run (default: 3, env: MAX_ACTORS)"
    )
    parser.add_argument(
        "--skip-evaluation",
        action="store_true",
        help="Run the first search results without scoring them"
    )
    parser.add_argument("--output", help="Write results to this JSON file")
    parser.add_argument("--log-level", help="Logging level")
    return parser.parse_args(argv)


async def scout(config: Config, query: str, skip_evaluation: bool) -> List[FinalRecord]:
    app_context = create_app_context(config)
    try:
        return await app_context.scout_service.scout(
            query, config.MAX_ACTORS, skip_evaluation=skip_evaluation)
    finally:
        await app_context.aclose()


def run(argv: Optional[List[str]] = None):
    """Main coordinator function."""
    load_local_env()
    args = parse_args(argv)

    overrides = {}
    if args.max_actors is not None:
        overrides["MAX_ACTORS"] = args.max_actors
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    config = Config(**overrides)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    start_time = time.time()
    records = asyncio.run(scout(config, args.query, args.skip_evaluation))
    duration = time.time() - start_time

    if args.output:
        JSONResultWriter().write_results(
            args.query, records, args.output, duration_seconds=duration, model=config.EVALUATION_MODEL)

    log_summary(args.query, records)

    top_pick = records[0].candidate.display_name if records else None
    logger.info(f"Actor Scout complete in {duration:.1f}s! Top pick: {top_pick}")


if __name__ == "__main__":
    run()
