"""
Drive selected candidates through synthesize -> invoke -> classify cycles.

Each candidate gets its own loop with local state (attempt counter, last failure
reason, attempt history). Loops run concurrently and never share mutable state.

Loop states:
    IDLE -> SYNTHESIZING -> INVOKING -> SUCCEEDED | RETRYABLE | NON_RETRYABLE
    RETRYABLE -> SYNTHESIZING (next attempt) | EXHAUSTED_ATTEMPTS (budget spent)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from actor_scout.packages.errors import (
    InvocationFailure,
    SynthesisFailure,
    SynthesisParseFailure,
)
from actor_scout.packages.input_synthesizer import InputSynthesizer
from actor_scout.packages.interfaces import CandidateRunner
from actor_scout.packages.models import (
    MAX_ATTEMPTS,
    OUTPUT_SAMPLE_LIMIT,
    AttemptStatus,
    Candidate,
    ExecutionAttempt,
    ExecutionOutcome,
    LoopState,
    RunResult,
)

logger = logging.getLogger(__name__)

DEFAULT_RUN_TIMEOUT_SECS = 120
DEFAULT_RUN_MEMORY_MBYTES = 1024

SUCCEEDED_STATUS = "SUCCEEDED"
# A run still READY/RUNNING when the wait returns has outlived the timeout too.
TIMEOUT_STATUSES = frozenset({"TIMED-OUT", "TIMING-OUT", "READY", "RUNNING"})

TIMEOUT_REASON = "timed out"
NO_SCHEMA_REASON = "No input schema found"
RAW_TEXT_FEEDBACK_CHARS = 200


def classify_run_status(status: str) -> LoopState:
    """Map a terminal run status to the next loop state."""
    normalized = (status or "").upper()
    if normalized == SUCCEEDED_STATUS:
        return LoopState.SUCCEEDED
    if normalized in TIMEOUT_STATUSES:
        return LoopState.NON_RETRYABLE
    return LoopState.RETRYABLE


class ExecutionController:
    """Validate candidates by running them with synthesized input."""

    def __init__(
        self,
        runner: CandidateRunner,
        input_synthesizer: InputSynthesizer,
        max_attempts: int = MAX_ATTEMPTS,
        timeout_seconds: int = DEFAULT_RUN_TIMEOUT_SECS,
        memory_mbytes: int = DEFAULT_RUN_MEMORY_MBYTES,
        sample_limit: int = OUTPUT_SAMPLE_LIMIT
    ):
        """Initialize execution controller."""
        if not 1 <= max_attempts <= MAX_ATTEMPTS:
            raise ValueError(f"max_attempts must be between 1 and {MAX_ATTEMPTS}, got {max_attempts}")
        if not 0 <= sample_limit <= OUTPUT_SAMPLE_LIMIT:
            raise ValueError(
                f"sample_limit must be between 0 and {OUTPUT_SAMPLE_LIMIT}, got {sample_limit}")
        self.runner = runner
        self.input_synthesizer = input_synthesizer
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self.memory_mbytes = memory_mbytes
        self.sample_limit = sample_limit

    async def execute_all(self, candidates: Sequence[Candidate], user_intent: str) -> List[ExecutionOutcome]:
        """Run one independent loop per candidate and wait for all of them."""
        logger.info(f"Running {len(candidates)} candidates in parallel")
        outcomes = await asyncio.gather(
            *(self.execute(candidate, user_intent) for candidate in candidates))

        success_count = sum(1 for outcome in outcomes if outcome.succeeded)
        logger.info(f"Completed: {success_count}/{len(outcomes)} succeeded")
        return list(outcomes)

    async def execute(self, candidate: Candidate, user_intent: str) -> ExecutionOutcome:
        """Run the attempt loop for one candidate. Never raises."""
        outcome = ExecutionOutcome(candidate_id=candidate.id)
        logger.info(f"[{candidate.id}] Starting...")

        if not candidate.declared_schema:
            logger.info(f"[{candidate.id}] Skipping: no input schema")
            outcome.terminal_state = LoopState.SKIPPED
            outcome.error = NO_SCHEMA_REASON
            return outcome

        try:
            outcome.terminal_state = await self._run_attempts(candidate, user_intent, outcome)
        except Exception as e:
            logger.exception(f"[{candidate.id}] Fatal error: {e}")
            outcome.terminal_state = LoopState.ERRORED
            outcome.error = str(e) or type(e).__name__

        if not outcome.succeeded:
            logger.info(
                f"[{candidate.id}] Failed after {len(outcome.attempts)} attempts "
                f"({outcome.terminal_state.value})")
        return outcome

    async def _run_attempts(
        self,
        candidate: Candidate,
        user_intent: str,
        outcome: ExecutionOutcome
    ) -> LoopState:
        """Attempt loop. Returns the terminal state; appends every attempt to the outcome."""
        attempt_number = 0
        failure_reason: Optional[str] = None

        while True:
            attempt_number += 1
            if attempt_number > self.max_attempts:
                return LoopState.EXHAUSTED_ATTEMPTS
            logger.info(f"[{candidate.id}] Attempt {attempt_number}/{self.max_attempts}...")

            # Synthesizing
            try:
                run_input = await self.input_synthesizer.synthesize(
                    candidate,
                    candidate.declared_schema,
                    user_intent,
                    prior_failure_reason=failure_reason,
                    attempt_number=attempt_number,
                )
            except SynthesisParseFailure as e:
                failure_reason = (
                    f"unparsable generation output: {e.raw_text[:RAW_TEXT_FEEDBACK_CHARS]}")
                outcome.attempts.append(ExecutionAttempt(
                    attempt_number=attempt_number,
                    status=AttemptStatus.MALFORMED_OUTPUT,
                    reason=failure_reason,
                    raw_text=e.raw_text,
                ))
                logger.warning(f"[{candidate.id}] Parse error, retrying...")
                continue
            except SynthesisFailure as e:
                failure_reason = str(e)
                outcome.attempts.append(ExecutionAttempt(
                    attempt_number=attempt_number,
                    status=AttemptStatus.RUNTIME_FAILURE,
                    reason=failure_reason,
                ))
                logger.warning(f"[{candidate.id}] {failure_reason}, retrying...")
                continue

            # Invoking
            try:
                run = await self.runner.invoke(
                    candidate.id, run_input, self.timeout_seconds, self.memory_mbytes)
            except InvocationFailure as e:
                failure_reason = str(e)
                outcome.attempts.append(ExecutionAttempt(
                    attempt_number=attempt_number,
                    synthesized_input=run_input,
                    status=AttemptStatus.RUNTIME_FAILURE,
                    reason=failure_reason,
                ))
                logger.warning(f"[{candidate.id}] Error: {failure_reason[:60]}...")
                continue

            state = classify_run_status(run.status)
            if state == LoopState.SUCCEEDED:
                await self._record_success(candidate, outcome, attempt_number, run_input, run)
                return state

            if state == LoopState.NON_RETRYABLE:
                outcome.attempts.append(ExecutionAttempt(
                    attempt_number=attempt_number,
                    synthesized_input=run_input,
                    status=AttemptStatus.NON_RETRYABLE_FAILURE,
                    reason=TIMEOUT_REASON,
                    run_id=run.run_id,
                    run_status=run.status,
                ))
                outcome.run_id = run.run_id
                outcome.run_status = run.status
                logger.warning(f"[{candidate.id}] Run {run.status}, not retrying")
                return state

            failure_reason = f"Run completed with status: {run.status}"
            outcome.attempts.append(ExecutionAttempt(
                attempt_number=attempt_number,
                synthesized_input=run_input,
                status=AttemptStatus.RUNTIME_FAILURE,
                reason=failure_reason,
                run_id=run.run_id,
                run_status=run.status,
            ))
            logger.warning(f"[{candidate.id}] Status: {run.status}, retrying...")

    async def _record_success(
        self,
        candidate: Candidate,
        outcome: ExecutionOutcome,
        attempt_number: int,
        run_input: Dict[str, Any],
        run: RunResult
    ) -> None:
        sample: Optional[List[Any]] = None
        if run.output_location:
            try:
                items = await self.runner.list_output_sample(run.output_location, self.sample_limit)
                sample = list(items)[:self.sample_limit]
            except InvocationFailure as e:
                logger.warning(f"[{candidate.id}] Could not read output sample: {e}")
                sample = []

        outcome.attempts.append(ExecutionAttempt(
            attempt_number=attempt_number,
            synthesized_input=run_input,
            status=AttemptStatus.SUCCESS,
            run_id=run.run_id,
            run_status=run.status,
        ))
        outcome.succeeded = True
        outcome.final_input = run_input
        outcome.sample_output = sample
        outcome.duration_seconds = run.duration_seconds
        outcome.run_id = run.run_id
        outcome.run_status = run.status

        duration = f"{run.duration_seconds:.1f}s" if run.duration_seconds is not None else "n/a"
        logger.info(f"[{candidate.id}] Success! ({duration})")
