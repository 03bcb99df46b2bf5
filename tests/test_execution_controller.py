import asyncio

import pytest

from actor_scout.packages.errors import GenerationBackendError, InvocationFailure
from actor_scout.packages.execution_controller import (
    NO_SCHEMA_REASON,
    TIMEOUT_REASON,
    ExecutionController,
    classify_run_status,
)
from actor_scout.packages.input_synthesizer import InputSynthesizer
from actor_scout.packages.models import (
    MAX_ATTEMPTS,
    OUTPUT_SAMPLE_LIMIT,
    AttemptStatus,
    LoopState,
    RunResult,
)
from conftest import (
    FakeGenerationBackend,
    FakeRunner,
    PromptRoutedBackend,
    failed,
    make_candidate,
    succeeded,
)


def make_controller(backend, runner, **kwargs) -> ExecutionController:
    return ExecutionController(runner=runner, input_synthesizer=InputSynthesizer(backend), **kwargs)


def assert_attempt_invariants(outcome):
    assert len(outcome.attempts) <= MAX_ATTEMPTS
    assert [a.attempt_number for a in outcome.attempts] == list(range(1, len(outcome.attempts) + 1))
    for attempt in outcome.attempts[:-1]:
        assert not attempt.is_final


@pytest.mark.parametrize("status, expected", [
    ("SUCCEEDED", LoopState.SUCCEEDED),
    ("TIMED-OUT", LoopState.NON_RETRYABLE),
    ("TIMING-OUT", LoopState.NON_RETRYABLE),
    ("RUNNING", LoopState.NON_RETRYABLE),
    ("FAILED", LoopState.RETRYABLE),
    ("ABORTED", LoopState.RETRYABLE),
    ("", LoopState.RETRYABLE),
])
def test_classify_run_status(status, expected):
    assert classify_run_status(status) == expected


@pytest.mark.parametrize("kwargs", [
    {"max_attempts": 0},
    {"max_attempts": MAX_ATTEMPTS + 1},
    {"sample_limit": -1},
    {"sample_limit": OUTPUT_SAMPLE_LIMIT + 1},
])
def test_limits_beyond_model_bounds_are_rejected(kwargs):
    with pytest.raises(ValueError):
        make_controller(FakeGenerationBackend(), FakeRunner(), **kwargs)


@pytest.mark.asyncio
async def test_smaller_attempt_budget_is_honored(candidate):
    backend = FakeGenerationBackend(default='{"startUrls": []}')
    runner = FakeRunner(results={candidate.id: [failed("FAILED") for _ in range(5)]})

    outcome = await make_controller(backend, runner, max_attempts=2).execute(candidate, "scrape")

    assert outcome.terminal_state == LoopState.EXHAUSTED_ATTEMPTS
    assert len(outcome.attempts) == 2


@pytest.mark.asyncio
async def test_malformed_then_invocation_error_then_success(candidate):
    backend = FakeGenerationBackend([
        "sorry, I cannot produce JSON",
        '{"startUrls": [{"url": "https://a.example"}]}',
        '{"startUrls": [{"url": "https://b.example"}], "maxItems": 2}',
    ])
    runner = FakeRunner(results={candidate.id: [
        InvocationFailure("Input is not valid: Field input.maxItems is required"),
        succeeded(run_id="run-3", duration=42.0, dataset="ds-3"),
    ]})

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert outcome.succeeded is True
    assert outcome.terminal_state == LoopState.SUCCEEDED
    assert len(outcome.attempts) == 3
    assert [a.status for a in outcome.attempts] == [
        AttemptStatus.MALFORMED_OUTPUT,
        AttemptStatus.RUNTIME_FAILURE,
        AttemptStatus.SUCCESS,
    ]
    assert outcome.final_input == outcome.attempts[2].synthesized_input
    assert outcome.final_input == {"startUrls": [{"url": "https://b.example"}], "maxItems": 2}
    assert outcome.duration_seconds == 42.0
    assert outcome.run_id == "run-3"
    assert outcome.sample_output == [{"n": i} for i in range(5)]
    assert outcome.attempts[0].raw_text == "sorry, I cannot produce JSON"
    assert_attempt_invariants(outcome)

    # Each retry prompt carries the verbatim previous failure
    assert "PREVIOUS ATTEMPT" not in backend.prompts[0]
    assert "unparsable generation output: sorry, I cannot produce JSON" in backend.prompts[1]
    assert "Input is not valid: Field input.maxItems is required" in backend.prompts[2]


@pytest.mark.asyncio
async def test_timeout_halts_without_further_attempts(candidate):
    backend = FakeGenerationBackend(default='{"startUrls": []}')
    runner = FakeRunner(results={candidate.id: [failed("TIMED-OUT", run_id="run-slow")]})

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert outcome.succeeded is False
    assert outcome.terminal_state == LoopState.NON_RETRYABLE
    assert len(outcome.attempts) == 1
    assert outcome.attempts[0].status == AttemptStatus.NON_RETRYABLE_FAILURE
    assert outcome.attempts[0].reason == TIMEOUT_REASON
    assert outcome.run_status == "TIMED-OUT"
    assert len(runner.invocations) == 1
    assert len(backend.prompts) == 1


@pytest.mark.asyncio
async def test_timeout_after_retryable_failures_stops_immediately(candidate):
    backend = FakeGenerationBackend(default='{"startUrls": []}')
    runner = FakeRunner(results={candidate.id: [failed("FAILED"), failed("TIMING-OUT")]})

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert len(outcome.attempts) == 2
    assert outcome.attempts[-1].is_final
    assert outcome.terminal_state == LoopState.NON_RETRYABLE
    assert_attempt_invariants(outcome)


@pytest.mark.asyncio
async def test_five_retryable_failures_exhaust_the_budget(candidate):
    backend = FakeGenerationBackend(default='{"startUrls": []}')
    runner = FakeRunner(results={candidate.id: [failed("FAILED") for _ in range(10)]})

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert outcome.succeeded is False
    assert outcome.terminal_state == LoopState.EXHAUSTED_ATTEMPTS
    assert len(outcome.attempts) == 5
    assert len(runner.invocations) == 5
    assert all(a.reason == "Run completed with status: FAILED" for a in outcome.attempts)
    assert outcome.final_input is None
    assert_attempt_invariants(outcome)


@pytest.mark.asyncio
async def test_parse_failures_consume_attempt_slots(candidate):
    backend = FakeGenerationBackend(default="not json")
    runner = FakeRunner()

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert outcome.terminal_state == LoopState.EXHAUSTED_ATTEMPTS
    assert len(outcome.attempts) == MAX_ATTEMPTS
    assert all(a.status == AttemptStatus.MALFORMED_OUTPUT for a in outcome.attempts)
    assert runner.invocations == []


@pytest.mark.asyncio
async def test_backend_errors_are_retryable(candidate):
    backend = FakeGenerationBackend([GenerationBackendError("502 Bad Gateway"), '{"startUrls": []}'])
    runner = FakeRunner()

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert outcome.succeeded is True
    assert outcome.attempts[0].status == AttemptStatus.RUNTIME_FAILURE
    assert "502 Bad Gateway" in outcome.attempts[0].reason


@pytest.mark.asyncio
async def test_success_on_first_attempt_has_single_success_attempt(candidate):
    backend = FakeGenerationBackend(['{"startUrls": []}'])
    runner = FakeRunner()

    outcome = await make_controller(backend, runner, timeout_seconds=60, memory_mbytes=2048).execute(
        candidate, "scrape")

    assert [a.status for a in outcome.attempts] == [AttemptStatus.SUCCESS]
    assert runner.invocations == [(candidate.id, {"startUrls": []}, 60, 2048)]


@pytest.mark.asyncio
async def test_output_sample_is_bounded(candidate):
    backend = FakeGenerationBackend(['{}'])
    runner = FakeRunner(items=[{"i": i} for i in range(50)])

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert len(outcome.sample_output) == 5


@pytest.mark.asyncio
async def test_output_listing_failure_keeps_success(candidate):
    backend = FakeGenerationBackend(['{}'])
    runner = FakeRunner(list_error=InvocationFailure("dataset gone"))

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert outcome.succeeded is True
    assert outcome.sample_output == []


@pytest.mark.asyncio
async def test_success_without_output_location_has_no_sample(candidate):
    backend = FakeGenerationBackend(['{}'])
    runner = FakeRunner(results={candidate.id: [succeeded(dataset=None)]})

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert outcome.succeeded is True
    assert outcome.sample_output is None


@pytest.mark.asyncio
async def test_candidate_without_schema_is_skipped():
    candidate = make_candidate(declared_schema=None)
    backend = FakeGenerationBackend()
    runner = FakeRunner()

    outcome = await make_controller(backend, runner).execute(candidate, "scrape")

    assert outcome.succeeded is False
    assert outcome.terminal_state == LoopState.SKIPPED
    assert outcome.error == NO_SCHEMA_REASON
    assert outcome.attempts == []
    assert backend.prompts == []


class ExplodingRunner(FakeRunner):
    async def invoke(self, candidate_id, run_input, timeout_seconds, memory_mbytes) -> RunResult:
        raise KeyError("stats")


@pytest.mark.asyncio
async def test_unexpected_error_becomes_failed_outcome(candidate):
    backend = FakeGenerationBackend(default='{}')

    outcome = await make_controller(backend, ExplodingRunner()).execute(candidate, "scrape")

    assert outcome.succeeded is False
    assert outcome.terminal_state == LoopState.ERRORED
    assert "stats" in outcome.error


class SlowRunner(FakeRunner):
    """Blocks one candidate's run until the other candidate's loop is finished."""

    def __init__(self, slow_id: str, release: asyncio.Event, **kwargs):
        super().__init__(**kwargs)
        self.slow_id = slow_id
        self.release = release

    async def invoke(self, candidate_id, run_input, timeout_seconds, memory_mbytes) -> RunResult:
        if candidate_id == self.slow_id:
            await self.release.wait()
        return await super().invoke(candidate_id, run_input, timeout_seconds, memory_mbytes)


@pytest.mark.asyncio
async def test_loops_run_concurrently_with_independent_state():
    slow = make_candidate("acme/slow-scraper")
    fast = make_candidate("acme/fast-scraper")
    backend = PromptRoutedBackend({
        "Slow Scraper": '{"who": "slow"}',
        "Fast Scraper": '{"who": "fast"}',
    })
    release = asyncio.Event()
    runner = SlowRunner(
        slow.id,
        release,
        results={fast.id: [failed("FAILED"), failed("FAILED"), succeeded(run_id="fast-ok")]},
    )
    controller = make_controller(backend, runner)

    async def release_when_fast_is_done():
        while sum(1 for call in runner.invocations if call[0] == fast.id) < 3:
            await asyncio.sleep(0)
        release.set()

    outcomes, _ = await asyncio.wait_for(
        asyncio.gather(controller.execute_all([slow, fast], "scrape"), release_when_fast_is_done()),
        timeout=5,
    )

    slow_outcome, fast_outcome = outcomes
    assert slow_outcome.candidate_id == slow.id
    assert len(slow_outcome.attempts) == 1
    assert slow_outcome.final_input == {"who": "slow"}
    assert fast_outcome.candidate_id == fast.id
    assert len(fast_outcome.attempts) == 3
    assert fast_outcome.final_input == {"who": "fast"}
    # Feedback from the fast loop never leaks into the slow loop's prompts
    slow_prompts = [p for p in backend.prompts if "Slow Scraper" in p]
    assert all("PREVIOUS ATTEMPT" not in p for p in slow_prompts)
