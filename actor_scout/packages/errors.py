"""
Exception types raised by Actor Scout components.

Every failure except a missing query or missing credentials is scoped to one
candidate or one attempt and is turned into data by the caller.
"""


class ActorScoutError(Exception):
    """Base class for all Actor Scout errors."""


class SourceUnavailable(ActorScoutError):
    """The candidate catalog could not be searched."""


class GenerationBackendError(ActorScoutError):
    """The completion call to the generation backend failed."""


class ResponseParseError(ActorScoutError):
    """A generation response could not be parsed as JSON after fence stripping."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


class EvaluationFailure(ActorScoutError):
    """A candidate could not be scored."""

    def __init__(self, candidate_id: str, message: str):
        super().__init__(f"Evaluation failed for {candidate_id}: {message}")
        self.candidate_id = candidate_id


class SynthesisFailure(ActorScoutError):
    """Input generation for a candidate failed."""


class SynthesisParseFailure(SynthesisFailure):
    """The generated input was not a JSON object."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


class InvocationFailure(ActorScoutError):
    """Starting or awaiting a candidate run failed at the transport layer."""
