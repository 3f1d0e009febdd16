"""
Error taxonomy for the script → feedback → hive pipeline.

Direct operations (generate one script, submit one feedback) raise these to
the caller. The batch report swallows per-prospect failures, and
AggregationFailure is only ever logged.
"""


class HiveError(Exception):
    """Base class for all domain errors."""


class NotFound(HiveError):
    """A referenced prospect or script does not exist."""

    def __init__(self, kind, ref):
        self.kind = kind
        self.ref = ref
        super().__init__(f"{kind} '{ref}' not found")


class InvalidFeedback(HiveError):
    """Feedback value outside the recognized set. Nothing was written."""

    def __init__(self, value, allowed):
        self.value = value
        self.allowed = list(allowed)
        super().__init__(f"Invalid feedback '{value}' — expected one of {', '.join(self.allowed)}")


class GenerationError(HiveError):
    """The text-generation provider failed or returned unusable output."""


class AggregationFailure(HiveError):
    """The hive upsert failed after feedback was already committed."""
