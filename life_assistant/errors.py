"""
Error Taxonomy

Only one of these ever reaches a user as a hard failure: ExecutionError,
reported inside ExecutionResult.Failed. The rest are turned into a
clarification question, a polite rejection, or the "insufficient data"
branch of the insight engine.
"""

from typing import Optional


class LifeAssistantError(Exception):
    """Base exception for the insight and command core."""
    pass


class SlotValidationError(LifeAssistantError):
    """A required slot could not be coerced to its target type."""

    def __init__(self, slot: str, message: str):
        self.slot = slot
        self.message = message
        super().__init__(f"{slot}: {message}")


class AmbiguityError(SlotValidationError):
    """A slot value matches more than one valid interpretation equally well."""

    def __init__(self, slot: str, message: str, candidates: list[str]):
        self.candidates = candidates
        super().__init__(slot, message)


class UnsupportedIntentError(LifeAssistantError):
    """The classified intent is UNKNOWN or has no executor mapping."""

    def __init__(self, intent: str, message: Optional[str] = None):
        self.intent = intent
        super().__init__(message or f"Unsupported intent: {intent}")


class ExecutionError(LifeAssistantError):
    """The single domain call behind a command failed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class DataUnavailableError(LifeAssistantError):
    """
    A window holds no records.

    Not an error condition for callers: the insight engine handles it
    as the "insufficient data" analysis and never lets it escape.
    """

    def __init__(self, module: str):
        self.module = module
        super().__init__(f"No records available for {module}")
