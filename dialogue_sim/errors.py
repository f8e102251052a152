"""
Exception hierarchy for the dialogue simulator.

Configuration problems are raised while catalogs and move graphs are
registered, before any conversation runs. Invariant violations are raised
while a conversation is being stepped. Absence (an unknown facet, a missing
obligation) is never an error and is reported as ``None``.
"""


class DialogueSimError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(DialogueSimError):
    """Raised when catalogs, entities or move graphs are malformed."""


class RandomnessExhaustedError(ConfigurationError):
    """Raised when a random choice is asked to pick from nothing."""


class InvariantViolation(DialogueSimError):
    """Raised when a running conversation breaks one of its invariants."""


class ConversationFinishedError(InvariantViolation):
    """Raised when a finished conversation is stepped again."""


class MoveCycleError(InvariantViolation):
    """Raised when expanding a move revisits a move already on the path."""


class ConversationStalledError(InvariantViolation):
    """Raised when the current speaker has no admissible move at all."""
