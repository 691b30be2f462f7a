"""Typed domain exceptions for scoring rule violations.

All domain-level rule violations use subclasses of GameRuleError
rather than raw ValueError. The session layer and the HTTP surface
catch GameRuleError and convert it to a user-facing response.
"""


class GameRuleError(Exception):
    """Base exception for scoring rule violations."""


class InvalidSetupError(GameRuleError):
    """Game setup failed validation. Carries every user-facing message."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class InvalidActionError(GameRuleError):
    """Intent is not valid in the current game or round state."""


class PhaseTransitionError(GameRuleError):
    """A phase gate blocked the transition.

    ``reason`` is only set for violations that must be explained to the
    players (the no-round-number-bid house rule). Other blocks are silent.
    """

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or "phase transition blocked")
