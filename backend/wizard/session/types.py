"""
Pydantic models for the session layer.
"""

from pydantic import BaseModel, ConfigDict, Field

from wizard.logic.enums import PenaltyType, TrumpSuit
from wizard.logic.types import DocumentModel, PlayerStanding, ScoreProgression


class GameNotFoundError(LookupError):
    """No game with the requested id is open or stored."""

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__(f"Game not found: {game_id}")


class ActionData(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PlayerActionData(ActionData):
    """Data for intents that only name a player."""

    player_id: str = Field(min_length=1)


class AdjustActionData(PlayerActionData):
    """Data for stepping a bid or trick count up or down."""

    delta: int = Field(ge=-1, le=1)


class SetValueActionData(PlayerActionData):
    """Data for entering a bid or trick count directly. None clears the entry."""

    value: int | None = None


class CorrectBidActionData(PlayerActionData):
    increase: bool


class TrumpSuitActionData(ActionData):
    trump_suit: TrumpSuit | None = None


class PenaltyActionData(PlayerActionData):
    """Data for logging a penalty. Without points the suggested amount is used."""

    penalty_type: PenaltyType = PenaltyType.OTHER_MISTAKE
    description: str
    points: int | None = None


class MultiplierActionData(PlayerActionData):
    multiplier: int = Field(ge=1)


class GameStandings(DocumentModel):
    """End-of-game (or in-progress) view recomputed from the round history."""

    game_id: str
    is_complete: bool
    standings: list[PlayerStanding]
    progression: list[ScoreProgression]
    running_totals: dict[str, int]
    winner: PlayerStanding | None = None
